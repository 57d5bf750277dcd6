"""Headless rendering and interaction tests for the board widget.

The fixtures in ``conftest.py`` force the SDL dummy drivers. Pixels are
sampled at cell centres so grid lines never interfere.
"""

from __future__ import annotations

from pathlib import Path

from guard_patrol.loader import MapLoader
from guard_patrol.patrol import Coordinate
from guard_patrol.ui import PatrolBoardUI
from guard_patrol.ui import layout

CELL = 8


def make_board(pygame, name: str = "sample_patrol", **kwargs) -> PatrolBoardUI:
    loader = MapLoader(Path(__file__).resolve().parents[2] / "maps")
    obstacle_map, guard = loader.load(name)
    surface = pygame.Surface((obstacle_map.width * CELL, obstacle_map.height * CELL))
    return PatrolBoardUI(obstacle_map, guard, cell_size=CELL, surface=surface, **kwargs)


def pixel(surface, cell: Coordinate):
    color = surface.get_at((cell.x * CELL + CELL // 2, cell.y * CELL + CELL // 2))
    return (color.r, color.g, color.b)


def click(pygame, cell: Coordinate):
    return pygame.event.Event(
        pygame.MOUSEBUTTONDOWN,
        button=1,
        pos=(cell.x * CELL + CELL // 2, cell.y * CELL + CELL // 2),
    )


def test_board_computes_patrol_on_creation(pygame_module):
    board = make_board(pygame_module)

    assert not board.loops
    assert len(board.visited) == 41
    assert len(board.loop_cells) == 6


def test_render_colours_each_kind_of_cell(pygame_module):
    board = make_board(pygame_module)

    rendered = board.render()

    assert pixel(rendered, Coordinate(4, 0)) == layout.OBSTACLE_COLOR
    assert pixel(rendered, Coordinate(4, 6)) == layout.GUARD_COLOR
    assert pixel(rendered, Coordinate(4, 1)) == layout.VISITED_COLOR
    assert pixel(rendered, Coordinate(3, 6)) == layout.LOOP_CELL_COLOR
    assert pixel(rendered, Coordinate(0, 0)) == layout.BOARD_BACKGROUND_COLOR


def test_click_toggles_obstacle_and_recomputes(pygame_module):
    pygame = pygame_module
    board = make_board(pygame, search=False)

    board.process_events([click(pygame, Coordinate(4, 0))])
    assert board.pending_toggles == [Coordinate(4, 0)]
    board.flush_pending_to_map()

    assert Coordinate(4, 0) not in board.obstacle_map
    assert board.pending_toggles == []
    assert len(board.visited) == 7

    board.process_events([click(pygame, Coordinate(4, 0))])
    board.flush_pending_to_map()

    assert Coordinate(4, 0) in board.obstacle_map
    assert len(board.visited) == 41


def test_click_on_guard_start_is_ignored(pygame_module):
    pygame = pygame_module
    board = make_board(pygame)
    before = board.obstacle_map.copy()

    board.process_events([click(pygame, board.guard.coordinate)])
    board.flush_pending_to_map()

    assert board.obstacle_map == before


def test_click_outside_board_is_ignored(pygame_module):
    pygame = pygame_module
    board = make_board(pygame)

    event = pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(CELL * 20, 4))
    board.process_events([event])

    assert board.pending_toggles == []


def test_looping_board_has_no_path(pygame_module):
    board = make_board(pygame_module, "walled_cell")

    assert board.loops
    assert board.visited == set()
    assert board.loop_cells == set()
