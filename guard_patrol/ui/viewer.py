"""Interactive pygame viewer for guard patrol maps."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pygame

from ..cli import configure_logging, resolve_input_file, resolve_map_root
from ..loader import MapLoader, load_map_file
from ..patrol import GuardState, MapFormatError
from . import layout
from .toolkit import PatrolBoardUI

logger = logging.getLogger(__name__)

DEFAULT_MAP_NAME = "sample_patrol"
TOOLTIP_TEXT = "Click a cell to toggle an obstacle. Esc quits."


def path_points(trace: Sequence[GuardState], origin: Tuple[int, int], tile_size: int) -> List[Tuple[int, int]]:
    """Pixel centres of the cells along the trace, skipping in-place turns."""

    points: List[Tuple[int, int]] = []
    previous = None
    for state in trace:
        if state.coordinate == previous:
            continue
        previous = state.coordinate
        points.append(
            (
                origin[0] + state.coordinate.x * tile_size + tile_size // 2,
                origin[1] + state.coordinate.y * tile_size + tile_size // 2,
            )
        )
    return points


def draw_board(
    surface: pygame.Surface,
    board: PatrolBoardUI,
    board_rect: pygame.Rect,
    small_font: pygame.font.Font,
) -> None:
    """Render the map, the patrol path and the guard marker."""

    pygame.draw.rect(surface, layout.BOARD_BACKGROUND_COLOR, board_rect)
    surface.blit(board.render(), board_rect.topleft)

    if board.trace is not None:
        points = path_points(board.trace, board_rect.topleft, board.cell_size)
        if len(points) > 1:
            pygame.draw.lines(surface, layout.PATH_COLOR, False, points, 2)

    guard = board.guard
    label = small_font.render(guard.direction.glyph, True, layout.BACKGROUND_COLOR)
    label_rect = label.get_rect()
    label_rect.center = (
        board_rect.x + guard.coordinate.x * board.cell_size + board.cell_size // 2,
        board_rect.y + guard.coordinate.y * board.cell_size + board.cell_size // 2,
    )
    surface.blit(label, label_rect)


def status_lines(board: PatrolBoardUI) -> List[str]:
    lines = [
        f"Map: {board.obstacle_map.width}x{board.obstacle_map.height}",
        f"Obstacles: {len(board.obstacle_map)}",
    ]
    if board.loops:
        lines.append("Patrol: loops forever")
    else:
        lines.append(f"Visited cells: {len(board.visited)}")
        if board.search:
            lines.append(f"Loop obstructions: {len(board.loop_cells)}")
    return lines


def draw_status(
    surface: pygame.Surface,
    board: PatrolBoardUI,
    panel_rect: pygame.Rect,
    font: pygame.font.Font,
    small_font: pygame.font.Font,
) -> None:
    """Render patrol statistics in the side panel."""

    pygame.draw.rect(surface, layout.PANEL_BACKGROUND_COLOR, panel_rect, border_radius=18)
    x = panel_rect.x + layout.UI_PANEL_PADDING
    y = panel_rect.y + layout.UI_PANEL_PADDING
    heading = font.render("Patrol", True, layout.TEXT_COLOR)
    surface.blit(heading, (x, y))
    y += font.get_linesize() + layout.UI_PANEL_SPACING

    for line in status_lines(board):
        text_surface = small_font.render(line, True, layout.TEXT_COLOR)
        surface.blit(text_surface, (x, y))
        y += text_surface.get_height() + layout.UI_PANEL_SPACING


def draw_tooltip(surface: pygame.Surface, tooltip_rect: pygame.Rect, text: str, font: pygame.font.Font) -> None:
    pygame.draw.rect(surface, layout.TOOLTIP_BACKGROUND_COLOR, tooltip_rect, border_radius=12)
    pygame.draw.rect(surface, layout.GRID_LINE_COLOR, tooltip_rect, 2, border_radius=12)
    text_surface = font.render(text, True, layout.TEXT_COLOR)
    text_rect = text_surface.get_rect()
    text_rect.center = tooltip_rect.center
    surface.blit(text_surface, text_rect)


def draw_scene(
    surface: pygame.Surface,
    board: PatrolBoardUI,
    geometry: layout.BoardGeometry,
    *,
    font: pygame.font.Font,
    small_font: pygame.font.Font,
    tooltip_text: str = TOOLTIP_TEXT,
) -> None:
    """Draw a full frame: board, status panel and tooltip."""

    surface.fill(layout.BACKGROUND_COLOR)

    board_rect = pygame.Rect(*geometry.board)
    panel_rect = pygame.Rect(*geometry.panel)
    tooltip_rect = pygame.Rect(*geometry.tooltip)

    for layer in layout.DRAW_ORDER:
        if layer == "board":
            draw_board(surface, board, board_rect, small_font)
        elif layer == "ui_panel":
            draw_status(surface, board, panel_rect, font, small_font)
        elif layer == "tooltips":
            draw_tooltip(surface, tooltip_rect, tooltip_text, font)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guard-patrol-view", description="Guard patrol viewer")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input-file", type=Path, default=None, help="Map file to display.")
    source.add_argument(
        "--map",
        dest="map_name",
        default=None,
        help=f"Name of a map inside the map directory (default: {DEFAULT_MAP_NAME}).",
    )
    parser.add_argument("--tile-size", type=int, default=layout.TILE_SIZE, help="Preferred tile size in pixels.")
    parser.add_argument(
        "--no-search",
        action="store_true",
        help="Skip the obstruction search; only draw the patrol path.",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print the resolved map source and exit without opening a window.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser


def resolve_map_path(args: argparse.Namespace) -> Path:
    if args.input_file is not None:
        return args.input_file
    if args.map_name is None and resolve_input_file().exists():
        return resolve_input_file()
    return MapLoader(resolve_map_root()).path_for(args.map_name or DEFAULT_MAP_NAME)


def run(board: PatrolBoardUI, tile_size: int) -> None:
    """Open the window and run the event loop until the user quits."""

    geometry = layout.compute_geometry(board.obstacle_map.width, board.obstacle_map.height, tile_size)
    screen = pygame.display.set_mode(geometry.window)
    pygame.display.set_caption("Guard Patrol")

    font = pygame.font.Font(None, 28)
    small_font = pygame.font.Font(None, 22)
    board_origin = geometry.board[:2]

    clock = pygame.time.Clock()
    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                local = (event.pos[0] - board_origin[0], event.pos[1] - board_origin[1])
                if local[0] >= 0 and local[1] >= 0:
                    board.process_events(
                        [pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=local)]
                    )
                    board.flush_pending_to_map()

        draw_scene(screen, board, geometry, font=font, small_font=small_font)
        pygame.display.flip()
        clock.tick(30)

    pygame.quit()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)

    path = resolve_map_path(args)
    if args.info:
        print(f"Guard patrol viewer\n  map: {path}\n  maps directory: {resolve_map_root()}")
        return 0

    try:
        obstacle_map, guard = load_map_file(path)
    except (OSError, MapFormatError) as exc:
        logger.error("Could not read map: %s", exc)
        return 1
    if guard is None:
        logger.error("No guard start marker found in %s", path)
        return 1

    pygame.init()
    pygame.font.init()
    tile_size = layout.fit_tile_size(obstacle_map.width, obstacle_map.height, args.tile_size)
    board = PatrolBoardUI(obstacle_map, guard, cell_size=tile_size, search=not args.no_search)
    run(board, tile_size)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation entry point
    raise SystemExit(main())
