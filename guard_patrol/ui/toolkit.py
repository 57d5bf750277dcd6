"""Minimal pygame board widget for headless rendering and tests.

Rendering is kept deterministic so it can be exercised with the SDL
``dummy`` video driver.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Set, Tuple

from ..patrol import (
    Coordinate,
    GuardState,
    ObstacleMap,
    ObstructionSearch,
    simulate,
    visited_coordinates,
)
from . import layout

logger = logging.getLogger(__name__)

# Imported lazily so callers can pick the SDL drivers first.
_PYGAME = None


def ensure_pygame():
    global _PYGAME
    if _PYGAME is None:
        os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
        _PYGAME = __import__("pygame")
        _PYGAME.display.init()
        _PYGAME.font.init()
    return _PYGAME


class PatrolBoardUI:
    """Board widget drawing the map, the guard's path and loop cells.

    Left clicks queue obstacle toggles; :meth:`flush_pending_to_map` applies
    them to the map and recomputes the patrol.
    """

    def __init__(
        self,
        obstacle_map: ObstacleMap,
        guard: GuardState,
        *,
        cell_size: int = 32,
        surface=None,
        use_display: bool = False,
        search: bool = True,
    ) -> None:
        pygame = ensure_pygame()
        self.obstacle_map = obstacle_map
        self.guard = guard
        self.cell_size = cell_size
        self.search = search
        width = obstacle_map.width * cell_size
        height = obstacle_map.height * cell_size
        self.surface = surface or pygame.Surface((width, height))
        self.screen = None
        if use_display:
            self.screen = pygame.display.set_mode((width, height))
        self.pending_toggles: List[Coordinate] = []
        self.trace: Optional[List[GuardState]] = None
        self.loop_cells: Set[Coordinate] = set()
        self.refresh()

    # ------------------------------------------------------------------
    # Patrol state
    @property
    def loops(self) -> bool:
        return self.trace is None

    @property
    def visited(self) -> Set[Coordinate]:
        if self.trace is None:
            return set()
        return visited_coordinates(self.trace)

    def refresh(self) -> None:
        self.trace = simulate(self.obstacle_map, self.guard)
        self.loop_cells = set()
        if self.trace is not None and self.search:
            self.loop_cells = ObstructionSearch(self.obstacle_map, self.trace).run()

    # ------------------------------------------------------------------
    # Input handling
    def process_events(self, events: Iterable[object]) -> None:
        pygame = ensure_pygame()
        for event in events:
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._handle_click(event.pos)

    def _grid_from_pixel(self, pos: Tuple[int, int]) -> Optional[Coordinate]:
        x, y = pos
        cell = Coordinate(x // self.cell_size, y // self.cell_size)
        if not self.obstacle_map.in_bounds(cell):
            return None
        return cell

    def _handle_click(self, pos: Tuple[int, int]) -> None:
        cell = self._grid_from_pixel(pos)
        if cell is None:
            return
        self.pending_toggles.append(cell)

    def flush_pending_to_map(self) -> None:
        if not self.pending_toggles:
            return
        for cell in self.pending_toggles:
            if cell == self.guard.coordinate:
                logger.info("Ignoring obstacle toggle on the guard start %s", cell)
                continue
            if not self.obstacle_map.remove_obstacle(cell):
                self.obstacle_map.add_obstacle(cell)
        self.pending_toggles.clear()
        self.refresh()

    # ------------------------------------------------------------------
    # Rendering helpers
    def render(self):
        pygame = ensure_pygame()
        self.surface.fill(layout.BOARD_BACKGROUND_COLOR)
        for cell in self.visited:
            self._fill_cell(cell, layout.VISITED_COLOR)
        for cell in self.loop_cells:
            self._fill_cell(cell, layout.LOOP_CELL_COLOR)
        for cell in self.obstacle_map.obstacles:
            self._fill_cell(cell, layout.OBSTACLE_COLOR)
        self._fill_cell(self.guard.coordinate, layout.GUARD_COLOR)
        self._draw_grid()
        if self.screen:
            self.screen.blit(self.surface, (0, 0))
            pygame.display.flip()
        return self.surface

    def _draw_grid(self) -> None:
        pygame = ensure_pygame()
        for x in range(self.obstacle_map.width):
            for y in range(self.obstacle_map.height):
                rect = pygame.Rect(
                    x * self.cell_size,
                    y * self.cell_size,
                    self.cell_size,
                    self.cell_size,
                )
                pygame.draw.rect(self.surface, layout.GRID_LINE_COLOR, rect, 1)

    def _fill_cell(self, cell: Coordinate, color: Tuple[int, int, int]) -> None:
        pygame = ensure_pygame()
        rect = pygame.Rect(
            cell.x * self.cell_size,
            cell.y * self.cell_size,
            self.cell_size,
            self.cell_size,
        )
        self.surface.fill(color, rect)


__all__ = ["PatrolBoardUI", "ensure_pygame"]
