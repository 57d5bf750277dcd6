"""Parse text grids into obstacle maps and load them from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .patrol import Coordinate, Direction, GuardState, MapFormatError, ObstacleMap

logger = logging.getLogger(__name__)

OBSTACLE_GLYPH = "#"
FLOOR_GLYPH = "."
GUARD_GLYPHS = frozenset(direction.glyph for direction in Direction)
MAP_SUFFIX = ".txt"


def parse_map(lines: Iterable[str]) -> Tuple[ObstacleMap, Optional[GuardState]]:
    """Build an :class:`ObstacleMap` and the guard's starting state.

    Leading and trailing blank lines are ignored; a blank line inside the
    grid is an error. A grid without a guard marker yields ``None`` as
    the state; callers must check it before simulating.
    """

    rows: List[str] = [line.rstrip("\r\n") for line in lines]
    while rows and not rows[0]:
        rows.pop(0)
    while rows and not rows[-1]:
        rows.pop()
    if not rows:
        raise MapFormatError("Map contains no rows")

    width = len(rows[0])
    for y, row in enumerate(rows):
        if not row:
            raise MapFormatError(f"Row {y} is blank inside the grid")
        if len(row) != width:
            raise MapFormatError(
                f"Row {y} has length {len(row)}, expected {width}"
            )

    obstacles: List[Coordinate] = []
    guard: Optional[GuardState] = None
    for y, row in enumerate(rows):
        for x, glyph in enumerate(row):
            if glyph == OBSTACLE_GLYPH:
                obstacles.append(Coordinate(x, y))
            elif glyph in GUARD_GLYPHS:
                if guard is not None:
                    raise MapFormatError(
                        f"Second guard marker at ({x}, {y}); first at "
                        f"({guard.coordinate.x}, {guard.coordinate.y})"
                    )
                guard = GuardState(Coordinate(x, y), Direction.from_glyph(glyph))
            elif glyph != FLOOR_GLYPH:
                logger.debug("Treating %r at (%d, %d) as open floor", glyph, x, y)

    obstacle_map = ObstacleMap(width, len(rows), obstacles)
    logger.debug("Parsed %r with guard %s", obstacle_map, guard)
    return obstacle_map, guard


def load_map_file(path: Path) -> Tuple[ObstacleMap, Optional[GuardState]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    return parse_map(path.read_text().splitlines())


class MapLoader:
    """Load named map files stored as plain text grids."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}{MAP_SUFFIX}"

    def load(self, name: str) -> Tuple[ObstacleMap, Optional[GuardState]]:
        return load_map_file(self.path_for(name))

    def available_maps(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob(f"*{MAP_SUFFIX}"))


def render_map(
    obstacle_map: ObstacleMap,
    guard: Optional[GuardState] = None,
    marked: Iterable[Coordinate] = (),
    mark_glyph: str = "O",
) -> str:
    """Render a map back to text; ``marked`` cells use ``mark_glyph``."""

    marked_cells = set(marked)
    lines = []
    for y in range(obstacle_map.height):
        row = []
        for x in range(obstacle_map.width):
            cell = Coordinate(x, y)
            if guard is not None and cell == guard.coordinate:
                row.append(guard.direction.glyph)
            elif cell in obstacle_map:
                row.append(OBSTACLE_GLYPH)
            elif cell in marked_cells:
                row.append(mark_glyph)
            else:
                row.append(FLOOR_GLYPH)
        lines.append("".join(row))
    return "\n".join(lines)


__all__ = [
    "FLOOR_GLYPH",
    "GUARD_GLYPHS",
    "MapLoader",
    "OBSTACLE_GLYPH",
    "load_map_file",
    "parse_map",
    "render_map",
]
