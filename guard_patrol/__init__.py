"""Guard patrol package."""

from .loader import MapLoader, load_map_file, parse_map
from .patrol import (
    Coordinate,
    Direction,
    GuardState,
    MapFormatError,
    MissingInitialStateError,
    ObstacleMap,
    ObstructionSearch,
    PatrolError,
    count_loop_obstructions,
    count_visited_cells,
    simulate,
)

__all__ = [
    "Coordinate",
    "Direction",
    "GuardState",
    "MapFormatError",
    "MapLoader",
    "MissingInitialStateError",
    "ObstacleMap",
    "ObstructionSearch",
    "PatrolError",
    "count_loop_obstructions",
    "count_visited_cells",
    "load_map_file",
    "parse_map",
    "simulate",
]
