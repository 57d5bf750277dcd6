"""Command line entry point solving both parts of the guard patrol puzzle."""

from __future__ import annotations

import argparse
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Set

from .loader import MapLoader, load_map_file, render_map
from .patrol import (
    Coordinate,
    GuardState,
    MapFormatError,
    ObstacleMap,
    ObstructionSearch,
    simulate,
    visited_coordinates,
)

INPUT_ENV_VAR = "GUARD_PATROL_INPUT_FILE"
MAP_ENV_VAR = "GUARD_PATROL_MAP_ROOT"
LOG_LEVEL_ENV_VAR = "GUARD_PATROL_LOG_LEVEL"

DEFAULT_INPUT_FILE = "puzzleInput"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("guard_patrol.cli")


def _default_map_root() -> Path:
    return Path(__file__).resolve().parent / "maps"


def _read_path(env_var: str, fallback: Path) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value).expanduser()
    return fallback


def resolve_map_root() -> Path:
    return _read_path(MAP_ENV_VAR, _default_map_root())


def resolve_input_file() -> Path:
    return _read_path(INPUT_ENV_VAR, Path(DEFAULT_INPUT_FILE))


def configure_logging(debug: bool = False, log_file: Optional[Path] = None) -> int:
    """Configure the root logger and return the chosen level.

    ``--debug`` wins over the environment; otherwise the level comes from
    ``GUARD_PATROL_LOG_LEVEL`` and falls back to ``INFO``.
    """

    if debug:
        level = logging.DEBUG
    else:
        name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="w"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return level


@dataclass
class PuzzleInput:
    """Parsed map together with the guard's starting state."""

    obstacle_map: ObstacleMap
    guard: Optional[GuardState]
    source: str


def part01(puzzle: PuzzleInput) -> Optional[Set[Coordinate]]:
    """Distinct cells the guard visits before leaving the map."""

    trace = simulate(puzzle.obstacle_map, puzzle.guard)
    if trace is None:
        logger.error("Guard patrol loops; no exit path for part 1")
        return None
    return visited_coordinates(trace)


def part02(puzzle: PuzzleInput, workers: int = 1) -> Optional[Set[Coordinate]]:
    """Cells where one extra obstacle traps the guard in a loop."""

    trace = simulate(puzzle.obstacle_map, puzzle.guard)
    if trace is None:
        logger.error("Guard patrol loops without extra obstacles; nothing to search")
        return None
    before = puzzle.obstacle_map.obstacles
    cells = ObstructionSearch(puzzle.obstacle_map, trace).run(workers=workers)
    if puzzle.obstacle_map.obstacles != before:
        raise RuntimeError("Obstacle map was not restored after the obstruction search")
    return cells


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guard-patrol",
        description="Simulate a patrolling guard and search for loop-creating obstacles.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input-file",
        type=Path,
        default=None,
        help=f"Map file to read (default: ${INPUT_ENV_VAR} or '{DEFAULT_INPUT_FILE}').",
    )
    source.add_argument(
        "--map",
        dest="map_name",
        default=None,
        help=f"Name of a map inside the map directory (${MAP_ENV_VAR}).",
    )
    parser.add_argument(
        "--part",
        type=int,
        choices=(1, 2),
        help="Puzzle part to solve: 1 counts visited cells, 2 counts loop obstructions.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes for the part 2 obstruction search.",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Print the map with the result cells marked.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    parser.add_argument(
        "--list-maps",
        action="store_true",
        help="List the maps found in the map directory and exit.",
    )
    return parser


def load_puzzle(args: argparse.Namespace) -> PuzzleInput:
    if args.map_name:
        loader = MapLoader(resolve_map_root())
        obstacle_map, guard = loader.load(args.map_name)
        source = str(loader.path_for(args.map_name))
    else:
        path = args.input_file or resolve_input_file()
        obstacle_map, guard = load_map_file(path)
        source = str(path)
    return PuzzleInput(obstacle_map=obstacle_map, guard=guard, source=source)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_maps:
        root = resolve_map_root()
        print(f"Available maps in {root}:")
        for name in MapLoader(root).available_maps():
            print(f"  {name}")
        return 0

    if args.part is None:
        parser.error("--part is required unless --list-maps is given")
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    configure_logging(args.debug, args.log_file)
    logger.debug("Parsed command line arguments: %s", args)

    try:
        puzzle = load_puzzle(args)
    except (OSError, MapFormatError) as exc:
        logger.error("Could not read map: %s", exc)
        return 1

    if puzzle.guard is None:
        logger.error("No guard start marker found in %s", puzzle.source)
        return 1

    start_time = time.perf_counter_ns()
    if args.part == 1:
        cells = part01(puzzle)
        mark_glyph = "X"
    else:
        cells = part02(puzzle, workers=args.workers)
        mark_glyph = "O"
    elapsed = time.perf_counter_ns() - start_time

    if cells is None:
        logger.error("Computation did not produce a value for part %d", args.part)
        return 1

    logger.info(
        "computation complete: result=%d elapsed_time_ns=%d", len(cells), elapsed
    )
    if args.render:
        print(render_map(puzzle.obstacle_map, puzzle.guard, cells, mark_glyph))
    print(len(cells))
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation entry point
    raise SystemExit(main())
