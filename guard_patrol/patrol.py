"""Core patrol logic: guard movement, loop detection and obstruction search."""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

logger = logging.getLogger(__name__)


class PatrolError(ValueError):
    """Base class for errors raised by the patrol engine."""


class MissingInitialStateError(PatrolError):
    """Raised when a simulation is requested without a starting guard state."""


class MapFormatError(PatrolError):
    """Raised when a map grid cannot be interpreted."""


class Direction(Enum):
    """Cardinal headings of the guard. Rows grow downwards."""

    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)

    @property
    def vector(self) -> Tuple[int, int]:
        return self.value

    @property
    def glyph(self) -> str:
        return _DIRECTION_GLYPHS[self]

    @staticmethod
    def from_name(name: str) -> "Direction":
        name = name.upper()
        try:
            return Direction[name]
        except KeyError as exc:
            raise ValueError(f"Unknown direction: {name}") from exc

    @staticmethod
    def from_glyph(glyph: str) -> "Direction":
        for direction, marker in _DIRECTION_GLYPHS.items():
            if marker == glyph:
                return direction
        raise ValueError(f"Unknown guard marker: {glyph!r}")

    def rotate_right(self) -> "Direction":
        mapping = {
            Direction.UP: Direction.RIGHT,
            Direction.RIGHT: Direction.DOWN,
            Direction.DOWN: Direction.LEFT,
            Direction.LEFT: Direction.UP,
        }
        return mapping[self]

    def rotate_left(self) -> "Direction":
        mapping = {
            Direction.UP: Direction.LEFT,
            Direction.LEFT: Direction.DOWN,
            Direction.DOWN: Direction.RIGHT,
            Direction.RIGHT: Direction.UP,
        }
        return mapping[self]

    def reverse(self) -> "Direction":
        mapping = {
            Direction.UP: Direction.DOWN,
            Direction.DOWN: Direction.UP,
            Direction.RIGHT: Direction.LEFT,
            Direction.LEFT: Direction.RIGHT,
        }
        return mapping[self]


_DIRECTION_GLYPHS = {
    Direction.UP: "^",
    Direction.RIGHT: ">",
    Direction.DOWN: "v",
    Direction.LEFT: "<",
}


@dataclass(frozen=True)
class Coordinate:
    """Integer grid point. Bounds are supplied by the caller."""

    x: int
    y: int

    def move_in_direction(self, direction: Direction) -> "Coordinate":
        dx, dy = direction.vector
        return Coordinate(self.x + dx, self.y + dy)

    def in_bounds(self, min_x: int, max_x: int, min_y: int, max_y: int) -> bool:
        """Half-open containment test: ``min <= value < max`` on both axes."""

        return min_x <= self.x < max_x and min_y <= self.y < max_y


class ObstacleMap:
    """Bounded grid holding point obstacles.

    The dimensions are fixed at construction. The obstacle set only changes
    through :meth:`add_obstacle` and :meth:`remove_obstacle`.
    """

    def __init__(self, width: int, height: int, obstacles: Iterable[Coordinate] = ()):
        if width < 0 or height < 0:
            raise ValueError(f"Map dimensions must be non-negative: {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self._obstacles: Set[Coordinate] = set()
        for coordinate in obstacles:
            if not self.in_bounds(coordinate):
                raise ValueError(f"Obstacle outside of the map: {coordinate}")
            self._obstacles.add(coordinate)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def obstacles(self) -> FrozenSet[Coordinate]:
        return frozenset(self._obstacles)

    def __len__(self) -> int:
        return len(self._obstacles)

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self._obstacles

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObstacleMap):
            return NotImplemented
        return (
            self._width == other._width
            and self._height == other._height
            and self._obstacles == other._obstacles
        )

    def __repr__(self) -> str:
        return (
            f"ObstacleMap(width={self._width}, height={self._height}, "
            f"obstacles={len(self._obstacles)})"
        )

    def copy(self) -> "ObstacleMap":
        return ObstacleMap(self._width, self._height, self._obstacles)

    def in_bounds(self, coordinate: Coordinate) -> bool:
        return coordinate.in_bounds(0, self._width, 0, self._height)

    def is_obstacle(self, coordinate: Coordinate) -> Optional[bool]:
        """Return ``None`` outside the map, otherwise whether the cell is blocked."""

        if not self.in_bounds(coordinate):
            return None
        return coordinate in self._obstacles

    def add_obstacle(self, coordinate: Coordinate) -> None:
        if not self.in_bounds(coordinate):
            raise ValueError(f"Obstacle outside of the map: {coordinate}")
        self._obstacles.add(coordinate)

    def remove_obstacle(self, coordinate: Coordinate) -> bool:
        if coordinate in self._obstacles:
            self._obstacles.remove(coordinate)
            return True
        return False

    @contextmanager
    def trial_obstacle(self, coordinate: Coordinate) -> Iterator[Coordinate]:
        """Install a temporary obstacle for the duration of the ``with`` block."""

        blocked = self.is_obstacle(coordinate)
        if blocked is None:
            raise ValueError(f"Trial obstacle outside of the map: {coordinate}")
        if blocked:
            raise ValueError(f"Cell already holds an obstacle: {coordinate}")
        self.add_obstacle(coordinate)
        try:
            yield coordinate
        finally:
            self.remove_obstacle(coordinate)


@dataclass(frozen=True)
class GuardState:
    """Position and heading of the guard. The unit of loop detection."""

    coordinate: Coordinate
    direction: Direction

    def next_coordinate(self) -> Coordinate:
        return self.coordinate.move_in_direction(self.direction)

    def step(self) -> "GuardState":
        return GuardState(self.next_coordinate(), self.direction)

    def encounter_obstacle(self) -> "GuardState":
        return GuardState(self.coordinate, self.direction.rotate_right())


def simulate(
    obstacle_map: ObstacleMap, initial_state: Optional[GuardState]
) -> Optional[List[GuardState]]:
    """Walk the guard until it leaves the map.

    Returns the trace of every state occupied, ending with the last state
    inside the map, or ``None`` when a state repeats (the guard loops).
    """

    if initial_state is None:
        raise MissingInitialStateError("Cannot simulate a patrol without a starting state")

    seen_states: Set[GuardState] = set()
    trace: List[GuardState] = []
    current = initial_state

    while True:
        if current in seen_states:
            logger.debug(
                "Loop detected from %s after %d states at %s",
                initial_state,
                len(trace),
                current,
            )
            return None
        seen_states.add(current)
        trace.append(current)

        blocked = obstacle_map.is_obstacle(current.next_coordinate())
        if blocked is None:
            logger.debug(
                "Guard left the map from %s after %d states", current, len(trace)
            )
            return trace
        if blocked:
            current = current.encounter_obstacle()
        else:
            current = current.step()


def visited_coordinates(trace: Iterable[GuardState]) -> Set[Coordinate]:
    return {state.coordinate for state in trace}


def count_visited_cells(
    obstacle_map: ObstacleMap, initial_state: Optional[GuardState]
) -> Optional[int]:
    """Number of distinct cells visited before leaving, ``None`` if the guard loops."""

    trace = simulate(obstacle_map, initial_state)
    if trace is None:
        return None
    return len(visited_coordinates(trace))


def _probe_candidates(
    width: int,
    height: int,
    obstacles: FrozenSet[Coordinate],
    trials: Sequence[Tuple[GuardState, Coordinate]],
) -> List[Coordinate]:
    # Runs inside a worker process with its own private map.
    obstacle_map = ObstacleMap(width, height, obstacles)
    found: List[Coordinate] = []
    for start, candidate in trials:
        with obstacle_map.trial_obstacle(candidate):
            if simulate(obstacle_map, start) is None:
                found.append(candidate)
    return found


class ObstructionSearch:
    """Find every single extra obstacle that traps the guard in a loop.

    Each candidate is the cell directly ahead of a state on the original
    trace. The simulation restarts from that state with the trial obstacle
    installed; the prefix of the trace cannot be affected by it because the
    candidate was never visited before.
    """

    def __init__(
        self,
        obstacle_map: ObstacleMap,
        trace: Sequence[GuardState],
        initial_position: Optional[Coordinate] = None,
    ):
        if not trace:
            raise ValueError("Obstruction search requires a non-empty trace")
        self.obstacle_map = obstacle_map
        self.trace = list(trace)
        self.initial_position = (
            initial_position if initial_position is not None else self.trace[0].coordinate
        )

    def candidates(self) -> Iterator[Tuple[GuardState, Coordinate]]:
        visited: Set[Coordinate] = set()
        for state in self.trace:
            visited.add(state.coordinate)
            candidate = state.next_coordinate()
            if candidate in visited:
                continue
            blocked = self.obstacle_map.is_obstacle(candidate)
            if blocked is None or blocked:
                continue
            if candidate == self.initial_position:
                continue
            yield state, candidate

    def run(self, workers: int = 1) -> Set[Coordinate]:
        if workers > 1:
            return self._run_parallel(workers)

        loop_cells: Set[Coordinate] = set()
        trials = 0
        for start, candidate in self.candidates():
            trials += 1
            with self.obstacle_map.trial_obstacle(candidate):
                if simulate(self.obstacle_map, start) is None:
                    logger.debug("Obstacle at %s traps the guard", candidate)
                    loop_cells.add(candidate)
        logger.info(
            "Obstruction search tried %d cells, %d create a loop",
            trials,
            len(loop_cells),
        )
        return loop_cells

    def _run_parallel(self, workers: int) -> Set[Coordinate]:
        trials = list(self.candidates())
        if not trials:
            return set()
        partitions = [trials[index::workers] for index in range(workers)]
        partitions = [chunk for chunk in partitions if chunk]
        snapshot = self.obstacle_map.obstacles
        width = self.obstacle_map.width
        height = self.obstacle_map.height

        loop_cells: Set[Coordinate] = set()
        with ProcessPoolExecutor(max_workers=len(partitions)) as executor:
            futures = [
                executor.submit(_probe_candidates, width, height, snapshot, chunk)
                for chunk in partitions
            ]
            for future in futures:
                loop_cells.update(future.result())
        logger.info(
            "Obstruction search tried %d cells on %d workers, %d create a loop",
            len(trials),
            len(partitions),
            len(loop_cells),
        )
        return loop_cells


def count_loop_obstructions(
    obstacle_map: ObstacleMap,
    initial_state: Optional[GuardState],
    workers: int = 1,
) -> Optional[int]:
    """Number of cells where one new obstacle makes the guard loop.

    Returns ``None`` when the unobstructed patrol already loops, since there
    is no exit path to obstruct.
    """

    trace = simulate(obstacle_map, initial_state)
    if trace is None:
        logger.error("Unobstructed patrol loops; no path to search")
        return None
    search = ObstructionSearch(obstacle_map, trace)
    return len(search.run(workers=workers))


__all__ = [
    "Coordinate",
    "Direction",
    "GuardState",
    "MapFormatError",
    "MissingInitialStateError",
    "ObstacleMap",
    "ObstructionSearch",
    "PatrolError",
    "count_loop_obstructions",
    "count_visited_cells",
    "simulate",
    "visited_coordinates",
]
