from pathlib import Path

import pytest

from guard_patrol.loader import MapLoader, parse_map
from guard_patrol.patrol import (
    Coordinate,
    Direction,
    GuardState,
    MissingInitialStateError,
    ObstacleMap,
    ObstructionSearch,
    count_loop_obstructions,
    count_visited_cells,
    simulate,
    visited_coordinates,
)


def maps_root() -> Path:
    return Path(__file__).resolve().parents[1] / "maps"


def load_sample(name: str = "sample_patrol"):
    return MapLoader(maps_root()).load(name)


@pytest.mark.parametrize("direction", list(Direction))
def test_four_right_turns_return_to_start(direction: Direction):
    turned = direction
    for _ in range(4):
        turned = turned.rotate_right()
    assert turned is direction


def test_rotate_right_is_a_bijection():
    assert {direction.rotate_right() for direction in Direction} == set(Direction)
    assert Direction.UP.rotate_right() is Direction.RIGHT
    assert Direction.LEFT.rotate_right() is Direction.UP


@pytest.mark.parametrize("direction", list(Direction))
def test_rotate_left_undoes_rotate_right(direction: Direction):
    assert direction.rotate_right().rotate_left() is direction


@pytest.mark.parametrize("direction", list(Direction))
@pytest.mark.parametrize("coordinate", [Coordinate(0, 0), Coordinate(3, 7), Coordinate(9, 9)])
def test_move_then_move_back_is_identity(coordinate: Coordinate, direction: Direction):
    moved = coordinate.move_in_direction(direction)
    assert moved != coordinate
    assert moved.move_in_direction(direction.reverse()) == coordinate


def test_rows_grow_downwards():
    origin = Coordinate(2, 2)
    assert origin.move_in_direction(Direction.UP) == Coordinate(2, 1)
    assert origin.move_in_direction(Direction.DOWN) == Coordinate(2, 3)
    assert origin.move_in_direction(Direction.RIGHT) == Coordinate(3, 2)
    assert origin.move_in_direction(Direction.LEFT) == Coordinate(1, 2)


def test_in_bounds_is_half_open():
    assert Coordinate(0, 0).in_bounds(0, 3, 0, 2)
    assert Coordinate(2, 1).in_bounds(0, 3, 0, 2)
    assert not Coordinate(3, 1).in_bounds(0, 3, 0, 2)
    assert not Coordinate(0, -1).in_bounds(0, 3, 0, 2)


def test_direction_glyph_lookup():
    assert Direction.from_glyph("v") is Direction.DOWN
    assert Direction.from_name("left") is Direction.LEFT
    with pytest.raises(ValueError):
        Direction.from_glyph("x")
    with pytest.raises(ValueError):
        Direction.from_name("north")


def test_obstacle_map_reports_outside_cells_as_none():
    obstacle_map = ObstacleMap(3, 2, [Coordinate(1, 1)])

    assert obstacle_map.is_obstacle(Coordinate(1, 1)) is True
    assert obstacle_map.is_obstacle(Coordinate(0, 0)) is False
    assert obstacle_map.is_obstacle(Coordinate(3, 0)) is None
    assert obstacle_map.is_obstacle(Coordinate(0, -1)) is None


def test_obstacle_map_add_and_remove():
    obstacle_map = ObstacleMap(4, 4)
    cell = Coordinate(2, 3)

    obstacle_map.add_obstacle(cell)
    assert cell in obstacle_map
    assert obstacle_map.remove_obstacle(cell) is True
    assert obstacle_map.remove_obstacle(cell) is False
    assert len(obstacle_map) == 0


def test_obstacle_map_rejects_bad_construction():
    with pytest.raises(ValueError):
        ObstacleMap(-1, 3)
    with pytest.raises(ValueError):
        ObstacleMap(2, 2, [Coordinate(2, 0)])


def test_add_obstacle_rejects_cells_outside_the_map():
    obstacle_map = ObstacleMap(3, 3)

    with pytest.raises(ValueError):
        obstacle_map.add_obstacle(Coordinate(7, 7))
    with pytest.raises(ValueError):
        obstacle_map.add_obstacle(Coordinate(-1, 0))

    assert len(obstacle_map) == 0
    assert obstacle_map.copy() == obstacle_map


def test_trial_obstacle_is_removed_even_on_error():
    obstacle_map = ObstacleMap(3, 3, [Coordinate(0, 0)])
    before = obstacle_map.copy()

    with pytest.raises(RuntimeError):
        with obstacle_map.trial_obstacle(Coordinate(1, 1)):
            assert obstacle_map.is_obstacle(Coordinate(1, 1)) is True
            raise RuntimeError("boom")

    assert obstacle_map == before


def test_trial_obstacle_refuses_existing_or_outside_cells():
    obstacle_map = ObstacleMap(3, 3, [Coordinate(0, 0)])

    with pytest.raises(ValueError):
        with obstacle_map.trial_obstacle(Coordinate(0, 0)):
            pass
    with pytest.raises(ValueError):
        with obstacle_map.trial_obstacle(Coordinate(5, 5)):
            pass
    assert obstacle_map.obstacles == {Coordinate(0, 0)}


def test_guard_state_transitions_are_pure():
    state = GuardState(Coordinate(1, 1), Direction.UP)

    assert state.step() == GuardState(Coordinate(1, 0), Direction.UP)
    assert state.encounter_obstacle() == GuardState(Coordinate(1, 1), Direction.RIGHT)
    assert state == GuardState(Coordinate(1, 1), Direction.UP)
    assert len({state, GuardState(Coordinate(1, 1), Direction.UP)}) == 1


def test_sample_patrol_visits_41_cells():
    obstacle_map, guard = load_sample()

    trace = simulate(obstacle_map, guard)

    assert trace is not None
    assert trace[0] == guard
    assert len(visited_coordinates(trace)) == 41
    assert count_visited_cells(obstacle_map, guard) == 41


def test_trace_ends_one_step_before_leaving_the_map():
    obstacle_map, guard = load_sample()

    trace = simulate(obstacle_map, guard)

    assert trace is not None
    assert obstacle_map.is_obstacle(trace[-1].next_coordinate()) is None
    assert all(obstacle_map.in_bounds(state.coordinate) for state in trace)


def test_trace_holds_distinct_states():
    obstacle_map, guard = load_sample()

    trace = simulate(obstacle_map, guard)

    assert trace is not None
    assert len(set(trace)) == len(trace)


def test_guard_facing_out_of_single_cell_exits_immediately():
    obstacle_map = ObstacleMap(1, 1)
    guard = GuardState(Coordinate(0, 0), Direction.UP)

    trace = simulate(obstacle_map, guard)

    assert trace == [guard]


def test_enclosed_guard_is_detected_as_loop():
    obstacle_map, guard = load_sample("walled_cell")

    assert simulate(obstacle_map, guard) is None
    assert count_visited_cells(obstacle_map, guard) is None


def test_loop_verdict_is_deterministic():
    obstacle_map, guard = load_sample()
    obstacle_map.add_obstacle(Coordinate(3, 6))

    assert simulate(obstacle_map, guard) is None
    assert simulate(obstacle_map, guard) is None


def test_crossing_own_path_is_not_a_loop():
    # The guard crosses (2, 3) heading up, then again heading left, and exits.
    obstacle_map, guard = parse_map(
        [
            "..#...",
            ".....#",
            "......",
            "......",
            "....#.",
            "..^...",
        ]
    )

    trace = simulate(obstacle_map, guard)

    assert trace is not None
    assert len(trace) == 16
    assert len(visited_coordinates(trace)) == 12
    assert GuardState(Coordinate(2, 3), Direction.UP) in trace
    assert GuardState(Coordinate(2, 3), Direction.LEFT) in trace
    assert trace[-1] == GuardState(Coordinate(0, 3), Direction.LEFT)


def test_returning_to_a_state_is_a_loop():
    obstacle_map, guard = parse_map(
        [
            ".#....",
            ".....#",
            "......",
            "#.....",
            "....#.",
            ".^....",
        ]
    )

    assert simulate(obstacle_map, guard) is None


def test_simulate_requires_initial_state():
    with pytest.raises(MissingInitialStateError):
        simulate(ObstacleMap(2, 2), None)


def test_obstruction_search_on_sample_finds_six_cells():
    obstacle_map, guard = load_sample()
    trace = simulate(obstacle_map, guard)
    before = obstacle_map.copy()

    loop_cells = ObstructionSearch(obstacle_map, trace).run()

    assert loop_cells == {
        Coordinate(3, 6),
        Coordinate(6, 7),
        Coordinate(7, 7),
        Coordinate(1, 8),
        Coordinate(3, 8),
        Coordinate(7, 9),
    }
    assert obstacle_map == before


def test_obstruction_search_never_reports_start_or_existing_obstacles():
    obstacle_map, guard = load_sample()
    trace = simulate(obstacle_map, guard)
    search = ObstructionSearch(obstacle_map, trace)

    candidates = [candidate for _, candidate in search.candidates()]
    loop_cells = search.run()

    assert guard.coordinate not in candidates
    assert guard.coordinate not in loop_cells
    assert not loop_cells & obstacle_map.obstacles
    assert len(candidates) == len(set(candidates))


def test_obstruction_search_excludes_explicit_initial_position():
    obstacle_map = ObstacleMap(5, 1)
    trace = [GuardState(Coordinate(0, 0), Direction.RIGHT)]

    search = ObstructionSearch(obstacle_map, trace, initial_position=Coordinate(1, 0))

    assert list(search.candidates()) == []


def test_obstruction_search_requires_trace():
    with pytest.raises(ValueError):
        ObstructionSearch(ObstacleMap(2, 2), [])


def test_open_map_has_no_loop_obstructions():
    obstacle_map, guard = load_sample("open_corridor")

    assert count_visited_cells(obstacle_map, guard) == 3
    assert count_loop_obstructions(obstacle_map, guard) == 0


def test_count_loop_obstructions_on_looping_base_path():
    obstacle_map, guard = load_sample("walled_cell")

    assert count_loop_obstructions(obstacle_map, guard) is None


def test_parallel_search_matches_sequential_search():
    obstacle_map, guard = load_sample()
    trace = simulate(obstacle_map, guard)
    before = obstacle_map.copy()

    sequential = ObstructionSearch(obstacle_map, trace).run()
    parallel = ObstructionSearch(obstacle_map, trace).run(workers=2)

    assert parallel == sequential
    assert obstacle_map == before
    assert count_loop_obstructions(obstacle_map, guard, workers=2) == 6
