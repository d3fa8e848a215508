"""Stage progress accumulation and level advancement."""
import pytest

from birdsparty.logic.connections import find_stage_cleared_symbols
from birdsparty.logic.models import GameState
from birdsparty.logic.progression import (
    STAGE_PROGRESS_TARGET,
    advance_level,
    process_stage_cleared_symbols,
)
from birdsparty.logic.rng import SeededRNG
from birdsparty.logic.tables import Level

P, G, Y, B, R = "purple_owl", "green_owl", "yellow_owl", "blue_owl", "red_owl"
O, H, S = "orange_slice", "honey_pot", "strawberry"


def level_1_grid_with_oranges() -> list[list[str]]:
    return [
        [O, G, Y, O],
        [G, Y, B, R],
        [Y, B, R, P],
        [O, R, P, O],
    ]


def level_3_grid_with_strawberries() -> list[list[str]]:
    grid = [[P, G, Y, B, R, P] for _ in range(6)]
    grid[0][0] = S
    grid[5][5] = S
    return grid


def make_state(grid, level: int, progress: int) -> GameState:
    return GameState(
        current_level=level,
        grid_size=len(grid),
        grid=grid,
        stage_progress=progress,
        bet={"amount": 1.0, "multiplier": 10},
    )


class TestAdvanceLevel:
    def test_cyclic_wraparound(self):
        assert advance_level(Level.ONE) == Level.TWO
        assert advance_level(Level.TWO) == Level.THREE
        assert advance_level(Level.THREE) == Level.ONE


class TestProcessStageCleared:
    """Removal, progress and overflow law."""

    def test_empty_list_is_a_no_op(self):
        state = make_state(level_1_grid_with_oranges(), level=1, progress=7)
        before = state.model_copy(deep=True)

        result = process_stage_cleared_symbols(state, [], SeededRNG(seed=1))

        assert result.advanced is False
        assert result.old_level == result.new_level == Level.ONE
        assert result.new_positions == []
        assert state == before

    def test_progress_accumulates_below_target(self):
        state = make_state(level_1_grid_with_oranges(), level=1, progress=3)
        found = find_stage_cleared_symbols(state.grid, Level.ONE)

        result = process_stage_cleared_symbols(state, found, SeededRNG(seed=1))

        assert result.advanced is False
        assert state.stage_progress == 7
        assert state.current_level == 1
        assert len(state.grid) == 4
        # Columns 0 and 3 each lost two cells
        assert sorted((p.x, p.y) for p in result.new_positions) == [(0, 0), (0, 1), (3, 0), (3, 1)]

    def test_removed_cells_fall_in_untouched_columns_only(self):
        state = make_state(level_1_grid_with_oranges(), level=1, progress=0)
        found = find_stage_cleared_symbols(state.grid, Level.ONE)
        before = [row[:] for row in state.grid]

        process_stage_cleared_symbols(state, found, SeededRNG(seed=1))

        for y in range(4):
            for x in (1, 2):
                assert state.grid[y][x] == before[y][x]
        # Column 0 survivors G, Y settle at the bottom in order
        assert [state.grid[2][0], state.grid[3][0]] == [G, Y]

    def test_scenario_progress_13_plus_4_advances_to_level_2(self):
        state = make_state(level_1_grid_with_oranges(), level=1, progress=13)
        found = find_stage_cleared_symbols(state.grid, Level.ONE)
        assert len(found) == 4

        result = process_stage_cleared_symbols(state, found, SeededRNG(seed=1))

        assert result.advanced is True
        assert result.old_level == Level.ONE
        assert result.new_level == Level.TWO
        assert state.current_level == 2
        assert state.grid_size == 5
        assert len(state.grid) == 5 and all(len(row) == 5 for row in state.grid)
        assert state.stage_progress == 2
        assert len(result.new_positions) == 25

    def test_scenario_level_3_wraps_to_level_1(self):
        state = make_state(level_3_grid_with_strawberries(), level=3, progress=14)
        found = find_stage_cleared_symbols(state.grid, Level.THREE)

        result = process_stage_cleared_symbols(state, found, SeededRNG(seed=1))

        assert result.advanced is True
        assert result.old_level == Level.THREE
        assert result.new_level == Level.ONE
        assert state.current_level == 1
        assert state.grid_size == 4
        assert len(state.grid) == 4
        assert state.stage_progress == 1

    @pytest.mark.parametrize("progress", range(STAGE_PROGRESS_TARGET))
    def test_overflow_law(self, progress):
        state = make_state(level_1_grid_with_oranges(), level=1, progress=progress)
        found = find_stage_cleared_symbols(state.grid, Level.ONE)
        total = progress + len(found)

        result = process_stage_cleared_symbols(state, found, SeededRNG(seed=progress))

        if total >= STAGE_PROGRESS_TARGET:
            assert result.advanced is True
            assert state.stage_progress == total - STAGE_PROGRESS_TARGET
            assert 0 <= state.stage_progress <= len(found) - 1
            assert state.current_level == 2
        else:
            assert result.advanced is False
            assert state.stage_progress == total
            assert state.current_level == 1

    def test_regenerated_grid_can_forbid_free_game(self):
        for seed in range(30):
            state = make_state(level_1_grid_with_oranges(), level=1, progress=14)
            found = find_stage_cleared_symbols(state.grid, Level.ONE)
            process_stage_cleared_symbols(state, found, SeededRNG(seed=seed), forbid_free_game=True)
            assert all("free_game" not in row for row in state.grid)
