"""Grid editor: removal, column gravity and refill."""
from birdsparty.logic.editor import EditScope, apply_gravity, remove_and_refill, remove_cells
from birdsparty.logic.models import Position
from birdsparty.logic.rng import RNGBase, SeededRNG
from birdsparty.logic.tables import Level

P, G, Y, B, R = "purple_owl", "green_owl", "yellow_owl", "blue_owl", "red_owl"
F, O = "free_game", "orange_slice"


class ConstantRNG(RNGBase):
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def randint(self, a: int, b: int) -> int:
        return a


def base_grid() -> list[list[str]]:
    return [
        [P, G, Y, B],
        [G, Y, B, R],
        [Y, B, R, P],
        [B, R, P, G],
    ]


class TestRemoveCells:
    def test_blanks_cells_and_skips_out_of_bounds(self):
        grid = base_grid()
        removed = remove_cells(grid, [Position(x=1, y=1), Position(x=9, y=0), Position(x=0, y=-1)])
        assert removed == [Position(x=1, y=1)]
        assert grid[1][1] == ""


class TestGravity:
    """Stable per-column compaction and top refill."""

    def test_compaction_preserves_relative_order(self):
        grid = base_grid()
        # Column 0 holds P, G, Y, B top to bottom; remove G and B
        remove_and_refill(grid, [Position(x=0, y=1), Position(x=0, y=3)], Level.ONE, ConstantRNG(0.9))
        # P and Y fall to the bottom keeping order, two reds drawn on top
        assert [grid[y][0] for y in range(4)] == [R, R, P, Y]

    def test_returns_new_positions_at_top_of_column(self):
        grid = base_grid()
        new_positions = remove_and_refill(
            grid, [Position(x=2, y=2), Position(x=3, y=0)], Level.ONE, ConstantRNG(0.9)
        )
        assert sorted((p.x, p.y) for p in new_positions) == [(2, 0), (3, 0)]

    def test_surgical_scope_leaves_other_columns_identical(self):
        for seed in range(20):
            grid = base_grid()
            before = [row[:] for row in grid]
            remove_and_refill(
                grid,
                [Position(x=1, y=0), Position(x=1, y=3)],
                Level.ONE,
                SeededRNG(seed=seed),
                scope=EditScope.SURGICAL,
            )
            for y in range(4):
                for x in (0, 2, 3):
                    assert grid[y][x] == before[y][x]

    def test_full_scope_refills_holes_in_every_column(self):
        grid = base_grid()
        grid[0][2] = ""
        grid[3][3] = ""
        new_positions = remove_and_refill(
            grid, [Position(x=0, y=0)], Level.ONE, SeededRNG(seed=5), scope=EditScope.FULL
        )
        assert sorted((p.x, p.y) for p in new_positions) == [(0, 0), (2, 0), (3, 0)]
        assert all(cell != "" for row in grid for cell in row)

    def test_surgical_scope_ignores_holes_in_untouched_columns(self):
        grid = base_grid()
        grid[0][2] = ""
        remove_and_refill(grid, [Position(x=0, y=0)], Level.ONE, SeededRNG(seed=5))
        assert grid[0][2] == ""

    def test_refill_respects_existing_free_game(self):
        grid = base_grid()
        grid[3][3] = F
        # Every unconstrained draw would be a free game symbol
        remove_and_refill(grid, [Position(x=0, y=0), Position(x=1, y=0)], Level.ONE, ConstantRNG(0.998))
        assert sum(row.count(F) for row in grid) == 1

    def test_refill_places_at_most_one_free_game(self):
        grid = base_grid()
        remove_and_refill(
            grid,
            [Position(x=x, y=0) for x in range(4)],
            Level.ONE,
            ConstantRNG(0.998),
        )
        assert sum(row.count(F) for row in grid) == 1

    def test_forbid_free_game_on_refill(self):
        grid = base_grid()
        remove_and_refill(
            grid,
            [Position(x=x, y=0) for x in range(4)],
            Level.ONE,
            ConstantRNG(0.998),
            forbid_free_game=True,
        )
        assert sum(row.count(F) for row in grid) == 0

    def test_column_without_holes_is_unchanged(self):
        grid = base_grid()
        before = [row[:] for row in grid]
        new_positions = apply_gravity(grid, Level.ONE, SeededRNG(seed=1), columns=[0, 1])
        assert new_positions == []
        assert grid == before
