"""Outcome reconciler: containment, success and bypass."""
from birdsparty.logic.connections import find_connections
from birdsparty.logic.models import GameState, Position
from birdsparty.logic.reconciler import reconcile
from birdsparty.logic.rng import RNGBase, SeededRNG
from birdsparty.logic.tables import Level

P, G, Y, B, R = "purple_owl", "green_owl", "yellow_owl", "blue_owl", "red_owl"


class ConstantRNG(RNGBase):
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def randint(self, a: int, b: int) -> int:
        return a


def make_state(grid: list[list[str]]) -> GameState:
    return GameState(current_level=1, grid_size=len(grid), grid=grid, bet={"amount": 1.0, "multiplier": 10})


class TestReconcile:
    """Surgical loss attempts over freshly generated cells."""

    def test_breaks_connection_through_editable_cell(self):
        """Redrawing (3,0) as a red owl leaves three purples."""
        grid = [
            [P, P, P, P],
            [G, Y, G, Y],
            [Y, G, Y, G],
            [G, Y, G, Y],
        ]
        state = make_state(grid)
        candidates = find_connections(state.grid, Level.ONE)

        result = reconcile(
            state, candidates, [Position(x=3, y=0)], Level.ONE, ConstantRNG(0.9), edits_per_attempt=3
        )

        assert result.bypassed is False
        assert result.connections == []
        assert result.attempts == 1
        assert state.grid[0] == [P, P, P, R]
        assert find_connections(state.grid, Level.ONE) == []

    def test_bypass_when_redraws_cannot_break_the_win(self):
        """Every redraw is a purple owl again, so the connection stands."""
        grid = [
            [P, P, P, P],
            [G, Y, G, Y],
            [Y, G, Y, G],
            [G, Y, G, Y],
        ]
        state = make_state(grid)
        before = [row[:] for row in state.grid]
        candidates = find_connections(state.grid, Level.ONE)

        result = reconcile(
            state,
            candidates,
            [Position(x=3, y=0)],
            Level.ONE,
            ConstantRNG(0.0),
            edits_per_attempt=3,
            max_attempts=5,
        )

        assert result.bypassed is True
        assert result.connections == candidates
        assert result.attempts == 5
        assert state.grid == before

    def test_bypass_without_editable_cells(self):
        grid = [[P] * 4 for _ in range(4)]
        state = make_state(grid)
        candidates = find_connections(state.grid, Level.ONE)

        result = reconcile(state, candidates, [], Level.ONE, SeededRNG(seed=1), edits_per_attempt=4)

        assert result.bypassed is True
        assert result.connections == candidates

    def test_no_candidates_is_a_no_op(self):
        state = make_state([[P, G, P, G], [G, P, G, P], [P, G, P, G], [G, P, G, P]])
        result = reconcile(state, [], [Position(x=0, y=0)], Level.ONE, SeededRNG(seed=1), edits_per_attempt=3)
        assert result.bypassed is False
        assert result.connections == []

    def test_cells_outside_editable_surface_never_change(self):
        editable = [Position(x=x, y=0) for x in range(5)]
        editable_cells = {(p.x, p.y) for p in editable}
        for seed in range(30):
            grid = [
                [B, B, B, B, B],
                [G, Y, G, Y, G],
                [Y, G, Y, G, Y],
                [G, Y, G, Y, G],
                [Y, G, Y, G, Y],
            ]
            state = make_state(grid)
            state.current_level = 2
            before = [row[:] for row in state.grid]
            candidates = find_connections(state.grid, Level.TWO)

            reconcile(state, candidates, editable, Level.TWO, SeededRNG(seed=seed), edits_per_attempt=4)

            for y in range(5):
                for x in range(5):
                    if (x, y) not in editable_cells:
                        assert state.grid[y][x] == before[y][x]

    def test_already_credited_connection_may_stand(self):
        """Only the red run is new; the purple run was paid earlier."""
        grid = [
            [P, P, P, P],
            [G, Y, G, Y],
            [Y, G, Y, G],
            [R, R, R, R],
        ]
        state = make_state(grid)
        candidates = find_connections(state.grid, Level.ONE)
        standing = [c for c in candidates if c.symbol == P]

        result = reconcile(
            state,
            candidates,
            [Position(x=0, y=3)],
            Level.ONE,
            ConstantRNG(0.0),
            edits_per_attempt=3,
            standing=standing,
        )

        assert result.bypassed is False
        assert [c.symbol for c in result.connections] == [P]
        assert state.grid[3] == [P, R, R, R]
