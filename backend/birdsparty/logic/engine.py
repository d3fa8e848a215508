"""Game engine: spin, stage-cleared processing and cascade steps."""
import logging
from dataclasses import dataclass

from birdsparty.config import settings
from birdsparty.logic.connections import (
    count_free_game_symbols,
    find_connections,
    find_stage_cleared_symbols,
)
from birdsparty.logic.editor import EditScope, remove_and_refill
from birdsparty.logic.generator import (
    generate_grid_with_connection,
    generate_grid_without_connection,
)
from birdsparty.logic.models import (
    CascadeResult,
    Connection,
    FreeSpinState,
    GameMode,
    GameState,
    SpinResult,
    StageClearedResult,
)
from birdsparty.logic.progression import process_stage_cleared_symbols
from birdsparty.logic.reconciler import reconcile
from birdsparty.logic.rng import ProductionRNG, RNGBase
from birdsparty.logic.tables import BET_AMOUNT_TO_MULTIPLIER, FREE_SPIN_MULTIPLIERS
from birdsparty.services import OutcomeProvider, PreferredOutcome, RTPProvider

logger = logging.getLogger(__name__)

FREE_SPINS_AWARDED = settings.free_spins_awarded


@dataclass(frozen=True)
class RoundContext:
    """Identifiers forwarded to the settings and RNG services."""

    client_id: str
    game_id: str
    player_id: str
    bet_id: str


class GameEngine:
    """
    Birds Party rules engine.

    Every call takes the caller's GameState, works on a deep copy and returns
    the updated copy inside its result; nothing is kept between calls.

    Implements:
    - Spin: weighted grid with a natural connection, loss grid on request
    - Stage-cleared processing: surgical removal, progress, level advance
    - Cascade: connection removal, gravity, re-detection
    - Outcome reconciliation against the RNG service preference
    - Free spins trigger, multiplier and countdown
    """

    def __init__(
        self,
        rtp_provider: RTPProvider,
        outcome_provider: OutcomeProvider,
        rng: RNGBase | None = None,
    ):
        self.rtp_provider = rtp_provider
        self.outcome_provider = outcome_provider
        self.rng = rng or ProductionRNG()

    def spin(self, ctx: RoundContext, state: GameState) -> SpinResult:
        """
        Execute a spin.

        A level of 0 starts from the default state. Costs the bet unless the
        spin is itself a free spin.
        """
        state = state.model_copy(deep=True)
        if state.current_level == 0:
            state = GameState.initial(bet_amount=state.bet.amount)
        self._normalize(state)

        level = state.level
        was_free_spin = state.in_free_spins

        # 1) Generate grid with a natural bird connection
        state.grid = generate_grid_with_connection(level, self.rng, forbid_free_game=was_free_spin)

        # 2) Price connections and consult the RNG service
        connections = self._price(state, find_connections(state.grid, level, state.bet.multiplier))
        preferred = None
        if connections:
            preferred = self._preferred_outcome(ctx, state, connections)
            if preferred == PreferredOutcome.LOSS:
                logger.info("RNG determined a loss outcome for spin")
                state.grid = generate_grid_without_connection(
                    level, self.rng, forbid_free_game=was_free_spin
                )
                connections = []

        # 3) Detect stage-cleared symbols (removed later by the client)
        stage_cleared = find_stage_cleared_symbols(state.grid, level)
        state.stage_cleared_symbols = stage_cleared

        state.cascade_count = 0
        state.total_win = _total(connections)
        state.last_connections = connections
        state.cascading = bool(connections)

        # 4) Free spins trigger and countdown
        triggered = self._maybe_trigger_free_spins(state)
        ended = False
        if state.in_free_spins:
            state.free_spins.remaining -= 1
            if state.free_spins.remaining <= 0:
                state.game_mode = GameMode.BASE
                state.free_spins = FreeSpinState()
                ended = True
                logger.info("Free spins ended")

        total_cost = 0.0 if was_free_spin else state.bet.amount

        logger.info(
            "Spin completed: level=%d, gridSize=%dx%d, stageCleared=%d, cascading=%s, totalWin=%.2f",
            state.current_level,
            state.grid_size,
            state.grid_size,
            len(stage_cleared),
            state.cascading,
            state.total_win,
        )

        return SpinResult(
            state=state,
            stage_cleared_symbols=stage_cleared,
            connections=connections,
            total_cost=total_cost,
            preferred_outcome=preferred.value if preferred else None,
            free_spins_triggered=triggered,
            free_spins_ended=ended,
        )

    def process_stage_cleared(self, ctx: RoundContext, state: GameState) -> StageClearedResult:
        """
        Remove pending stage-cleared symbols, advance progress and re-detect wins.

        Connections from the previous step that are still standing untouched
        were already credited, so only newly formed groups add to totalWin and
        are put to the RNG service.
        """
        state = state.model_copy(deep=True)
        self._normalize(state)

        found = state.stage_cleared_symbols or find_stage_cleared_symbols(state.grid, state.level)
        pending = state.last_connections

        forbid_free_game = state.in_free_spins and settings.progression_respects_free_spins
        advance = process_stage_cleared_symbols(
            state, found, self.rng, forbid_free_game=forbid_free_game
        )
        level = state.level
        credited = set() if advance.advanced else {c.key for c in pending}

        connections = self._price(state, find_connections(state.grid, level, state.bet.multiplier))
        fresh = [c for c in connections if c.key not in credited]
        bypassed = False
        preferred = None
        if fresh:
            preferred = self._preferred_outcome(ctx, state, fresh)
            if preferred == PreferredOutcome.LOSS:
                logger.info("RNG determined a loss outcome after stage-cleared processing")
                outcome = reconcile(
                    state,
                    connections,
                    advance.new_positions,
                    level,
                    self.rng,
                    edits_per_attempt=settings.reconcile_edits_progression,
                    forbid_free_game=state.in_free_spins,
                    standing=[c for c in connections if c.key in credited],
                )
                connections = outcome.connections
                bypassed = outcome.bypassed
                fresh = [c for c in connections if c.key not in credited]

        state.stage_cleared_symbols = find_stage_cleared_symbols(state.grid, level)
        state.total_win += _total(fresh)
        state.last_connections = connections
        state.cascading = bool(connections)
        state.cascade_count = 0

        logger.info(
            "Stage-cleared processed: count=%d, levelAdvanced=%s, oldLevel=%d, newLevel=%d, "
            "progress=%d, cascading=%s",
            len(found),
            advance.advanced,
            advance.old_level,
            advance.new_level,
            state.stage_progress,
            state.cascading,
        )

        return StageClearedResult(
            state=state,
            stage_cleared_count=len(found),
            level_advanced=advance.advanced,
            old_level=int(advance.old_level),
            new_level=int(advance.new_level),
            connections=connections,
            reconciliation_bypassed=bypassed,
            preferred_outcome=preferred.value if preferred else None,
        )

    def cascade(self, ctx: RoundContext, state: GameState) -> CascadeResult:
        """
        Resolve one cascade step.

        Removes the previous step's connections (surgically) when there are
        any, otherwise detects directly on the given grid. Stage-cleared
        symbols on the settled grid are reported, not removed.
        """
        state = state.model_copy(deep=True)
        self._normalize(state)
        state.cascade_count += 1

        level = state.level
        forbid_free_game = state.in_free_spins

        new_positions = []
        if state.last_connections:
            new_positions = remove_and_refill(
                state.grid,
                [pos for connection in state.last_connections for pos in connection.positions],
                level,
                self.rng,
                forbid_free_game=forbid_free_game,
                scope=EditScope.SURGICAL,
            )

        connections = self._price(state, find_connections(state.grid, level, state.bet.multiplier))
        bypassed = False
        preferred = None
        if connections:
            preferred = self._preferred_outcome(ctx, state, connections)
            if preferred == PreferredOutcome.LOSS:
                logger.info("RNG determined a loss outcome for cascade %d", state.cascade_count)
                outcome = reconcile(
                    state,
                    connections,
                    new_positions,
                    level,
                    self.rng,
                    edits_per_attempt=settings.reconcile_edits_cascade,
                    forbid_free_game=forbid_free_game,
                )
                connections = outcome.connections
                bypassed = outcome.bypassed

        stage_cleared = find_stage_cleared_symbols(state.grid, level)
        state.stage_cleared_symbols = stage_cleared

        triggered = False
        if not connections:
            triggered = self._maybe_trigger_free_spins(state)

        state.total_win += _total(connections)
        state.last_connections = connections
        state.cascading = bool(connections)

        logger.info(
            "Cascade completed: level=%d, gridSize=%dx%d, totalWin=%.2f, cascading=%s, "
            "cascadeCount=%d, stageClearedDetected=%s",
            state.current_level,
            state.grid_size,
            state.grid_size,
            state.total_win,
            state.cascading,
            state.cascade_count,
            bool(stage_cleared),
        )

        return CascadeResult(
            state=state,
            connections=connections,
            stage_cleared_symbols=stage_cleared,
            reconciliation_bypassed=bypassed,
            preferred_outcome=preferred.value if preferred else None,
            free_spins_triggered=triggered,
        )

    def _normalize(self, state: GameState) -> None:
        """Re-derive grid size and bet multiplier from level and bet amount."""
        expected = state.level.grid_size
        if state.grid_size != expected:
            logger.info("Corrected grid size to %d for level %d", expected, state.current_level)
            state.grid_size = expected
        state.bet.multiplier = BET_AMOUNT_TO_MULTIPLIER[state.bet.amount]

    def _price(self, state: GameState, connections: list[Connection]) -> list[Connection]:
        """Scale connection payouts by the free spins multiplier."""
        if state.in_free_spins:
            for connection in connections:
                connection.payout *= state.free_spins.multiplier
        return connections

    def _preferred_outcome(
        self, ctx: RoundContext, state: GameState, connections: list[Connection]
    ) -> PreferredOutcome:
        rtp = self.rtp_provider.get_rtp(ctx.client_id, ctx.game_id, ctx.player_id)
        payout_multiplier = _total(connections) / state.bet.amount
        return self.outcome_provider.get_outcome(
            ctx.client_id,
            ctx.game_id,
            ctx.player_id,
            ctx.bet_id,
            rtp,
            payout_multiplier,
            state.bet.amount,
        )

    def _maybe_trigger_free_spins(self, state: GameState) -> bool:
        if state.game_mode != GameMode.BASE or count_free_game_symbols(state.grid) == 0:
            return False
        state.game_mode = GameMode.FREE_SPINS
        state.free_spins = FreeSpinState(
            remaining=FREE_SPINS_AWARDED,
            total_awarded=FREE_SPINS_AWARDED,
            multiplier=FREE_SPIN_MULTIPLIERS[self.rng.randbelow(len(FREE_SPIN_MULTIPLIERS))],
        )
        logger.info("Free spins triggered with %.1fx multiplier", state.free_spins.multiplier)
        return True


def _total(connections: list[Connection]) -> float:
    return sum(connection.payout for connection in connections)
