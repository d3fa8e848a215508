"""Surgical outcome reconciliation against an external loss preference."""
import logging
from dataclasses import dataclass, field

from birdsparty.config import settings
from birdsparty.logic.connections import find_connections
from birdsparty.logic.generator import Grid, weighted_symbol
from birdsparty.logic.models import Connection, GameState, Position
from birdsparty.logic.rng import RNGBase
from birdsparty.logic.tables import Level, Symbol

logger = logging.getLogger(__name__)

RECONCILE_MAX_ATTEMPTS = settings.reconcile_max_attempts


@dataclass
class ReconcileResult:
    """Connections left standing and whether the loss could not be produced."""

    connections: list[Connection] = field(default_factory=list)
    bypassed: bool = False
    attempts: int = 0


def reconcile(
    state: GameState,
    candidates: list[Connection],
    editable: list[Position],
    level: Level,
    rng: RNGBase,
    edits_per_attempt: int,
    forbid_free_game: bool = False,
    max_attempts: int = RECONCILE_MAX_ATTEMPTS,
    standing: list[Connection] | None = None,
) -> ReconcileResult:
    """
    Try to remove every bird connection by redrawing freshly generated cells.

    Each attempt copies the grid and redraws up to `edits_per_attempt`
    positions picked from `editable`, re-checking connections after each
    redraw. The first copy whose only connections are in `standing` (groups
    already paid earlier in the chain) replaces `state.grid`. When no attempt
    succeeds the grid is left untouched and the natural win stands
    (`bypassed=True`). Cells outside `editable` are never changed.
    """
    if not candidates:
        return ReconcileResult()

    allowed = {connection.key for connection in standing or ()}

    size = len(state.grid)
    surface = list(
        {
            (pos.x, pos.y): pos
            for pos in editable
            if 0 <= pos.y < size and 0 <= pos.x < len(state.grid[pos.y])
        }.values()
    )
    if not surface:
        logger.warning(
            "Loss preferred but no freshly generated cells to edit; keeping %d connections",
            len(candidates),
        )
        return ReconcileResult(connections=candidates, bypassed=True)

    logger.info(
        "Attempting surgical loss on %d connections over %d editable cells",
        len(candidates),
        len(surface),
    )
    edits = min(edits_per_attempt, len(surface))

    for attempt in range(1, max_attempts + 1):
        trial: Grid = [row[:] for row in state.grid]
        for pos in _sample(surface, edits, rng):
            original = trial[pos.y][pos.x]
            trial[pos.y][pos.x] = ""
            forbid = forbid_free_game or _contains_free_game(trial)
            trial[pos.y][pos.x] = weighted_symbol(level, rng, forbid_free_game=forbid).value

            remaining = find_connections(trial, level)
            if all(connection.key in allowed for connection in remaining):
                state.grid = trial
                logger.info(
                    "Surgical loss successful on attempt %d: (%d,%d) %s -> %s",
                    attempt,
                    pos.x,
                    pos.y,
                    original,
                    trial[pos.y][pos.x],
                )
                kept = [c for c in candidates if c.key in allowed]
                return ReconcileResult(connections=kept, attempts=attempt)

    logger.warning(
        "Surgical loss impossible after %d attempts; natural win of %d connections kept",
        max_attempts,
        len(candidates),
    )
    return ReconcileResult(connections=candidates, bypassed=True, attempts=max_attempts)


def _sample(positions: list[Position], k: int, rng: RNGBase) -> list[Position]:
    """Pick k distinct positions with a partial Fisher-Yates shuffle."""
    pool = list(positions)
    for i in range(k):
        j = i + rng.randbelow(len(pool) - i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


def _contains_free_game(grid: Grid) -> bool:
    return any(Symbol.FREE_GAME.value in row for row in grid)
