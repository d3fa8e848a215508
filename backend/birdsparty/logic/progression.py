"""Stage progress accumulation and cyclic level advancement."""
import logging
from dataclasses import dataclass, field

from birdsparty.config import settings
from birdsparty.logic.editor import EditScope, remove_and_refill
from birdsparty.logic.generator import generate_grid
from birdsparty.logic.models import GameState, Position, ProgressionSymbol
from birdsparty.logic.rng import RNGBase
from birdsparty.logic.tables import Level

logger = logging.getLogger(__name__)

STAGE_PROGRESS_TARGET = settings.stage_progress_target


@dataclass
class AdvanceResult:
    advanced: bool
    old_level: Level
    new_level: Level
    new_positions: list[Position] = field(default_factory=list)


def advance_level(level: Level) -> Level:
    """Next level, wrapping 3 -> 1."""
    return level.next()


def update_state_for_level(state: GameState, new_level: Level) -> None:
    state.current_level = int(new_level)
    state.grid_size = new_level.grid_size
    state.stage_progress = 0
    logger.info("Advanced to level %d with %dx%d grid", new_level, state.grid_size, state.grid_size)


def process_stage_cleared_symbols(
    state: GameState,
    found: list[ProgressionSymbol],
    rng: RNGBase,
    forbid_free_game: bool = False,
    target: int = STAGE_PROGRESS_TARGET,
) -> AdvanceResult:
    """
    Remove stage-cleared symbols, refill surgically and count them as progress.

    Reaching `target` advances the level, carries the excess progress over and
    regenerates the whole grid at the new size; every cell of that grid is
    reported as newly generated. An empty `found` list changes nothing.
    """
    old_level = state.level
    if not found:
        return AdvanceResult(advanced=False, old_level=old_level, new_level=old_level)

    new_positions = remove_and_refill(
        state.grid,
        [symbol.position for symbol in found],
        old_level,
        rng,
        forbid_free_game=forbid_free_game,
        scope=EditScope.SURGICAL,
    )

    state.stage_progress += len(found)
    logger.info(
        "Added %d stage-cleared symbols to progress, total: %d/%d",
        len(found),
        state.stage_progress,
        target,
    )

    if state.stage_progress < target:
        return AdvanceResult(
            advanced=False, old_level=old_level, new_level=old_level, new_positions=new_positions
        )

    excess = state.stage_progress - target
    new_level = advance_level(old_level)
    update_state_for_level(state, new_level)
    state.stage_progress = excess
    state.grid = generate_grid(new_level, rng, forbid_free_game)

    logger.info("Level advanced from %d to %d, excess progress: %d", old_level, new_level, excess)
    return AdvanceResult(
        advanced=True,
        old_level=old_level,
        new_level=new_level,
        new_positions=[
            Position(x=x, y=y) for y in range(new_level.grid_size) for x in range(new_level.grid_size)
        ],
    )
