"""Cell removal, per-column gravity and refill."""
import logging
from enum import Enum
from typing import Iterable

from birdsparty.logic.generator import Grid, has_free_game, weighted_symbol
from birdsparty.logic.models import Position
from birdsparty.logic.rng import RNGBase
from birdsparty.logic.tables import EMPTY, Level

logger = logging.getLogger(__name__)


class EditScope(str, Enum):
    """Which columns gravity runs over after a removal."""

    FULL = "full"
    SURGICAL = "surgical"


def remove_cells(grid: Grid, positions: Iterable[Position]) -> list[Position]:
    """Blank out the given cells; out-of-bounds positions are skipped."""
    removed: list[Position] = []
    size = len(grid)
    for pos in positions:
        if 0 <= pos.y < size and 0 <= pos.x < len(grid[pos.y]):
            if grid[pos.y][pos.x] != EMPTY:
                logger.debug("Removed %s at (%d,%d)", grid[pos.y][pos.x], pos.x, pos.y)
            grid[pos.y][pos.x] = EMPTY
            removed.append(pos)
    return removed


def apply_gravity(
    grid: Grid,
    level: Level,
    rng: RNGBase,
    columns: Iterable[int] | None = None,
    forbid_free_game: bool = False,
) -> list[Position]:
    """
    Compact each targeted column downward and refill vacated top cells.

    Non-empty cells keep their relative order. `columns=None` processes every
    column. Returns the positions that received freshly drawn symbols.
    """
    size = len(grid)
    targets = range(size) if columns is None else sorted(set(columns))
    new_positions: list[Position] = []

    for x in targets:
        if not 0 <= x < size:
            continue

        write_y = size - 1
        for y in range(size - 1, -1, -1):
            if grid[y][x] != EMPTY:
                if y != write_y:
                    grid[write_y][x] = grid[y][x]
                    grid[y][x] = EMPTY
                    logger.debug("Moved %s from (%d,%d) to (%d,%d)", grid[write_y][x], x, y, x, write_y)
                write_y -= 1

        for y in range(write_y + 1):
            allow_free_game = not forbid_free_game and not has_free_game(grid)
            grid[y][x] = weighted_symbol(level, rng, forbid_free_game=not allow_free_game).value
            new_positions.append(Position(x=x, y=y))

    return new_positions


def remove_and_refill(
    grid: Grid,
    positions: Iterable[Position],
    level: Level,
    rng: RNGBase,
    forbid_free_game: bool = False,
    scope: EditScope = EditScope.SURGICAL,
) -> list[Position]:
    """
    Remove cells, apply gravity and refill.

    SURGICAL scope touches only the columns that lost a cell; FULL scope runs
    gravity on every column. Returns the newly generated positions, which are
    the only cells outcome reconciliation may later edit.
    """
    removed = remove_cells(grid, positions)
    columns = None if scope == EditScope.FULL else {pos.x for pos in removed}
    if columns is not None:
        logger.debug("Applying surgical gravity to columns %s", sorted(columns))
    return apply_gravity(grid, level, rng, columns=columns, forbid_free_game=forbid_free_game)
