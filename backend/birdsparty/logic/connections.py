"""Connection detection, payout calculation and stage-cleared symbol scanning."""
import logging

from birdsparty.logic.models import Connection, Position, ProgressionSymbol
from birdsparty.logic.tables import DENOMINATION, Level, Symbol, is_bird

logger = logging.getLogger(__name__)


def find_connections(
    grid: list[list[str]], level: Level, bet_multiplier: int = 1
) -> list[Connection]:
    """
    Find all groups of 4-directionally adjacent identical bird symbols.

    Scans row-major; only groups of at least the level's minimum size are
    returned. Stage-cleared and free game symbols never take part.
    """
    connections: list[Connection] = []
    visited = [[False] * len(row) for row in grid]
    min_connection = level.min_connection

    for y, row in enumerate(grid):
        for x, cell in enumerate(row):
            if visited[y][x] or not is_bird(cell):
                continue
            positions = _flood_fill(grid, x, y, cell, visited)
            if len(positions) >= min_connection:
                connections.append(
                    Connection(
                        symbol=cell,
                        positions=positions,
                        count=len(positions),
                        payout=calculate_payout(cell, len(positions), level, bet_multiplier),
                    )
                )

    return connections


def _flood_fill(
    grid: list[list[str]], start_x: int, start_y: int, symbol: str, visited: list[list[bool]]
) -> list[Position]:
    positions: list[Position] = []
    stack = [(start_x, start_y)]

    while stack:
        x, y = stack.pop()
        if y < 0 or y >= len(grid) or x < 0 or x >= len(grid[y]):
            continue
        if visited[y][x] or grid[y][x] != symbol:
            continue

        visited[y][x] = True
        positions.append(Position(x=x, y=y))

        # Horizontal and vertical neighbours only
        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))

    return positions


def calculate_payout(symbol: str, count: int, level: Level, bet_multiplier: int) -> float:
    """
    Payout for a connection, rounded to 2 decimals.

    Counts past the largest tabulated key use that key's value.
    """
    payouts = level.paytable.get(Symbol(symbol)) if is_bird(symbol) else None
    if not payouts:
        return 0.0
    key = min(count, max(payouts))
    if key not in payouts:
        return 0.0
    return round(payouts[key] * DENOMINATION * bet_multiplier, 2)


def has_potential_connections(grid: list[list[str]], level: Level) -> bool:
    return bool(find_connections(grid, level))


def find_stage_cleared_symbols(grid: list[list[str]], level: Level) -> list[ProgressionSymbol]:
    """Row-major scan for the level's own stage-cleared symbol."""
    expected = level.stage_cleared_symbol.value
    found = [
        ProgressionSymbol(symbol=expected, position=Position(x=x, y=y))
        for y, row in enumerate(grid)
        for x, cell in enumerate(row)
        if cell == expected
    ]
    logger.debug("Found %d stage-cleared symbols (%s) for level %d", len(found), expected, level)
    return found


def count_free_game_symbols(grid: list[list[str]]) -> int:
    return sum(row.count(Symbol.FREE_GAME.value) for row in grid)
