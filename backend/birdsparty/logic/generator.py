"""Weighted grid generation, including forced win/loss grids."""
import logging

from birdsparty.config import settings
from birdsparty.logic.connections import count_free_game_symbols, find_connections
from birdsparty.logic.rng import RNGBase
from birdsparty.logic.tables import BIRD_SYMBOLS, Level, Symbol, is_bird

logger = logging.getLogger(__name__)

Grid = list[list[str]]

MAX_GENERATION_ATTEMPTS = settings.max_generation_attempts


def weighted_symbol(level: Level, rng: RNGBase, forbid_free_game: bool = False) -> Symbol:
    """
    Draw one symbol from the level's ordered weight table.

    The draw is uniform(0, total) against a running cumulative sum; the first
    symbol whose cumulative weight reaches the roll wins.
    """
    pool = [
        (symbol, weight)
        for symbol, weight in level.weights
        if not (forbid_free_game and symbol == Symbol.FREE_GAME)
    ]
    total_weight = sum(weight for _, weight in pool)

    roll = rng.random() * total_weight
    cumulative = 0.0
    for symbol, weight in pool:
        cumulative += weight
        if roll <= cumulative:
            return symbol
    return BIRD_SYMBOLS[0]


def has_free_game(grid: Grid) -> bool:
    return count_free_game_symbols(grid) > 0


def generate_grid(level: Level, rng: RNGBase, forbid_free_game: bool = False) -> Grid:
    """Generate a size x size grid; at most one free game symbol is placed."""
    size = level.grid_size
    grid: Grid = []
    free_game_placed = False
    for _ in range(size):
        row = []
        for _ in range(size):
            allow_free_game = not free_game_placed and not forbid_free_game
            symbol = weighted_symbol(level, rng, forbid_free_game=not allow_free_game)
            if symbol == Symbol.FREE_GAME:
                free_game_placed = True
            row.append(symbol.value)
        grid.append(row)
    return grid


def generate_grid_with_connection(
    level: Level, rng: RNGBase, forbid_free_game: bool = False
) -> Grid:
    """Retry plain generation until a bird connection exists, else force one."""
    logger.debug("Generating grid with win for level %d (%dx%d)", level, level.grid_size, level.grid_size)
    for _ in range(MAX_GENERATION_ATTEMPTS):
        grid = generate_grid(level, rng, forbid_free_game)
        if find_connections(grid, level):
            return grid
    return force_connection_grid(level, rng, forbid_free_game)


def generate_grid_without_connection(
    level: Level, rng: RNGBase, forbid_free_game: bool = False
) -> Grid:
    """Retry plain generation until no bird connection exists, else force one."""
    logger.debug("Generating loss grid for level %d (%dx%d)", level, level.grid_size, level.grid_size)
    for _ in range(MAX_GENERATION_ATTEMPTS):
        grid = generate_grid(level, rng, forbid_free_game)
        if not find_connections(grid, level):
            return grid
    return force_no_connection_grid(level, rng)


def force_connection_grid(level: Level, rng: RNGBase, forbid_free_game: bool = False) -> Grid:
    """Overwrite a random horizontal run of min-connection length with one bird."""
    size = level.grid_size
    min_connection = level.min_connection
    grid = generate_grid(level, rng, forbid_free_game)

    target = BIRD_SYMBOLS[rng.randbelow(len(BIRD_SYMBOLS))]
    start_x = rng.randbelow(size - min_connection + 1)
    y = rng.randbelow(size)
    for x in range(start_x, start_x + min_connection):
        grid[y][x] = target.value

    logger.info("Forced %s run at row %d from column %d", target.value, y, start_x)
    return grid


def force_no_connection_grid(level: Level, rng: RNGBase) -> Grid:
    """
    Build a birds-only grid cell by cell, never repeating the left or top bird.

    Best effort: longer paths around corners are not prevented.
    """
    size = level.grid_size
    grid: Grid = [[""] * size for _ in range(size)]
    for y in range(size):
        for x in range(size):
            excluded = set()
            if x > 0 and is_bird(grid[y][x - 1]):
                excluded.add(grid[y][x - 1])
            if y > 0 and is_bird(grid[y - 1][x]):
                excluded.add(grid[y - 1][x])
            available = [bird for bird in BIRD_SYMBOLS if bird.value not in excluded]
            grid[y][x] = available[rng.randbelow(len(available))].value
    return grid
