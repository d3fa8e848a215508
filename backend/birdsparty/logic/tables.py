"""Static symbol, level, weight and paytable definitions."""
from enum import Enum, IntEnum


class Symbol(str, Enum):
    """Grid symbols. Values are the wire strings stored in the grid."""

    # Regular birds: form connections and pay
    PURPLE_OWL = "purple_owl"
    GREEN_OWL = "green_owl"
    YELLOW_OWL = "yellow_owl"
    BLUE_OWL = "blue_owl"
    RED_OWL = "red_owl"

    # Free spins trigger, at most one per grid
    FREE_GAME = "free_game"

    # Stage-cleared (progression) symbols, one per level
    ORANGE_SLICE = "orange_slice"
    HONEY_POT = "honey_pot"
    STRAWBERRY = "strawberry"


# Transient marker for a vacated cell during removal/gravity
EMPTY = ""

BIRD_SYMBOLS: tuple[Symbol, ...] = (
    Symbol.PURPLE_OWL,
    Symbol.GREEN_OWL,
    Symbol.YELLOW_OWL,
    Symbol.BLUE_OWL,
    Symbol.RED_OWL,
)

STAGE_CLEARED_SYMBOLS: tuple[Symbol, ...] = (
    Symbol.ORANGE_SLICE,
    Symbol.HONEY_POT,
    Symbol.STRAWBERRY,
)

_BIRD_VALUES = frozenset(s.value for s in BIRD_SYMBOLS)
_STAGE_CLEARED_VALUES = frozenset(s.value for s in STAGE_CLEARED_SYMBOLS)
KNOWN_SYMBOL_VALUES = frozenset(s.value for s in Symbol)


def is_bird(symbol: str) -> bool:
    """True for regular bird symbols (the only ones that connect)."""
    return symbol in _BIRD_VALUES


def is_stage_cleared(symbol: str) -> bool:
    """True for any level's stage-cleared symbol."""
    return symbol in _STAGE_CLEARED_VALUES


class Level(IntEnum):
    """Game level. Each level fixes grid size, min connection and paytable."""

    ONE = 1
    TWO = 2
    THREE = 3

    @property
    def grid_size(self) -> int:
        return LEVEL_GRID_SIZE[self]

    @property
    def min_connection(self) -> int:
        return LEVEL_MIN_CONNECTION[self]

    @property
    def stage_cleared_symbol(self) -> Symbol:
        return LEVEL_STAGE_CLEARED_SYMBOL[self]

    @property
    def paytable(self) -> dict[Symbol, dict[int, float]]:
        return PAYTABLES[self]

    @property
    def weights(self) -> tuple[tuple[Symbol, float], ...]:
        return LEVEL_WEIGHTS[self]

    def next(self) -> "Level":
        """Cyclic successor: 1 -> 2 -> 3 -> 1."""
        return NEXT_LEVEL[self]


LEVEL_GRID_SIZE: dict[Level, int] = {Level.ONE: 4, Level.TWO: 5, Level.THREE: 6}
LEVEL_MIN_CONNECTION: dict[Level, int] = {Level.ONE: 4, Level.TWO: 5, Level.THREE: 6}
LEVEL_STAGE_CLEARED_SYMBOL: dict[Level, Symbol] = {
    Level.ONE: Symbol.ORANGE_SLICE,
    Level.TWO: Symbol.HONEY_POT,
    Level.THREE: Symbol.STRAWBERRY,
}
NEXT_LEVEL: dict[Level, Level] = {
    Level.ONE: Level.TWO,
    Level.TWO: Level.THREE,
    Level.THREE: Level.ONE,
}


# Weighted draw tables. Ordered so that cumulative draws are reproducible
# for a given random source; totals need not sum to 1.
BIRD_WEIGHT = 0.2475
FREE_GAME_WEIGHT = 0.001
STAGE_CLEARED_WEIGHT = 0.002


def _level_weights(level: Level) -> tuple[tuple[Symbol, float], ...]:
    return (
        *((bird, BIRD_WEIGHT) for bird in BIRD_SYMBOLS),
        (Symbol.FREE_GAME, FREE_GAME_WEIGHT),
        (LEVEL_STAGE_CLEARED_SYMBOL[level], STAGE_CLEARED_WEIGHT),
    )


LEVEL_WEIGHTS: dict[Level, tuple[tuple[Symbol, float], ...]] = {
    level: _level_weights(level) for level in Level
}


# Paytables in credits for bet multiplier 1 (denomination 0.01).
# Keys run from the level's min connection to its full grid cell count.
PAYTABLE_LEVEL_1: dict[Symbol, dict[int, float]] = {
    Symbol.PURPLE_OWL: {4: 4, 5: 5, 6: 6, 7: 7, 8: 8, 9: 9, 10: 10, 11: 11, 12: 12, 13: 13, 14: 14, 15: 15, 16: 16},
    Symbol.GREEN_OWL: {4: 2, 5: 4, 6: 5, 7: 8, 8: 10, 9: 20, 10: 30, 11: 50, 12: 100, 13: 200, 14: 400, 15: 800, 16: 1600},
    Symbol.YELLOW_OWL: {4: 4, 5: 5, 6: 10, 7: 20, 8: 30, 9: 50, 10: 100, 11: 250, 12: 500, 13: 750, 14: 800, 15: 1200, 16: 6000},
    Symbol.BLUE_OWL: {4: 5, 5: 10, 6: 20, 7: 40, 8: 60, 9: 80, 10: 160, 11: 500, 12: 1000, 13: 2000, 14: 5000, 15: 7000, 16: 8000},
    Symbol.RED_OWL: {4: 10, 5: 30, 6: 50, 7: 60, 8: 100, 9: 750, 10: 1000, 11: 10000, 12: 20000, 13: 50000, 14: 60000, 15: 80000, 16: 100000},
}

PAYTABLE_LEVEL_2: dict[Symbol, dict[int, float]] = {
    Symbol.PURPLE_OWL: {5: 2, 6: 4, 7: 5, 8: 8, 9: 10, 10: 20, 11: 30, 12: 50, 13: 100, 14: 200, 15: 450, 16: 1000, 17: 1200, 18: 1500, 19: 2000, 20: 2500, 21: 3000, 22: 4000, 23: 5000, 24: 7500, 25: 10000},
    Symbol.GREEN_OWL: {5: 4, 6: 5, 7: 10, 8: 20, 9: 30, 10: 50, 11: 100, 12: 250, 13: 500, 14: 750, 15: 1000, 16: 7000, 17: 8000, 18: 10000, 19: 12000, 20: 15000, 21: 18000, 22: 22000, 23: 27000, 24: 32000, 25: 40000},
    Symbol.YELLOW_OWL: {5: 5, 6: 10, 7: 20, 8: 40, 9: 60, 10: 80, 11: 160, 12: 500, 13: 1000, 14: 2000, 15: 5000, 16: 8000, 17: 10000, 18: 12000, 19: 15000, 20: 20000, 21: 25000, 22: 30000, 23: 40000, 24: 50000, 25: 60000},
    Symbol.BLUE_OWL: {5: 10, 6: 30, 7: 50, 8: 60, 9: 100, 10: 750, 11: 1000, 12: 10000, 13: 20000, 14: 50000, 15: 70000, 16: 100000, 17: 120000, 18: 150000, 19: 180000, 20: 220000, 21: 270000, 22: 320000, 23: 400000, 24: 500000, 25: 600000},
    Symbol.RED_OWL: {5: 20, 6: 50, 7: 100, 8: 500, 9: 1000, 10: 2000, 11: 5000, 12: 20000, 13: 50000, 14: 80000, 15: 100000, 16: 150000, 17: 200000, 18: 300000, 19: 400000, 20: 500000, 21: 600000, 22: 800000, 23: 1000000, 24: 1200000, 25: 1500000},
}

PAYTABLE_LEVEL_3: dict[Symbol, dict[int, float]] = {
    Symbol.PURPLE_OWL: {6: 2, 7: 4, 8: 5, 9: 8, 10: 10, 11: 20, 12: 30, 13: 50, 14: 100, 15: 200, 16: 500, 17: 600, 18: 750, 19: 900, 20: 1100, 21: 1300, 22: 1600, 23: 2000, 24: 2500, 25: 3000, 26: 3600, 27: 4300, 28: 5100, 29: 6000, 30: 7500, 31: 9000, 32: 11000, 33: 13000, 34: 16000, 35: 20000, 36: 25000},
    Symbol.GREEN_OWL: {6: 4, 7: 5, 8: 10, 9: 20, 10: 30, 11: 50, 12: 100, 13: 250, 14: 500, 15: 1000, 16: 8000, 17: 9000, 18: 10500, 19: 12000, 20: 14000, 21: 16000, 22: 19000, 23: 22000, 24: 26000, 25: 30000, 26: 35000, 27: 40000, 28: 46000, 29: 53000, 30: 60000, 31: 68000, 32: 77000, 33: 87000, 34: 98000, 35: 110000, 36: 125000},
    Symbol.YELLOW_OWL: {6: 5, 7: 10, 8: 20, 9: 40, 10: 60, 11: 80, 12: 160, 13: 500, 14: 1000, 15: 5000, 16: 10000, 17: 12000, 18: 14000, 19: 17000, 20: 20000, 21: 24000, 22: 28000, 23: 33000, 24: 39000, 25: 45000, 26: 52000, 27: 60000, 28: 69000, 29: 79000, 30: 90000, 31: 102000, 32: 115000, 33: 130000, 34: 146000, 35: 165000, 36: 185000},
    Symbol.BLUE_OWL: {6: 10, 7: 30, 8: 50, 9: 60, 10: 100, 11: 750, 12: 1000, 13: 10000, 14: 20000, 15: 50000, 16: 100000, 17: 115000, 18: 130000, 19: 150000, 20: 170000, 21: 195000, 22: 220000, 23: 250000, 24: 280000, 25: 315000, 26: 355000, 27: 400000, 28: 450000, 29: 505000, 30: 565000, 31: 630000, 32: 700000, 33: 775000, 34: 860000, 35: 950000, 36: 1050000},
    Symbol.RED_OWL: {6: 20, 7: 50, 8: 100, 9: 500, 10: 1000, 11: 2000, 12: 5000, 13: 20000, 14: 50000, 15: 100000, 16: 200000, 17: 230000, 18: 265000, 19: 305000, 20: 350000, 21: 400000, 22: 460000, 23: 530000, 24: 610000, 25: 700000, 26: 800000, 27: 920000, 28: 1060000, 29: 1220000, 30: 1400000, 31: 1600000, 32: 1840000, 33: 2120000, 34: 2440000, 35: 2800000, 36: 3200000},
}

PAYTABLES: dict[Level, dict[Symbol, dict[int, float]]] = {
    Level.ONE: PAYTABLE_LEVEL_1,
    Level.TWO: PAYTABLE_LEVEL_2,
    Level.THREE: PAYTABLE_LEVEL_3,
}

DENOMINATION = 0.01

BET_AMOUNT_TO_MULTIPLIER: dict[float, int] = {
    0.1: 1,
    0.2: 2,
    0.3: 3,
    0.5: 5,
    1.0: 10,
}

FREE_SPIN_MULTIPLIERS: tuple[float, ...] = (1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0)
