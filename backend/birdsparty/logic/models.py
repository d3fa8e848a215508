"""Game state and result models.

GameState is owned by the caller and round-tripped on every request, so its
field names serialise to the client's camelCase wire names.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from birdsparty.logic.tables import Level


class CamelModel(BaseModel):
    """Base for models exchanged with the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GameMode(str, Enum):
    """Current game mode."""

    BASE = "base"
    FREE_SPINS = "freeSpins"


class NextAction(str, Enum):
    """Call the client is expected to make next."""

    PROCESS_STAGE_CLEARED = "processStageCleared"
    CASCADE = "cascade"
    IDLE = "idle"


class Position(CamelModel):
    """Grid coordinate: x is the column, y the row (row 0 at the top)."""

    x: int
    y: int


class Connection(CamelModel):
    """A group of adjacent identical bird symbols meeting the level minimum."""

    symbol: str
    positions: list[Position] = Field(default_factory=list)
    count: int = 0
    payout: float = 0.0

    @property
    def key(self) -> tuple[str, frozenset[tuple[int, int]]]:
        """Identity of the group on the grid, independent of position order."""
        return self.symbol, frozenset((pos.x, pos.y) for pos in self.positions)


class ProgressionSymbol(CamelModel):
    """A stage-cleared symbol found on the grid, pending removal."""

    symbol: str
    position: Position


class BetState(CamelModel):
    amount: float = 0.0
    multiplier: int = 0


class FreeSpinState(CamelModel):
    remaining: int = 0
    total_awarded: int = 0
    multiplier: float = 1.0


class GameState(CamelModel):
    """
    Full round-trip state of a resolution chain.

    Tracks:
    - bet amount and derived payout multiplier
    - current level, grid and stage progress (0..target-1)
    - base / free spins mode and the free spins sub-state
    - total win for the current chain
    - last connections, cascade counter and pending stage-cleared symbols
    """

    bet: BetState = Field(default_factory=BetState)
    current_level: int = 0
    grid_size: int = 0
    grid: list[list[str]] = Field(default_factory=list)
    stage_progress: int = 0
    game_mode: GameMode = GameMode.BASE
    free_spins: FreeSpinState = Field(default_factory=FreeSpinState)
    total_win: float = 0.0
    cascading: bool = False
    last_connections: list[Connection] = Field(default_factory=list)
    cascade_count: int = 0
    stage_cleared_symbols: list[ProgressionSymbol] = Field(default_factory=list)

    @field_validator("game_mode", mode="before")
    @classmethod
    def _default_empty_mode(cls, value):
        return value or GameMode.BASE

    @property
    def level(self) -> Level:
        return Level(self.current_level)

    @property
    def in_free_spins(self) -> bool:
        return self.game_mode == GameMode.FREE_SPINS

    def next_action(self) -> NextAction:
        if self.stage_cleared_symbols:
            return NextAction.PROCESS_STAGE_CLEARED
        if self.cascading:
            return NextAction.CASCADE
        return NextAction.IDLE

    @classmethod
    def initial(cls, bet_amount: float = 0.0) -> "GameState":
        """Default state for a new player, keeping the requested bet."""
        return cls(
            bet=BetState(amount=bet_amount),
            current_level=int(Level.ONE),
            grid_size=Level.ONE.grid_size,
            game_mode=GameMode.BASE,
            free_spins=FreeSpinState(),
        )


class SpinResult(BaseModel):
    """Result of a spin computation."""

    state: GameState
    stage_cleared_symbols: list[ProgressionSymbol] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    total_cost: float = 0.0
    preferred_outcome: str | None = None
    free_spins_triggered: bool = False
    free_spins_ended: bool = False


class StageClearedResult(BaseModel):
    """Result of processing stage-cleared symbols."""

    state: GameState
    stage_cleared_count: int = 0
    level_advanced: bool = False
    old_level: int = 0
    new_level: int = 0
    connections: list[Connection] = Field(default_factory=list)
    reconciliation_bypassed: bool = False
    preferred_outcome: str | None = None


class CascadeResult(BaseModel):
    """Result of one cascade step."""

    state: GameState
    connections: list[Connection] = Field(default_factory=list)
    stage_cleared_symbols: list[ProgressionSymbol] = Field(default_factory=list)
    reconciliation_bypassed: bool = False
    preferred_outcome: str | None = None
    free_spins_triggered: bool = False
