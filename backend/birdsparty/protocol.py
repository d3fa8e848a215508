"""Request and response bodies for the Birds Party endpoints."""
from pydantic import BaseModel, Field

from birdsparty.logic.models import (
    Connection,
    GameState,
    NextAction,
    ProgressionSymbol,
)


# === Request Models ===


class RoundRequest(BaseModel):
    """Body shared by spin, process-stage-cleared and cascade."""

    gameState: GameState = Field(default_factory=GameState)
    client_id: str = ""
    game_id: str = ""
    player_id: str = ""
    bet_id: str = ""


# === Response Models ===


class RoundResponse(BaseModel):
    """Fields present on every successful response."""

    status: str = "success"
    message: str = ""
    gameState: GameState
    totalCost: float = 0.0
    nextAction: NextAction = NextAction.IDLE

    def to_wire(self) -> dict:
        """Serialise with the client's camelCase names for nested state."""
        return self.model_dump(mode="json", by_alias=True)


class SpinResponse(RoundResponse):
    """POST /spin/birdsparty response."""

    message: str = "Spin completed"
    stageClearedSymbols: list[ProgressionSymbol] = Field(default_factory=list)
    hasStageCleared: bool = False


class StageClearedResponse(RoundResponse):
    """POST /process-stage-cleared/birdsparty response."""

    message: str = "Stage cleared symbols processed"
    stageClearedCount: int = 0
    levelAdvanced: bool = False
    oldLevel: int = 0
    newLevel: int = 0
    connections: list[Connection] = Field(default_factory=list)
    reconciliationBypassed: bool = False


class CascadeResponse(RoundResponse):
    """POST /cascade/birdsparty response."""

    message: str = "Cascade completed"
    connections: list[Connection] = Field(default_factory=list)
    stageClearedSymbols: list[ProgressionSymbol] = Field(default_factory=list)
    hasStageCleared: bool = False
    reconciliationBypassed: bool = False
