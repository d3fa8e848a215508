"""Server-side telemetry for resolved rounds and rejected requests."""
import logging
from dataclasses import dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class SpinProcessedEvent:
    """spin_processed: one spin resolved."""

    client_id: str
    player_id: str
    bet_id: str
    level: int
    game_mode: str  # "base" | "freeSpins", after the spin
    total_cost: float
    total_win: float
    has_stage_cleared: bool
    free_spins_triggered: bool
    free_spins_ended: bool
    preferred_outcome: str | None  # "win" | "loss" | None when no win was found
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "player_id": self.player_id,
            "bet_id": self.bet_id,
            "level": self.level,
            "game_mode": self.game_mode,
            "total_cost": self.total_cost,
            "total_win": self.total_win,
            "has_stage_cleared": self.has_stage_cleared,
            "free_spins_triggered": self.free_spins_triggered,
            "free_spins_ended": self.free_spins_ended,
            "preferred_outcome": self.preferred_outcome,
            "config_hash": self.config_hash,
        }


@dataclass
class StageClearedProcessedEvent:
    """stage_cleared_processed: pending stage-cleared symbols removed."""

    client_id: str
    player_id: str
    bet_id: str
    stage_cleared_count: int
    level_advanced: bool
    old_level: int
    new_level: int
    stage_progress: int
    connections: int
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "player_id": self.player_id,
            "bet_id": self.bet_id,
            "stage_cleared_count": self.stage_cleared_count,
            "level_advanced": self.level_advanced,
            "old_level": self.old_level,
            "new_level": self.new_level,
            "stage_progress": self.stage_progress,
            "connections": self.connections,
            "config_hash": self.config_hash,
        }


@dataclass
class CascadeProcessedEvent:
    """cascade_processed: one cascade step resolved."""

    client_id: str
    player_id: str
    bet_id: str
    level: int
    cascade_count: int
    connections: int
    step_win: float
    total_win: float
    cascading: bool
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "player_id": self.player_id,
            "bet_id": self.bet_id,
            "level": self.level,
            "cascade_count": self.cascade_count,
            "connections": self.connections,
            "step_win": self.step_win,
            "total_win": self.total_win,
            "cascading": self.cascading,
            "config_hash": self.config_hash,
        }


@dataclass
class ReconciliationBypassedEvent:
    """reconciliation_bypassed: a preferred loss could not be produced."""

    client_id: str
    player_id: str
    bet_id: str
    operation: str  # "process_stage_cleared" | "cascade"
    level: int
    connections: int
    kept_win: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "player_id": self.player_id,
            "bet_id": self.bet_id,
            "operation": self.operation,
            "level": self.level,
            "connections": self.connections,
            "kept_win": self.kept_win,
        }


@dataclass
class RequestRejectedEvent:
    """request_rejected: validation or upstream failure."""

    operation: str  # "spin" | "process_stage_cleared" | "cascade"
    client_id: str
    player_id: str
    reason: str  # ErrorCode value
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "client_id": self.client_id,
            "player_id": self.player_id,
            "reason": self.reason,
            "message": self.message,
        }


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break HTTP requests.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_spin_processed(self, event: SpinProcessedEvent) -> None:
        self._safe_emit("spin_processed", event.to_dict())

    def emit_stage_cleared_processed(self, event: StageClearedProcessedEvent) -> None:
        self._safe_emit("stage_cleared_processed", event.to_dict())

    def emit_cascade_processed(self, event: CascadeProcessedEvent) -> None:
        self._safe_emit("cascade_processed", event.to_dict())

    def emit_reconciliation_bypassed(self, event: ReconciliationBypassedEvent) -> None:
        self._safe_emit("reconciliation_bypassed", event.to_dict())

    def emit_request_rejected(self, event: RequestRejectedEvent) -> None:
        self._safe_emit("request_rejected", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
