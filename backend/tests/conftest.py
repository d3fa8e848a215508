"""Pytest fixtures for backend tests."""
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from birdsparty.errors import outcome_unavailable, settings_unavailable
from birdsparty.logic.engine import GameEngine, RoundContext
from birdsparty.logic.rng import SeededRNG
from birdsparty.services import PreferredOutcome
from birdsparty.telemetry import LoggingTelemetrySink, telemetry_service


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (run the audit simulation)"
    )


class FakeRTPProvider:
    """In-process settings service."""

    def __init__(self, rtp: float = 96.0, fail: bool = False):
        self.rtp = rtp
        self.fail = fail
        self.calls: list[tuple[str, str, str]] = []

    def get_rtp(self, client_id: str, game_id: str, player_id: str) -> float:
        self.calls.append((client_id, game_id, player_id))
        if self.fail:
            raise settings_unavailable()
        return self.rtp


class ScriptedOutcomeProvider:
    """In-process RNG service answering from a script, then a default."""

    def __init__(
        self,
        default: PreferredOutcome = PreferredOutcome.WIN,
        script: list[PreferredOutcome] | None = None,
        fail: bool = False,
    ):
        self.default = default
        self.script = list(script or [])
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    def get_outcome(
        self,
        client_id: str,
        game_id: str,
        player_id: str,
        bet_id: str,
        rtp: float,
        payout_multiplier: float,
        bet_amount: float,
    ) -> PreferredOutcome:
        self.calls.append(
            {
                "client_id": client_id,
                "game_id": game_id,
                "player_id": player_id,
                "bet_id": bet_id,
                "rtp": rtp,
                "payout_multiplier": payout_multiplier,
                "bet_amount": bet_amount,
            }
        )
        if self.fail:
            raise outcome_unavailable()
        if self.script:
            return self.script.pop(0)
        return self.default


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


@pytest.fixture
def ctx() -> RoundContext:
    return RoundContext(client_id="client-1", game_id="birdsparty", player_id="player-1", bet_id="bet-1")


@pytest.fixture
def rtp_provider() -> FakeRTPProvider:
    return FakeRTPProvider()


@pytest.fixture
def outcome_provider() -> ScriptedOutcomeProvider:
    """Outcome provider that lets every natural win stand."""
    return ScriptedOutcomeProvider()


@pytest.fixture
def loss_provider() -> ScriptedOutcomeProvider:
    """Outcome provider that always asks for a loss."""
    return ScriptedOutcomeProvider(default=PreferredOutcome.LOSS)


@pytest.fixture
def engine(rtp_provider, outcome_provider) -> GameEngine:
    return GameEngine(rtp_provider=rtp_provider, outcome_provider=outcome_provider, rng=SeededRNG(seed=1234))


@pytest.fixture
def loss_engine(rtp_provider, loss_provider) -> GameEngine:
    return GameEngine(rtp_provider=rtp_provider, outcome_provider=loss_provider, rng=SeededRNG(seed=1234))


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Route global telemetry into a recording sink for the test."""
    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(LoggingTelemetrySink())


@pytest.fixture
def client(engine, recording_telemetry) -> Generator[TestClient, None, None]:
    """TestClient whose app uses the seeded engine and fake services."""
    import birdsparty.main as main_module

    original_engine = main_module.engine
    main_module.engine = engine

    with TestClient(main_module.app) as test_client:
        yield test_client

    main_module.engine = original_engine
