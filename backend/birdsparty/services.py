"""Clients for the settings (RTP) service and the RNG outcome service."""
import logging
from enum import Enum
from typing import Protocol

import httpx

from birdsparty.config import settings
from birdsparty.errors import outcome_unavailable, settings_unavailable

logger = logging.getLogger(__name__)


class PreferredOutcome(str, Enum):
    """Verdict returned by the RNG outcome service."""

    WIN = "win"
    LOSS = "loss"


class RTPProvider(Protocol):
    """Returns the target RTP for a client/game/player."""

    def get_rtp(self, client_id: str, game_id: str, player_id: str) -> float:
        ...


class OutcomeProvider(Protocol):
    """Decides whether a candidate win should stand."""

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
        ...


class _ServiceClient:
    """Lazily-created httpx client bound to one base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self._base_url = base_url
        self._timeout = timeout if timeout is not None else settings.service_timeout_seconds
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self._base_url, timeout=self._timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


class SettingsServiceClient(_ServiceClient):
    """GET /rtp on the settings service."""

    def __init__(self, base_url: str | None = None, **kwargs):
        super().__init__(base_url or settings.settings_service_url, **kwargs)

    def get_rtp(self, client_id: str, game_id: str, player_id: str) -> float:
        try:
            response = self.client.get(
                "/rtp",
                params={"client_id": client_id, "game_id": game_id, "player_id": player_id},
            )
            response.raise_for_status()
            return float(response.json()["rtp"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to get RTP: %s", e)
            raise settings_unavailable() from e


class RNGServiceClient(_ServiceClient):
    """POST /outcome on the RNG decision service."""

    def __init__(self, base_url: str | None = None, **kwargs):
        super().__init__(base_url or settings.rng_service_url, **kwargs)

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
        try:
            response = self.client.post(
                "/outcome",
                json={
                    "client_id": client_id,
                    "game_id": game_id,
                    "player_id": player_id,
                    "bet_id": bet_id,
                    "rtp": rtp,
                    "payout_multiplier": payout_multiplier,
                    "bet_amount": bet_amount,
                },
            )
            response.raise_for_status()
            return PreferredOutcome(response.json()["pref_outcome"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to call RNG API: %s", e)
            raise outcome_unavailable() from e


# Global instances
settings_client = SettingsServiceClient()
rng_client = RNGServiceClient()
