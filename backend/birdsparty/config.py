"""Application configuration for the Birds Party rules engine."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings, overridable through BIRDSPARTY_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="BIRDSPARTY_")

    # Server
    debug: bool = False
    log_level: str = "INFO"
    game_id: str = "birdsparty"

    # Upstream services
    settings_service_url: str = "http://localhost:8081"
    rng_service_url: str = "http://localhost:8082"
    service_timeout_seconds: float = 5.0

    # Wagering
    allowed_bets: list[float] = [0.1, 0.2, 0.3, 0.5, 1.0]

    # Progression
    stage_progress_target: int = 15

    # Free spins
    free_spins_awarded: int = 10

    # Grid generation / outcome reconciliation caps
    max_generation_attempts: int = 100
    reconcile_max_attempts: int = 50
    reconcile_edits_progression: int = 3
    reconcile_edits_cascade: int = 4

    # When False, refills and regeneration on the stage-cleared path never
    # suppress the free game symbol, even during free spins.
    progression_respects_free_spins: bool = False


settings = Settings()
