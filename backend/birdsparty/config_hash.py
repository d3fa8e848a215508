"""Config hash shared by telemetry and the audit simulation.

Covers the rules-relevant settings and the static game tables, so two
deployments with the same hash resolve rounds with the same math.
"""
import hashlib
import json

from birdsparty.config import settings
from birdsparty.logic.tables import (
    BET_AMOUNT_TO_MULTIPLIER,
    FREE_SPIN_MULTIPLIERS,
    LEVEL_WEIGHTS,
    PAYTABLES,
)


def get_config_hash() -> str:
    """Return a 16-char hex hash of the active configuration snapshot."""
    config_snapshot = {
        "allowed_bets": list(settings.allowed_bets),
        "stage_progress_target": settings.stage_progress_target,
        "free_spins_awarded": settings.free_spins_awarded,
        "max_generation_attempts": settings.max_generation_attempts,
        "reconcile_max_attempts": settings.reconcile_max_attempts,
        "reconcile_edits_progression": settings.reconcile_edits_progression,
        "reconcile_edits_cascade": settings.reconcile_edits_cascade,
        "progression_respects_free_spins": settings.progression_respects_free_spins,
        "bet_multipliers": {str(amount): mult for amount, mult in BET_AMOUNT_TO_MULTIPLIER.items()},
        "free_spin_multipliers": list(FREE_SPIN_MULTIPLIERS),
        "weights": {
            str(int(level)): [[symbol.value, weight] for symbol, weight in table]
            for level, table in LEVEL_WEIGHTS.items()
        },
        "paytables": {
            str(int(level)): {
                symbol.value: {str(count): pay for count, pay in pays.items()}
                for symbol, pays in table.items()
            }
            for level, table in PAYTABLES.items()
        },
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
