#!/usr/bin/env python3
"""
Audit simulation for the Birds Party rules engine.

Plays complete resolution chains (spin, stage-cleared processing, cascades)
headlessly against an in-process outcome provider and writes a one-row CSV.

Usage:
    python -m scripts.audit_sim --rounds 100000 --seed AUDIT_2025 --out out/audit_natural.csv
    python -m scripts.audit_sim --outcome loss --rounds 20000 --seed AUDIT_2025 --out out/audit_loss.csv
    python -m scripts.audit_sim --outcome coin:0.3 --rounds 20000 --seed AUDIT_2025 --out out/audit_coin.csv
"""
import argparse
import csv
import hashlib
import logging
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from birdsparty.config_hash import get_config_hash
from birdsparty.logic.engine import GameEngine, RoundContext
from birdsparty.logic.models import GameState, NextAction
from birdsparty.logic.rng import RNGBase, SeededRNG
from birdsparty.logic.tables import BET_AMOUNT_TO_MULTIPLIER
from birdsparty.services import PreferredOutcome

SIM_RTP = 96.0
SIM_CONTEXT = RoundContext(client_id="audit", game_id="birdsparty", player_id="audit", bet_id="audit")

# Guard against a chain that never settles
MAX_STEPS_PER_ROUND = 1000


class FixedRTPProvider:
    """Settings service stand-in returning a constant RTP."""

    def __init__(self, rtp: float = SIM_RTP):
        self.rtp = rtp

    def get_rtp(self, client_id: str, game_id: str, player_id: str) -> float:
        return self.rtp


class SimOutcomeProvider:
    """
    RNG service stand-in.

    natural: always "win" (the engine keeps every natural connection)
    loss: always "loss"
    coin:<p>: "loss" with probability p
    """

    def __init__(self, outcome: str, rng: RNGBase):
        self.outcome = outcome
        self.rng = rng
        self.loss_probability = parse_outcome_mode(outcome)
        self.requests = 0
        self.losses = 0

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
        self.requests += 1
        if self.loss_probability >= 1.0 or self.rng.random() < self.loss_probability:
            self.losses += 1
            return PreferredOutcome.LOSS
        return PreferredOutcome.WIN


def parse_outcome_mode(outcome: str) -> float:
    """Loss probability for an outcome mode string."""
    if outcome == "natural":
        return 0.0
    if outcome == "loss":
        return 1.0
    if outcome.startswith("coin:"):
        try:
            probability = float(outcome.split(":", 1)[1])
        except ValueError:
            raise ValueError(f"Invalid coin probability in {outcome!r}") from None
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Coin probability must be within [0, 1], got {probability}")
        return probability
    raise ValueError(f"Unknown outcome mode {outcome!r}")


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    total_wagered: float = 0.0
    total_won: float = 0.0
    rounds: int = 0
    wins: int = 0
    spins: int = 0
    free_spins_played: int = 0
    cascades: int = 0
    stage_cleared_calls: int = 0
    level_advances: int = 0
    free_spin_entries: int = 0
    reconciliations: int = 0
    bypasses: int = 0
    max_win_x_observed: float = 0.0
    levels_seen: dict[int, int] = field(default_factory=dict)


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return "unknown"


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def play_round(
    engine: GameEngine, state: GameState, stats: SimulationStats
) -> GameState:
    """Play one spin and every follow-up call until the chain is idle."""
    result = engine.spin(SIM_CONTEXT, state)
    state = result.state
    stats.spins += 1
    stats.total_wagered += result.total_cost
    if result.total_cost == 0.0:
        stats.free_spins_played += 1
    if result.free_spins_triggered:
        stats.free_spin_entries += 1

    for _ in range(MAX_STEPS_PER_ROUND):
        action = state.next_action()
        if action == NextAction.IDLE:
            break
        if action == NextAction.PROCESS_STAGE_CLEARED:
            processed = engine.process_stage_cleared(SIM_CONTEXT, state)
            state = processed.state
            stats.stage_cleared_calls += 1
            if processed.level_advanced:
                stats.level_advances += 1
            if processed.preferred_outcome == PreferredOutcome.LOSS.value:
                stats.reconciliations += 1
            if processed.reconciliation_bypassed:
                stats.bypasses += 1
        else:
            cascaded = engine.cascade(SIM_CONTEXT, state)
            state = cascaded.state
            stats.cascades += 1
            if cascaded.free_spins_triggered:
                stats.free_spin_entries += 1
            if cascaded.preferred_outcome == PreferredOutcome.LOSS.value:
                stats.reconciliations += 1
            if cascaded.reconciliation_bypassed:
                stats.bypasses += 1
    else:
        raise RuntimeError(f"Resolution chain did not settle within {MAX_STEPS_PER_ROUND} steps")

    return state


def run_simulation(
    rounds: int,
    seed_str: str,
    outcome: str = "natural",
    bet_amount: float = 1.0,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run headless simulation.

    Args:
        rounds: Number of resolution chains to play
        seed_str: Seed string for reproducibility
        outcome: 'natural', 'loss' or 'coin:<p>'
        bet_amount: Bet used for every spin
        verbose: Print progress

    Returns:
        SimulationStats with aggregated results
    """
    seed_int = seed_to_int(seed_str)
    rng = SeededRNG(seed=seed_int)
    outcome_provider = SimOutcomeProvider(outcome, SeededRNG(seed=seed_int + 1))
    engine = GameEngine(
        rtp_provider=FixedRTPProvider(),
        outcome_provider=outcome_provider,
        rng=rng,
    )

    stats = SimulationStats()
    state = GameState(bet={"amount": bet_amount})
    progress_interval = max(1, rounds // 100)

    for round_count in range(rounds):
        if verbose and round_count % progress_interval == 0:
            pct = (round_count / rounds) * 100
            print(f"\rProgress: {pct:.1f}%", end="", flush=True)

        state = play_round(engine, state, stats)
        stats.levels_seen[state.current_level] = stats.levels_seen.get(state.current_level, 0) + 1

        round_win = state.total_win
        stats.total_won += round_win
        stats.rounds += 1
        if round_win > 0:
            stats.wins += 1
        stats.max_win_x_observed = max(stats.max_win_x_observed, round_win / bet_amount)

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def format_levels_seen(levels_seen: dict[int, int]) -> str:
    """Rounds ended per level, e.g. "1:250;2:45;3:5"."""
    return ";".join(f"{level}:{count}" for level, count in sorted(levels_seen.items()))


def generate_csv(
    outcome: str,
    rounds: int,
    seed_str: str,
    stats: SimulationStats,
    output_path: str,
) -> None:
    """Write the one-row audit CSV."""
    rtp = (stats.total_won / stats.total_wagered * 100) if stats.total_wagered > 0 else 0
    hit_freq = (stats.wins / stats.rounds * 100) if stats.rounds > 0 else 0
    avg_cascades = stats.cascades / stats.rounds if stats.rounds > 0 else 0
    free_spin_entry_rate = (stats.free_spin_entries / stats.rounds * 100) if stats.rounds > 0 else 0
    bypass_rate = (stats.bypasses / stats.reconciliations * 100) if stats.reconciliations > 0 else 0

    row = {
        "timestamp": get_timestamp_iso(),
        "git_commit": get_git_commit(),
        "config_hash": get_config_hash(),
        "outcome": outcome,
        "rounds": rounds,
        "seed": seed_str,
        "rtp": f"{rtp:.4f}",
        "hit_freq": f"{hit_freq:.4f}",
        "avg_cascades": f"{avg_cascades:.4f}",
        "level_advances": stats.level_advances,
        "free_spin_entry_rate": f"{free_spin_entry_rate:.6f}",
        "bypass_rate": f"{bypass_rate:.4f}",
        "max_win_x": f"{stats.max_win_x_observed:.2f}",
        "levels_seen": format_levels_seen(stats.levels_seen),
    }

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Birds Party audit simulation")
    parser.add_argument(
        "--outcome",
        default="natural",
        help="Outcome provider: 'natural', 'loss' or 'coin:<p>'",
    )
    parser.add_argument(
        "--rounds",
        type=int,
        required=True,
        help="Number of resolution chains to simulate",
    )
    parser.add_argument(
        "--seed",
        type=str,
        required=True,
        help="Seed string for reproducibility",
    )
    parser.add_argument(
        "--bet",
        type=float,
        default=1.0,
        help="Bet amount for every spin",
    )
    parser.add_argument(
        "--out",
        type=str,
        required=True,
        help="Output CSV path",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show progress",
    )

    args = parser.parse_args()

    try:
        parse_outcome_mode(args.outcome)
    except ValueError as e:
        parser.error(str(e))
    if args.bet not in BET_AMOUNT_TO_MULTIPLIER:
        parser.error(f"Bet amount must be one of {sorted(BET_AMOUNT_TO_MULTIPLIER)}")

    # Engine logs every call at INFO; keep the simulation output readable
    logging.basicConfig(level=logging.WARNING)

    print(f"Running simulation: outcome={args.outcome}, rounds={args.rounds}, seed={args.seed}")
    print(f"Config hash: {get_config_hash()}")

    stats = run_simulation(
        rounds=args.rounds,
        seed_str=args.seed,
        outcome=args.outcome,
        bet_amount=args.bet,
        verbose=args.verbose,
    )

    generate_csv(
        outcome=args.outcome,
        rounds=args.rounds,
        seed_str=args.seed,
        stats=stats,
        output_path=args.out,
    )

    rtp = (stats.total_won / stats.total_wagered * 100) if stats.total_wagered > 0 else 0
    print(f"\nSummary:")
    print(f"  Rounds: {stats.rounds} ({stats.free_spins_played} free spins)")
    print(f"  Total wagered: {stats.total_wagered:.2f}")
    print(f"  Total won: {stats.total_won:.2f}")
    print(f"  RTP: {rtp:.4f}%")
    print(f"  Hit frequency: {(stats.wins / stats.rounds * 100):.4f}%")
    print(f"  Cascades: {stats.cascades}, stage-cleared calls: {stats.stage_cleared_calls}")
    print(f"  Level advances: {stats.level_advances}")
    print(f"  Free spin entries: {stats.free_spin_entries}")
    print(f"  Reconciliations: {stats.reconciliations}, bypassed: {stats.bypasses}")
    print(f"  Max win_x observed: {stats.max_win_x_observed:.2f}x")

    return 0


if __name__ == "__main__":
    sys.exit(main())
