"""Request validators, run before any engine logic."""
from birdsparty.config import settings
from birdsparty.errors import ErrorCode, GameError
from birdsparty.logic.models import GameState
from birdsparty.logic.tables import (
    BET_AMOUNT_TO_MULTIPLIER,
    FREE_SPIN_MULTIPLIERS,
    KNOWN_SYMBOL_VALUES,
    Level,
    Symbol,
    is_stage_cleared,
)
from birdsparty.protocol import RoundRequest

REQUIRED_IDENTIFIERS = ("client_id", "game_id", "player_id", "bet_id")


def validate_identifiers(request: RoundRequest) -> None:
    """Raises INVALID_REQUEST for the first missing identifier."""
    for name in REQUIRED_IDENTIFIERS:
        if not getattr(request, name):
            raise GameError(ErrorCode.INVALID_REQUEST, f"{name} is required")


def validate_bet(state: GameState) -> None:
    """
    Validate bet amount.

    Raises INVALID_BET if the amount is not an allowed bet with a known
    payout multiplier.
    """
    amount = state.bet.amount
    if amount not in settings.allowed_bets or amount not in BET_AMOUNT_TO_MULTIPLIER:
        allowed = ", ".join(str(bet) for bet in settings.allowed_bets)
        raise GameError(
            ErrorCode.INVALID_BET,
            f"invalid bet amount, allowed values are {allowed}",
        )


def validate_level(state: GameState, allow_initial: bool = False) -> None:
    valid = {int(level) for level in Level}
    if allow_initial:
        valid.add(0)
    if state.current_level not in valid:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"invalid level {state.current_level}",
        )


def validate_state(state: GameState) -> None:
    """
    Validate the counters carried in the state.

    Raises INVALID_REQUEST when stage progress is outside [0, target), the
    cascade count is negative, or the free spins sub-state does not match
    what the engine can award.
    """
    target = settings.stage_progress_target
    if not 0 <= state.stage_progress < target:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"invalid stageProgress {state.stage_progress}, must be in [0, {target})",
        )
    if state.cascade_count < 0:
        raise GameError(ErrorCode.INVALID_REQUEST, "cascadeCount must not be negative")

    free_spins = state.free_spins
    if free_spins.multiplier not in FREE_SPIN_MULTIPLIERS:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"invalid free spins multiplier {free_spins.multiplier}",
        )
    if free_spins.remaining < 0 or free_spins.total_awarded < 0:
        raise GameError(ErrorCode.INVALID_REQUEST, "free spins counters must not be negative")
    if free_spins.remaining > max(free_spins.total_awarded, settings.free_spins_awarded):
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"free spins remaining {free_spins.remaining} exceeds the award",
        )


def validate_grid(state: GameState) -> None:
    """
    Validate grid shape and contents against the declared level.

    The grid must be square with the level's dimension, hold only known
    non-empty symbols and no stage-cleared symbol of another level.
    """
    level = state.level
    size = level.grid_size
    if len(state.grid) != size or any(len(row) != size for row in state.grid):
        raise GameError(ErrorCode.INVALID_GRID, "Invalid grid dimensions")

    for y, row in enumerate(state.grid):
        for x, symbol in enumerate(row):
            if symbol not in KNOWN_SYMBOL_VALUES:
                raise GameError(
                    ErrorCode.INVALID_GRID,
                    f"Invalid symbol {symbol!r} at ({x},{y})",
                )
            if is_stage_cleared(symbol) and symbol != level.stage_cleared_symbol.value:
                raise GameError(
                    ErrorCode.INVALID_GRID,
                    f"Stage cleared symbol {symbol!r} does not belong to level {int(level)}",
                )

    free_games = sum(row.count(Symbol.FREE_GAME.value) for row in state.grid)
    if free_games > 1:
        raise GameError(
            ErrorCode.INVALID_GRID,
            f"Grid holds {free_games} free game symbols, at most one is allowed",
        )


def validate_pending_stage_cleared(state: GameState) -> None:
    """Every pending entry must point at a distinct cell holding the level's symbol."""
    expected = state.level.stage_cleared_symbol.value
    size = len(state.grid)
    seen = set()
    for entry in state.stage_cleared_symbols:
        pos = entry.position
        if not (0 <= pos.x < size and 0 <= pos.y < size):
            raise GameError(
                ErrorCode.INVALID_GRID,
                f"Stage cleared position ({pos.x},{pos.y}) is out of bounds",
            )
        if (pos.x, pos.y) in seen:
            raise GameError(
                ErrorCode.INVALID_GRID,
                f"Duplicate stage cleared position ({pos.x},{pos.y})",
            )
        seen.add((pos.x, pos.y))
        if entry.symbol != expected or state.grid[pos.y][pos.x] != expected:
            raise GameError(
                ErrorCode.INVALID_GRID,
                f"No stage cleared symbol at ({pos.x},{pos.y})",
            )


def validate_last_connections(state: GameState) -> None:
    """Every lastConnections position must be in bounds and hold its symbol."""
    size = len(state.grid)
    for connection in state.last_connections:
        for pos in connection.positions:
            if not (0 <= pos.x < size and 0 <= pos.y < size):
                raise GameError(
                    ErrorCode.INVALID_GRID,
                    f"Connection position ({pos.x},{pos.y}) is out of bounds",
                )
            if state.grid[pos.y][pos.x] != connection.symbol:
                raise GameError(
                    ErrorCode.INVALID_GRID,
                    f"Connection symbol {connection.symbol!r} not found at ({pos.x},{pos.y})",
                )


def validate_spin_request(request: RoundRequest) -> None:
    """Spin regenerates the grid, so it is never checked."""
    validate_identifiers(request)
    validate_bet(request.gameState)
    validate_level(request.gameState, allow_initial=True)
    if request.gameState.current_level != 0:
        validate_state(request.gameState)


def validate_stage_cleared_request(request: RoundRequest) -> None:
    state = request.gameState
    validate_identifiers(request)
    validate_bet(state)
    validate_level(state)
    validate_state(state)
    validate_grid(state)
    validate_pending_stage_cleared(state)


def validate_cascade_request(request: RoundRequest) -> None:
    state = request.gameState
    validate_identifiers(request)
    validate_bet(state)
    validate_level(state)
    validate_state(state)
    validate_grid(state)
    validate_pending_stage_cleared(state)
    validate_last_connections(state)
