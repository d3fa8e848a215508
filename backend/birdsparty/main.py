"""Birds Party FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.concurrency import run_in_threadpool

from birdsparty.config import settings
from birdsparty.config_hash import get_config_hash
from birdsparty.errors import ErrorCode, GameError
from birdsparty.logic.engine import GameEngine, RoundContext
from birdsparty.middleware import ErrorHandlerMiddleware
from birdsparty.protocol import (
    CascadeResponse,
    RoundRequest,
    SpinResponse,
    StageClearedResponse,
)
from birdsparty.services import rng_client, settings_client
from birdsparty.telemetry import (
    telemetry_service,
    CascadeProcessedEvent,
    ReconciliationBypassedEvent,
    RequestRejectedEvent,
    SpinProcessedEvent,
    StageClearedProcessedEvent,
)
from birdsparty.validators import (
    validate_cascade_request,
    validate_spin_request,
    validate_stage_cleared_request,
)

logging.basicConfig(level=logging.DEBUG if settings.debug else settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close upstream service connections on shutdown."""
    yield
    settings_client.close()
    rng_client.close()


app = FastAPI(
    title="Birds Party Rules Engine",
    version="0.1.0",
    description="Cascading-connection slot rules engine for Birds Party",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)

# Game engine instance, always called through run_in_threadpool
engine = GameEngine(rtp_provider=settings_client, outcome_provider=rng_client)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same structured error as failed validation."""
    logger.info("Rejected body on %s: %s", request.url.path, exc.errors())
    return GameError(ErrorCode.INVALID_REQUEST, "Invalid request body").to_response()


def _context(body: RoundRequest) -> RoundContext:
    return RoundContext(
        client_id=body.client_id,
        game_id=body.game_id,
        player_id=body.player_id,
        bet_id=body.bet_id,
    )


def _emit_rejected(operation: str, body: RoundRequest, error: GameError) -> None:
    logger.warning("%s rejected: %s - %s", operation, error.code.value, error.message)
    telemetry_service.emit_request_rejected(
        RequestRejectedEvent(
            operation=operation,
            client_id=body.client_id,
            player_id=body.player_id,
            reason=error.code.value,
            message=error.message,
        )
    )


def _emit_bypassed(operation: str, body: RoundRequest, level: int, connections: list) -> None:
    telemetry_service.emit_reconciliation_bypassed(
        ReconciliationBypassedEvent(
            client_id=body.client_id,
            player_id=body.player_id,
            bet_id=body.bet_id,
            operation=operation,
            level=level,
            connections=len(connections),
            kept_win=sum(c.payout for c in connections),
        )
    )


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.post(f"/spin/{settings.game_id}")
async def spin(body: RoundRequest) -> dict:
    """
    Spin: generate a grid, consult the RNG service on a natural win and
    report stage-cleared symbols for the client to process.
    """
    try:
        validate_spin_request(body)
        result = await run_in_threadpool(engine.spin, _context(body), body.gameState)
    except GameError as e:
        _emit_rejected("spin", body, e)
        raise

    state = result.state
    response = SpinResponse(
        gameState=state,
        stageClearedSymbols=result.stage_cleared_symbols,
        hasStageCleared=bool(result.stage_cleared_symbols),
        totalCost=result.total_cost,
        nextAction=state.next_action(),
    )

    telemetry_service.emit_spin_processed(
        SpinProcessedEvent(
            client_id=body.client_id,
            player_id=body.player_id,
            bet_id=body.bet_id,
            level=state.current_level,
            game_mode=state.game_mode.value,
            total_cost=result.total_cost,
            total_win=state.total_win,
            has_stage_cleared=response.hasStageCleared,
            free_spins_triggered=result.free_spins_triggered,
            free_spins_ended=result.free_spins_ended,
            preferred_outcome=result.preferred_outcome,
            config_hash=get_config_hash(),
        )
    )

    return response.to_wire()


@app.post(f"/process-stage-cleared/{settings.game_id}")
async def process_stage_cleared(body: RoundRequest) -> dict:
    """
    Remove pending stage-cleared symbols, count progress and advance the
    level when the target is reached. Never charged.
    """
    try:
        validate_stage_cleared_request(body)
        result = await run_in_threadpool(
            engine.process_stage_cleared, _context(body), body.gameState
        )
    except GameError as e:
        _emit_rejected("process_stage_cleared", body, e)
        raise

    state = result.state
    if result.reconciliation_bypassed:
        _emit_bypassed("process_stage_cleared", body, state.current_level, result.connections)

    response = StageClearedResponse(
        gameState=state,
        stageClearedCount=result.stage_cleared_count,
        levelAdvanced=result.level_advanced,
        oldLevel=result.old_level,
        newLevel=result.new_level,
        connections=result.connections,
        reconciliationBypassed=result.reconciliation_bypassed,
        nextAction=state.next_action(),
    )

    telemetry_service.emit_stage_cleared_processed(
        StageClearedProcessedEvent(
            client_id=body.client_id,
            player_id=body.player_id,
            bet_id=body.bet_id,
            stage_cleared_count=result.stage_cleared_count,
            level_advanced=result.level_advanced,
            old_level=result.old_level,
            new_level=result.new_level,
            stage_progress=state.stage_progress,
            connections=len(result.connections),
            config_hash=get_config_hash(),
        )
    )

    return response.to_wire()


@app.post(f"/cascade/{settings.game_id}")
async def cascade(body: RoundRequest) -> dict:
    """
    Cascade: remove the previous connections, let symbols fall, refill and
    detect the next connections. Never charged.
    """
    try:
        validate_cascade_request(body)
        result = await run_in_threadpool(engine.cascade, _context(body), body.gameState)
    except GameError as e:
        _emit_rejected("cascade", body, e)
        raise

    state = result.state
    if result.reconciliation_bypassed:
        _emit_bypassed("cascade", body, state.current_level, result.connections)

    response = CascadeResponse(
        gameState=state,
        connections=result.connections,
        stageClearedSymbols=result.stage_cleared_symbols,
        hasStageCleared=bool(result.stage_cleared_symbols),
        reconciliationBypassed=result.reconciliation_bypassed,
        nextAction=state.next_action(),
    )

    telemetry_service.emit_cascade_processed(
        CascadeProcessedEvent(
            client_id=body.client_id,
            player_id=body.player_id,
            bet_id=body.bet_id,
            level=state.current_level,
            cascade_count=state.cascade_count,
            connections=len(result.connections),
            step_win=sum(c.payout for c in result.connections),
            total_win=state.total_win,
            cascading=state.cascading,
            config_hash=get_config_hash(),
        )
    )

    return response.to_wire()
