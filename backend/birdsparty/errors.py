"""Error codes and exceptions for the Birds Party endpoints."""
from enum import Enum

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes surfaced to clients."""

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_BET = "INVALID_BET"
    INVALID_GRID = "INVALID_GRID"
    SETTINGS_UNAVAILABLE = "SETTINGS_UNAVAILABLE"
    OUTCOME_UNAVAILABLE = "OUTCOME_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INVALID_BET: 400,
    ErrorCode.INVALID_GRID: 400,
    ErrorCode.SETTINGS_UNAVAILABLE: 500,
    ErrorCode.OUTCOME_UNAVAILABLE: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ErrorResponse(BaseModel):
    """Structured status/message body returned on failure."""

    status: str = "error"
    code: str
    message: str


class GameError(Exception):
    """Base game error that maps to a structured error response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.status_code = ERROR_HTTP_STATUS[code]
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert to JSONResponse."""
        return JSONResponse(
            status_code=self.status_code,
            content=ErrorResponse(
                code=self.code.value,
                message=self.message,
            ).model_dump(),
        )


def settings_unavailable() -> GameError:
    """Error raised when the RTP lookup fails."""
    return GameError(ErrorCode.SETTINGS_UNAVAILABLE, "Failed to retrieve game settings")


def outcome_unavailable() -> GameError:
    """Error raised when the outcome decision call fails."""
    return GameError(ErrorCode.OUTCOME_UNAVAILABLE, "Failed to determine outcome")
