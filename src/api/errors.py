"""Translate domain exceptions into HTTP responses / WebSocket error messages."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from src.core.exceptions import (
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NotParticipantError,
    NotYourTurnError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

# Checked in order: subclasses before their parents
STATUS_CODES: list[tuple[type[GameError], int]] = [
    (SessionNotFoundError, 404),
    (NotParticipantError, 403),
    (NotYourTurnError, 409),
    (GameStateError, 409),
    (IllegalMoveError, 400),
    (InvalidRequestError, 422),
]


def status_code_for(error: GameError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 400


def error_payload(error: GameError) -> dict[str, str]:
    return {"type": "error", "error": type(error).__name__, "detail": str(error)}


async def game_error_handler(request: Request, error: GameError) -> JSONResponse:
    """Registered on the app for GameError. Nothing was changed by the failing request, so this is never fatal."""
    status_code = status_code_for(error)
    logger.debug("%s %s -> %d: %s", request.method, request.url.path, status_code, error)
    return JSONResponse(status_code=status_code, content=error_payload(error))
