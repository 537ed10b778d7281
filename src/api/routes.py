"""
REST endpoints.

Plain `def` handlers: FastAPI runs them in its thread pool, so the (CPU bound) end-of-game detection never blocks the event loop.
Concurrent requests for the same game are serialized by the Game itself.
"""

from fastapi import APIRouter, Request

from src.api.models import (
    CreateGameRequest,
    DisconnectRequest,
    DisconnectResponse,
    DrawRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    JoinGameResponse,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveBody,
    MoveRequest,
    MoveResponse,
    PlayerBody,
    ResignRequest,
)
from src.core.exceptions import InvalidRequestError
from src.services.chess_service import ChessService

router = APIRouter(prefix="/games", tags=["games"])

DRAW_ACTIONS = ("offer", "accept", "decline")


def get_service(request: Request) -> ChessService:
    """Get ChessService from app state."""
    return request.app.state.service


@router.post("", response_model=GameResponse, status_code=201)
def create_game(body: CreateGameRequest, request: Request) -> GameResponse:
    return get_service(request).create_new_game(body)


@router.get("/{game_id}", response_model=GameResponse)
def get_game(game_id: str, request: Request) -> GameResponse:
    return get_service(request).get_game_state(GetGameRequest(game_id=game_id))


@router.post("/{game_id}/join", response_model=JoinGameResponse)
def join_game(game_id: str, body: PlayerBody, request: Request) -> JoinGameResponse:
    join_request = JoinGameRequest(game_id=game_id, player_name=body.player_name)
    return get_service(request).join_game(join_request)


@router.get("/{game_id}/legal-moves", response_model=LegalMovesResponse)
def legal_moves(game_id: str, player_name: str, request: Request) -> LegalMovesResponse:
    moves_request = LegalMovesRequest(game_id=game_id, player_name=player_name)
    return get_service(request).legal_moves(moves_request)


@router.post("/{game_id}/moves", response_model=MoveResponse)
def make_move(game_id: str, body: MoveBody, request: Request) -> MoveResponse:
    move_request = MoveRequest(game_id=game_id, **body.model_dump())
    return get_service(request).make_move(move_request)


@router.post("/{game_id}/resign", response_model=GameResponse)
def resign(game_id: str, body: PlayerBody, request: Request) -> GameResponse:
    resign_request = ResignRequest(game_id=game_id, player_name=body.player_name)
    return get_service(request).resign(resign_request)


@router.post("/{game_id}/draw/{action}", response_model=GameResponse)
def draw(game_id: str, action: str, body: PlayerBody, request: Request) -> GameResponse:
    """action: offer / accept / decline"""
    if action not in DRAW_ACTIONS:
        raise InvalidRequestError(
            f"Unknown draw action {action!r}. Pick one from {', '.join(DRAW_ACTIONS)}"
        )
    service = get_service(request)
    draw_request = DrawRequest(game_id=game_id, player_name=body.player_name)
    handlers = {
        "offer": service.offer_draw,
        "accept": service.accept_draw,
        "decline": service.decline_draw,
    }
    return handlers[action](draw_request)


@router.post("/{game_id}/disconnect", response_model=DisconnectResponse)
def disconnect(game_id: str, body: PlayerBody, request: Request) -> DisconnectResponse:
    disconnect_request = DisconnectRequest(game_id=game_id, player_name=body.player_name)
    return get_service(request).disconnect(disconnect_request)
