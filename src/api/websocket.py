"""
Real-time play over a WebSocket.

One socket per player per game: `/ws/{game_id}/{player_name}`
* connecting seats the player (or reconnects them)
* every message is a JSON object with a "type": move / resign / offer_draw / accept_draw / decline_draw / legal_moves
* every accepted request is followed by the new game state, sent to BOTH players
* a rejected request is answered with an error, sent ONLY to the player that made it
* closing the socket counts as leaving the game
* a second socket for a player that is already connected is turned away
"""

import logging
from typing import Any, Callable

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from src.api.errors import error_payload
from src.api.models import (
    DisconnectRequest,
    DrawRequest,
    JoinGameRequest,
    LegalMovesRequest,
    MoveRequest,
    ResignRequest,
)
from src.core.exceptions import GameError, GameStateError, InvalidRequestError
from src.services.chess_service import ChessService

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """
    Which sockets are listening to which game.

    A player holds at most one socket per game. The socket stays registered until its own handler lets go of it.
    """

    def __init__(self) -> None:
        self._connections: dict[str, dict[str, WebSocket]] = {}

    def connect(self, game_id: str, player_name: str, websocket: WebSocket) -> bool:
        """Register the socket. False if the player already has a socket on this game."""
        sockets = self._connections.setdefault(game_id, {})
        if player_name in sockets:
            return False
        sockets[player_name] = websocket
        return True

    def disconnect(self, game_id: str, player_name: str, websocket: WebSocket) -> bool:
        """Forget the socket, but only if it is the one registered for the player."""
        sockets = self._connections.get(game_id, {})
        if sockets.get(player_name) is not websocket:
            return False
        del sockets[player_name]
        if not sockets:
            self._connections.pop(game_id, None)
        return True

    async def send(self, websocket: WebSocket, payload: dict[str, Any]) -> None:
        await websocket.send_json(payload)

    async def broadcast(self, game_id: str, payload: dict[str, Any]) -> None:
        """Send to every socket of the game. Sockets that went away are skipped, their own handler cleans up."""
        for player_name, websocket in list(self._connections.get(game_id, {}).items()):
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("Skipping dead socket of %r in game %s", player_name, game_id)


def _get_service(websocket: WebSocket) -> ChessService:
    return websocket.app.state.service


def _get_manager(websocket: WebSocket) -> ConnectionManager:
    return websocket.app.state.connections


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


async def _handle_message(
    service: ChessService, game_id: str, player_name: str, message: dict[str, Any]
) -> tuple[dict[str, Any], bool]:
    """
    Run one request from the player.
    Returns the payload to answer with, and whether it goes to both players (True) or just the sender (False).
    """
    if not isinstance(message, dict):
        raise InvalidRequestError("Messages must be JSON objects.")
    message_type = message.get("type")
    player = {"game_id": game_id, "player_name": player_name}

    if message_type == "move":
        fields = {key: message.get(key) for key in ("from_square", "to_square", "promote_to")}
        move_request = MoveRequest(**player, **fields)
        response = await run_in_threadpool(service.make_move, move_request)
        return {"type": "move", **_dump(response)}, True

    if message_type == "legal_moves":
        moves_response = await run_in_threadpool(
            service.legal_moves, LegalMovesRequest(**player)
        )
        return {"type": "legal_moves", **_dump(moves_response)}, False

    simple_actions: dict[str, tuple[Callable[[Any], BaseModel], type[BaseModel]]] = {
        "resign": (service.resign, ResignRequest),
        "offer_draw": (service.offer_draw, DrawRequest),
        "accept_draw": (service.accept_draw, DrawRequest),
        "decline_draw": (service.decline_draw, DrawRequest),
    }
    if message_type not in simple_actions:
        raise InvalidRequestError(f"Unknown message type: {message_type!r}")

    action, request_type = simple_actions[message_type]
    game = await run_in_threadpool(action, request_type(**player))
    return {"type": message_type, "player_name": player_name, "game": _dump(game)}, True


@router.websocket("/ws/{game_id}/{player_name}")
async def play(websocket: WebSocket, game_id: str, player_name: str) -> None:
    service = _get_service(websocket)
    manager = _get_manager(websocket)
    await websocket.accept()

    if not manager.connect(game_id, player_name, websocket):
        await websocket.send_json(
            error_payload(
                GameStateError(f"{player_name!r} is already connected to game {game_id}.")
            )
        )
        await websocket.close()
        return

    try:
        joined = await run_in_threadpool(
            service.join_game, JoinGameRequest(game_id=game_id, player_name=player_name)
        )
    except GameError as error:
        manager.disconnect(game_id, player_name, websocket)
        await websocket.send_json(error_payload(error))
        await websocket.close()
        return

    await manager.send(websocket, {"type": "joined", **_dump(joined)})
    await manager.broadcast(game_id, {"type": "game_state", "game": _dump(joined.game)})

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await manager.send(
                    websocket,
                    error_payload(InvalidRequestError("Messages must be JSON objects.")),
                )
                continue
            try:
                payload, to_everyone = await _handle_message(
                    service, game_id, player_name, message
                )
            except GameError as error:
                await manager.send(websocket, error_payload(error))
                continue
            except ValidationError as error:
                await manager.send(
                    websocket,
                    {"type": "error", "error": "ValidationError", "detail": str(error)},
                )
                continue

            if to_everyone:
                await manager.broadcast(game_id, payload)
            else:
                await manager.send(websocket, payload)
    except WebSocketDisconnect:
        logger.info("Player %r disconnected from game %s", player_name, game_id)
    finally:
        # Leaving must be recorded even when the handler itself is being cancelled
        with anyio.CancelScope(shield=True):
            await _leave(service, manager, websocket, game_id, player_name)


async def _leave(
    service: ChessService,
    manager: ConnectionManager,
    websocket: WebSocket,
    game_id: str,
    player_name: str,
) -> None:
    manager.disconnect(game_id, player_name, websocket)
    left = await run_in_threadpool(
        service.disconnect, DisconnectRequest(game_id=game_id, player_name=player_name)
    )
    if not left.removed:
        await manager.broadcast(
            game_id,
            {
                "type": "opponent_disconnected",
                "player_name": player_name,
                "game": _dump(left.game) if left.game else None,
            },
        )
