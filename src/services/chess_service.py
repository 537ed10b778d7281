"""Orchestration of communication from API router to business logic and the session registry (and the reverse direction)."""

import logging
from dataclasses import asdict
from typing import Callable, TypeVar

from src.api.models import (
    CreateGameRequest,
    DisconnectRequest,
    DisconnectResponse,
    DrawRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    JoinGameResponse,
    LegalMove,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRecordResponse,
    MoveRequest,
    MoveResponse,
    ResignRequest,
)
from src.chess.game import Game
from src.chess.moves import Move
from src.core.exceptions import GameError, SessionNotFoundError
from src.core.models import GameModel
from src.core.shared_types import Status
from src.registry.registry import SessionRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self, registry: SessionRegistry, clock_seconds: float | None = None
    ) -> None:
        self.registry = registry
        self.clock_seconds = clock_seconds

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """Allocate a fresh game. If the request names a player, that player takes the first seat."""
        game = self.registry.create(clock_seconds=self.clock_seconds)
        if request.player_name:
            color = game.join(request.player_name)
            logger.info(
                "Player %r created game %s and plays %s",
                request.player_name,
                game.game_id,
                color,
            )
        return self._create_game_response(game.to_model())

    def join_game(self, request: JoinGameRequest) -> JoinGameResponse:
        """Player requested to take a seat in a game."""
        game = self._fetch_game(request.game_id)
        color = self._attempt(game, lambda: game.join(request.player_name))
        logger.info("Player %r joined game %s as %s", request.player_name, game.game_id, color)
        return JoinGameResponse(
            game_id=game.game_id,
            player_name=request.player_name,
            color=color,
            game=self._create_game_response(game.to_model()),
        )

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Sent to both players after every accepted request (or polled by a frontend).
        """
        game = self._fetch_game(request.game_id)
        return self._create_game_response(game.to_model())

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """retrieve set of legal moves."""
        game = self._fetch_game(request.game_id)
        moves = self._attempt(game, lambda: game.legal_moves(request.player_name))
        return LegalMovesResponse(
            game_id=game.game_id,
            player_name=request.player_name,
            color=game.players[request.player_name].color,
            legal_moves=[
                LegalMove(
                    from_square=move.from_square.to_algebraic(),
                    to_square=move.to_square.to_algebraic(),
                )
                for move in moves
            ],
        )

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """Make a move attempt."""
        game = self._fetch_game(request.game_id)
        move = Move.from_algebraic(
            request.from_square, request.to_square, request.promote_to
        )
        record, after_move = self._attempt(
            game, lambda: game.make_move(request.player_name, move)
        )
        logger.debug(
            "Game %s: move %d %s by %r",
            game.game_id,
            record.sequence_number,
            move,
            request.player_name,
        )
        game_over = Status(after_move.status).is_terminal
        if game_over:
            logger.info(
                "Game %s ended: %s (winner: %s)",
                game.game_id,
                after_move.status,
                after_move.winner,
            )

        return MoveResponse(
            accepted=True,
            move=MoveRecordResponse(**asdict(record.to_model())),
            game_over=game_over,
            game=self._create_game_response(after_move),
        )

    def resign(self, request: ResignRequest) -> GameResponse:
        game = self._fetch_game(request.game_id)
        self._attempt(game, lambda: game.resign(request.player_name))
        logger.info("Player %r resigned game %s", request.player_name, game.game_id)
        return self._create_game_response(game.to_model())

    def offer_draw(self, request: DrawRequest) -> GameResponse:
        game = self._fetch_game(request.game_id)
        self._attempt(game, lambda: game.offer_draw(request.player_name))
        return self._create_game_response(game.to_model())

    def accept_draw(self, request: DrawRequest) -> GameResponse:
        game = self._fetch_game(request.game_id)
        self._attempt(game, lambda: game.accept_draw(request.player_name))
        logger.info("Game %s ended in a draw by agreement", game.game_id)
        return self._create_game_response(game.to_model())

    def decline_draw(self, request: DrawRequest) -> GameResponse:
        game = self._fetch_game(request.game_id)
        self._attempt(game, lambda: game.decline_draw(request.player_name))
        return self._create_game_response(game.to_model())

    def disconnect(self, request: DisconnectRequest) -> DisconnectResponse:
        """
        Player left. Removes the game from the registry when nobody is left.

        Unknown games are not an error here: a disconnect may arrive after the game was already removed.
        """
        game = self.registry.get(request.game_id)
        if game is None:
            return DisconnectResponse(game_id=request.game_id, removed=True, game=None)

        nobody_left = game.disconnect(request.player_name)
        if nobody_left:
            self.registry.remove(game.game_id)
            return DisconnectResponse(game_id=game.game_id, removed=True, game=None)

        if game.status.is_terminal:
            logger.info("Player %r left game %s (status: %s)", request.player_name, game.game_id, game.status)
        return DisconnectResponse(
            game_id=game.game_id,
            removed=False,
            game=self._create_game_response(game.to_model()),
        )

    # -- Internal helpers --
    def _create_game_response(self, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse"""
        return GameResponse(**asdict(model))

    def _fetch_game(self, game_id: str) -> Game:
        """Attempt to find the game in the registry and raise error if it fails."""
        game = self.registry.get(game_id)
        if game is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        return game

    def _attempt(self, game: Game, action: Callable[[], T]) -> T:
        """Run a game action, logging the rejection before passing it on."""
        try:
            return action()
        except GameError as error:
            logger.warning("Game %s rejected request: %s", game.game_id, error)
            raise
