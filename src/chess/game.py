"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a game between two remote players -->
passes this information to the service layer, which can then pass it onwards to the API layer.

A Game is the ONLY place where the board gets replaced, and every public method runs under the game's own lock:
two requests for the same game are applied one after the other, in the order they got hold of the lock.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Optional, Self

from src.chess.board import Board
from src.chess.check import game_over_status, leaves_king_in_check
from src.chess.check import legal_moves as generate_legal_moves
from src.chess.moves import (
    Move,
    follows_movement_rule,
    is_promotion_move,
    resolve_promotion,
    structural_problem,
)
from src.chess.pieces import Piece
from src.chess.square import Square
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    NotParticipantError,
    NotYourTurnError,
    SelfCheckError,
    SessionFullError,
    StructuralError,
)
from src.core.models import GameModel, MoveRecordModel
from src.core.shared_types import Color, PieceType, Status


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MoveRecord:
    """What happened in a single accepted move. Never changed after being appended to the log."""

    piece: Piece
    from_square: Square
    to_square: Square
    captured_piece: Optional[Piece]
    sequence_number: int
    timestamp: datetime
    promotion: Optional[PieceType] = None

    def to_model(self) -> MoveRecordModel:
        return MoveRecordModel(
            sequence_number=self.sequence_number,
            piece=self.piece.to_dict(),
            from_square=self.from_square.to_algebraic(),
            to_square=self.to_square.to_algebraic(),
            captured_piece=self.captured_piece.to_dict() if self.captured_piece else None,
            promotion=self.promotion.value if self.promotion else None,
            timestamp=self.timestamp.isoformat(),
        )


@dataclass
class Player:
    identity: str
    color: Color
    clock_remaining: Optional[float] = None
    connected: bool = True


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    game_id: str
    board: Board
    players: dict[str, Player]
    status: Status
    move_log: list[MoveRecord]
    winner: Optional[str] = None
    draw_offered_by: Optional[Color] = None
    was_full: bool = False
    clock_seconds: Optional[float] = None
    created_at: datetime = field(default_factory=utc_now)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False, compare=False)

    @classmethod
    def new_game(
        cls,
        game_id: str,
        starting_position: Optional[str] = None,
        clock_seconds: Optional[float] = None,
    ) -> Self:
        """An empty game, waiting for its two players. Always white to move first."""
        board = (
            Board.from_fen(starting_position)
            if starting_position
            else Board.starting_position()
        )
        return cls(
            game_id=game_id,
            board=board,
            players={},
            status=Status.WAITING,
            move_log=[],
            clock_seconds=clock_seconds,
        )

    def to_model(self) -> GameModel:
        """Encode into a format the Service layer uses"""
        with self._lock:
            return self._to_model()

    def _to_model(self) -> GameModel:
        """Caller must hold the lock."""
        return GameModel(
            game_id=self.game_id,
            board=self.board.snapshot(),
            turn=self.board.turn.value,
            status=self.status.value,
            players={
                player.color.value: player.identity
                for player in self.players.values()
            },
            move_log=[record.to_model() for record in self.move_log],
            captured={
                color.value: [piece.type.value for piece in pieces]
                for color, pieces in self._captured_pieces().items()
            },
            winner=self.winner,
            draw_offered_by=(
                self.draw_offered_by.value if self.draw_offered_by else None
            ),
        )

    @property
    def turn(self) -> Color:
        return self.board.turn

    @property
    def connected_players(self) -> list[str]:
        return [player.identity for player in self.players.values() if player.connected]

    # --- PLAYERS ---
    def join(self, identity: str) -> Color:
        """
        Seat a player.
        ----

        The first player gets a random color, the second one whatever is left. The game starts once both are seated.
        Joining again with an identity that is already seated simply returns its color (reconnect).
        """
        with self._lock:
            if identity in self.players:
                player = self.players[identity]
                player.connected = True
                return player.color

            if len(self.players) >= 2:
                raise SessionFullError(f"Game {self.game_id} already has two players.")
            if self.status != Status.WAITING:
                raise GameStateError(
                    f"Cannot join this game. Game is not accepting new players. status: {self.status}"
                )

            if not self.players:
                color = random.choice([Color.WHITE, Color.BLACK])
            else:
                opponent = next(iter(self.players.values()))
                color = opponent.color.opponent

            self.players[identity] = Player(identity, color, self.clock_seconds)
            if len(self.players) == 2:
                self.was_full = True
                self._change_status(Status.ACTIVE)
            return color

    def disconnect(self, identity: str) -> bool:
        """
        A player left.
        ----

        * Never had two players: the player is simply removed from the game.
        * Game in progress: the remaining player wins, the game is abandoned.
        * Game already over: only remember that the player is gone.

        Calling this for an identity that is not (or no longer) connected changes nothing, and returns False.
        Returns True only if this call took away the last player, so the registry can forget the game.
        """
        with self._lock:
            player = self.players.get(identity)
            if player is None or not player.connected:
                return False

            if not self.was_full:
                del self.players[identity]
                return not self.players

            player.connected = False
            if self.status == Status.ACTIVE:
                self._change_status(Status.ABANDONED)
                self.winner = self._opponent(player).identity
            return not self.connected_players

    # --- MOVES ---
    def legal_moves(self, identity: str) -> list[Move]:
        """Every move the player could make right now. Empty if it is not their turn."""
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            if player.color != self.turn:
                return []
            return list(generate_legal_moves(self.board, player.color))

    def make_move(self, identity: str, move: Move) -> tuple[MoveRecord, GameModel]:
        """
        Attempt to make a move
        -----

        1. game must be in progress, the player must be seated, and it must be their turn
        2. the move must follow the movement rules of the piece
        3. the move must not leave the player's own king in check
        4. update the board (the old board is replaced, never modified)
        5. append to the move log
        6. update game status (if needed) for the side that is now to move
        7. return the record together with the game as it stands right after this move
        """
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            self._assert_your_turn(player)
            self._assert_legal(move, player.color)

            record = self._create_move_record(move)
            self.board = self.board.apply(move)
            self.move_log.append(record)

            # Moving on means not taking up the opponent's offer
            if self.draw_offered_by == player.color.opponent:
                self.draw_offered_by = None

            self._update_game_status(player)
            return record, self._to_model()

    # --- ENDING THE GAME WITHOUT A MOVE ---
    def resign(self, identity: str) -> None:
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            self._change_status(Status.RESIGNED)
            self.winner = self._opponent(player).identity

    def offer_draw(self, identity: str) -> None:
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            self.draw_offered_by = player.color

    def accept_draw(self, identity: str) -> None:
        """Only the opponent of the player who offered can accept."""
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            self._assert_offer_pending_for(player)
            self.draw_offered_by = None
            self._change_status(Status.DRAW)

    def decline_draw(self, identity: str) -> None:
        with self._lock:
            self._assert_in_progress()
            player = self._get_player(identity)
            self._assert_offer_pending_for(player)
            self.draw_offered_by = None

    # -- PRIVATE HELPERS ---
    def _get_player(self, identity: str) -> Player:
        player = self.players.get(identity)
        if player is None:
            raise NotParticipantError(
                f"{identity!r} is not playing in game {self.game_id}."
            )
        return player

    def _opponent(self, player: Player) -> Player:
        return next(
            other for other in self.players.values() if other.identity != player.identity
        )

    def _assert_in_progress(self) -> None:
        if self.status != Status.ACTIVE:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _assert_your_turn(self, player: Player) -> None:
        """You must wait for your turn before making a move."""
        if player.color != self.turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.turn} to make a move first."
            )

    def _assert_legal(self, move: Move, color: Color) -> None:
        problem = structural_problem(self.board, move, color)
        if problem is not None:
            raise StructuralError(problem)
        if not follows_movement_rule(self.board, move):
            raise IllegalMoveError(f"Move not allowed: {move}")
        if leaves_king_in_check(self.board, move, color):
            raise SelfCheckError(f"Move {move} would leave your king in check")

    def _assert_offer_pending_for(self, player: Player) -> None:
        if self.draw_offered_by != player.color.opponent:
            raise GameStateError("Your opponent has not offered a draw.")

    def _create_move_record(self, move: Move) -> MoveRecord:
        """Snapshot of the moving pieces before the board gets updated."""
        moving_piece = self.board.piece(move.from_square)
        if moving_piece is None:
            raise StructuralError(f"There is no piece on {move.from_square.to_algebraic()}")
        promotion = (
            resolve_promotion(move.promote_to)
            if is_promotion_move(move, self.board)
            else None
        )
        return MoveRecord(
            piece=moving_piece,
            from_square=move.from_square,
            to_square=move.to_square,
            captured_piece=self.board.piece(move.to_square),
            sequence_number=len(self.move_log) + 1,
            timestamp=utc_now(),
            promotion=promotion,
        )

    def _update_game_status(self, mover: Player) -> None:
        """Performs checks to see if game has ended and changes status accordingly.

        NOTE the board has already been updated. At this point the side to move is the opponent of the player making the original request.
        """
        new_status = game_over_status(self.board)
        if new_status is None:
            return
        self._change_status(new_status)
        if new_status == Status.CHECKMATE:
            self.winner = mover.identity

    def _change_status(self, new_status: Status) -> None:
        if self.status.is_terminal:
            raise GameStateError(f"Game already ended. status: {self.status}")
        self.status = new_status

    def _captured_pieces(self) -> dict[Color, list[Piece]]:
        """Pieces taken BY each color, in the order they were taken."""
        captured: dict[Color, list[Piece]] = {Color.WHITE: [], Color.BLACK: []}
        for record in self.move_log:
            if record.captured_piece is not None:
                captured[record.piece.color].append(record.captured_piece)
        return captured
