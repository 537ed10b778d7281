"""Requests and Response models"""

from typing import Optional

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType, Status

PlayerName = str


# --- REQUEST MODELS ---
class PlayerBody(BaseModel):
    """Body of the per-player endpoints (the game ID is part of the URL)"""

    player_name: str


class MoveBody(PlayerBody):
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None


class CreateGameRequest(BaseModel):
    """If a player name is given, the creator immediately takes the first seat."""

    player_name: Optional[str] = None


class GetGameRequest(BaseModel):
    game_id: str


class PlayerRequest(BaseModel):
    """Anything a seated (or seating) player asks for a game."""

    game_id: str
    player_name: str

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Player name cannot be empty.")
        return value


class JoinGameRequest(PlayerRequest):
    pass


class LegalMovesRequest(PlayerRequest):
    pass


class ResignRequest(PlayerRequest):
    pass


class DrawRequest(PlayerRequest):
    pass


class DisconnectRequest(PlayerRequest):
    pass


class MoveRequest(PlayerRequest):
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        def _is_algebraic_notation(value: str) -> bool:
            if len(value) != 2:
                return False

            first_character = value[0]
            second_character = value[1]
            if not (first_character.isalpha() and second_character.isdecimal()):
                return False
            return True

        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value.lower()


# --- RESPONSE MODELS ---
class PieceResponse(BaseModel):
    kind: PieceType
    color: Color


class MoveRecordResponse(BaseModel):
    sequence_number: int
    piece: PieceResponse
    from_square: str
    to_square: str
    captured_piece: Optional[PieceResponse]
    promotion: Optional[PieceType]
    timestamp: str


class GameResponse(BaseModel):
    """Everything a client needs to render the game, without replaying the moves."""

    game_id: str
    board: list[list[Optional[PieceResponse]]]
    turn: Color
    status: Status
    players: dict[Color, PlayerName]
    move_log: list[MoveRecordResponse]
    captured: dict[Color, list[PieceType]]
    winner: Optional[PlayerName]
    draw_offered_by: Optional[Color]


class JoinGameResponse(BaseModel):
    game_id: str
    player_name: PlayerName
    color: Color
    game: GameResponse


class MoveResponse(BaseModel):
    accepted: bool
    move: MoveRecordResponse
    game_over: bool
    game: GameResponse


class LegalMove(BaseModel):
    from_square: str
    to_square: str


class LegalMovesResponse(BaseModel):
    game_id: str
    player_name: PlayerName
    color: Color
    legal_moves: list[LegalMove]


class DisconnectResponse(BaseModel):
    """`removed` signals the game is gone (no game state to show anymore)."""

    game_id: str
    removed: bool
    game: Optional[GameResponse]
