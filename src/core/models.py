"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain layer (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the API layer or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
PieceColor = str
PlayerName = str
PieceDict = dict[str, str]  # {"kind": "pawn", "color": "white"}


@dataclass
class MoveRecordModel:
    """One entry of the move log, in plain types."""

    sequence_number: int
    piece: PieceDict
    from_square: str
    to_square: str
    captured_piece: Optional[PieceDict]
    promotion: Optional[str]
    timestamp: str


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between API, Service, and Game layers."""

    game_id: str
    board: list[list[Optional[PieceDict]]]
    turn: PieceColor
    status: str
    players: dict[PieceColor, PlayerName]
    move_log: list[MoveRecordModel] = field(default_factory=list)
    captured: dict[PieceColor, list[str]] = field(default_factory=dict)
    winner: Optional[PlayerName] = None
    draw_offered_by: Optional[PieceColor] = None
