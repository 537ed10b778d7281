"""
Geometry/Base movement rules

Key idea: Use strategy pattern to define the movement rule for each piece type.
Every rule answers a single question: "Does this move follow the geometry of the piece (and is the path clear)?"

Whether the move leaves your own king in check is NOT decided here (see src/chess/check.py)
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import Piece
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.shared_types import Color, PieceType


class Board(Protocol):
    """Just the parts the movement rules need"""

    def piece(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]


@dataclass(frozen=True)
class Move:
    """A request to move a piece. Not validated yet."""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_algebraic(
        cls, from_sq: str, to_sq: str, promote_to: Optional[PieceType] = None
    ) -> Self:
        """convenience: Move.from_algebraic("e2", "e4")"""
        return cls(Square.from_algebraic(from_sq), Square.from_algebraic(to_sq), promote_to)

    @property
    def delta(self) -> Vector:
        return (
            self.to_square.file - self.from_square.file,
            self.to_square.rank - self.from_square.rank,
        )

    def __str__(self) -> str:
        return f"{self.from_square.to_algebraic()}-{self.to_square.to_algebraic()}"


# --- PAWN CONSTANTS ---
# White moves UP the board (towards rank index 7), Black moves DOWN.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: -1}
PAWN_START_RANK: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: BOARD_DIMENSIONS[1] - 2}
PROMOTION_RANK: dict[Color, int] = {Color.WHITE: BOARD_DIMENSIONS[1] - 1, Color.BLACK: 0}

PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]
DEFAULT_PROMOTION = PieceType.QUEEN


# --- PATH HELPERS ---
def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def squares_between(from_square: Square, to_square: Square) -> list[Square]:
    """
    Find the squares strictly in between two squares that lie on the same rank, file or diagonal.

    We step along the unit vector (sign of the delta in both directions) until we hit the destination.
    """
    df = to_square.file - from_square.file
    dr = to_square.rank - from_square.rank
    if not (df == 0 or dr == 0 or abs(df) == abs(dr)):
        raise ValueError(
            f"squares_between requires both squares to lie on a straight line or diagonal. \n from: {from_square}\n to:{to_square}"
        )

    step_file, step_rank = _sign(df), _sign(dr)
    squares_found: list[Square] = []
    file = from_square.file + step_file
    rank = from_square.rank + step_rank
    while (file, rank) != (to_square.file, to_square.rank):
        squares_found.append(Square(file, rank))
        file += step_file
        rank += step_rank
    return squares_found


def is_path_clear(board: Board, move: Move) -> bool:
    """destination itself is not part of the path (captures are checked separately)"""
    return all(
        board.piece(square) is None
        for square in squares_between(move.from_square, move.to_square)
    )


# --- MOVEMENT RULES ---
def pawn_rule(board: Board, move: Move, color: Color) -> bool:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting rank), through two empty squares.
    - takes diagonally, and only takes (needs an opponent's piece on the target square).

    NOTE: No en passant.
    """
    df, dr = move.delta
    direction = PAWN_DIRECTION[color]
    target = board.piece(move.to_square)

    # pawn pushes
    if df == 0:
        if target is not None:
            return False
        if dr == direction:
            return True
        if dr == 2 * direction and move.from_square.rank == PAWN_START_RANK[color]:
            return is_path_clear(board, move)
        return False

    # pawn takes
    if abs(df) == 1 and dr == direction:
        return target is not None and target.color != color
    return False


def knight_rule(board: Board, move: Move, color: Color) -> bool:
    """Knights jump, such that (|delta_file|, |delta_rank|) is (1, 2) or (2, 1)"""
    df, dr = move.delta
    return {abs(df), abs(dr)} == {1, 2}


def bishop_rule(board: Board, move: Move, color: Color) -> bool:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    df, dr = move.delta
    return abs(df) == abs(dr) != 0 and is_path_clear(board, move)


def rook_rule(board: Board, move: Move, color: Color) -> bool:
    """Rooks move either horizontally or vertically"""
    df, dr = move.delta
    return ((df == 0) != (dr == 0)) and is_path_clear(board, move)


def queen_rule(board: Board, move: Move, color: Color) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return bishop_rule(board, move, color) or rook_rule(board, move, color)


def king_rule(board: Board, move: Move, color: Color) -> bool:
    """
    The king can move by a single square at the time.

    NOTE: No castling.
    """
    df, dr = move.delta
    return max(abs(df), abs(dr)) == 1


# -- STRATEGY PATTERN: MOVEMENT RULES ---
MovementRuleFn = Callable[[Board, Move, Color], bool]
MOVEMENT_RULES: dict[PieceType, MovementRuleFn] = {
    PieceType.PAWN: pawn_rule,
    PieceType.KNIGHT: knight_rule,
    PieceType.BISHOP: bishop_rule,
    PieceType.ROOK: rook_rule,
    PieceType.QUEEN: queen_rule,
    PieceType.KING: king_rule,
}


# --- VALIDATION ---
def structural_problem(board: Board, move: Move, color: Color) -> Optional[str]:
    """
    Reasons a move is malformed, independent of the piece type.
    Returns None if nothing is wrong.
    """
    if not move.from_square.is_within_bounds():
        return f"{move.from_square} is not on the board"
    if not move.to_square.is_within_bounds():
        return f"{move.to_square} is not on the board"

    piece = board.piece(move.from_square)
    if piece is None:
        return f"There is no piece on {move.from_square.to_algebraic()}"
    if piece.color != color:
        return f"The piece on {move.from_square.to_algebraic()} is not yours"
    if move.from_square == move.to_square:
        return "A move must change the square of the piece"

    target = board.piece(move.to_square)
    if target is not None and target.color == color:
        return f"Cannot capture your own piece on {move.to_square.to_algebraic()}"
    return None


def follows_movement_rule(board: Board, move: Move) -> bool:
    """Dispatch to the rule of whatever piece stands on the origin square."""
    piece = board.piece(move.from_square)
    if piece is None:
        return False
    return MOVEMENT_RULES[piece.type](board, move, piece.color)


def is_structurally_legal(board: Board, move: Move, color: Color) -> bool:
    """
    Is the move allowed for the piece, ignoring whether it leaves your own king in check?
    """
    return structural_problem(board, move, color) is None and follows_movement_rule(
        board, move
    )


# -- PAWN PROMOTION --
def is_promotion_move(move: Move, board: Board) -> bool:
    """check if the move is a pawn move that reaches the far rank"""
    moving_piece = board.piece(move.from_square)
    if moving_piece is None or moving_piece.type != PieceType.PAWN:
        return False
    return move.to_square.rank == PROMOTION_RANK[moving_piece.color]


def resolve_promotion(requested: Optional[PieceType]) -> PieceType:
    """A missing or impossible choice (pawn / king) quietly becomes a queen."""
    if requested in PROMOTION_OPTIONS:
        return requested
    return DEFAULT_PROMOTION
