"""Unit tests for /src/chess/moves.py"""

import pytest

from src.chess.board import Board
from src.chess.moves import (
    MOVEMENT_RULES,
    Move,
    is_promotion_move,
    is_structurally_legal,
    resolve_promotion,
    squares_between,
    structural_problem,
)
from src.chess.square import Square
from src.core.shared_types import Color, PieceType

EMPTY_FEN = "/".join(["8"] * 8)


def _legal(fen: str, from_sq: str, to_sq: str, color: Color = Color.WHITE) -> bool:
    board = Board.from_fen(fen)
    return is_structurally_legal(board, Move.from_algebraic(from_sq, to_sq), color)


def test_every_piece_type_has_a_rule() -> None:
    assert set(MOVEMENT_RULES) == set(PieceType)


# --- PATH HELPERS ---
@pytest.mark.parametrize(
    "from_sq, to_sq, expected",
    [
        ("a1", "a4", ["a2", "a3"]),
        ("a4", "a1", ["a3", "a2"]),
        ("a1", "d1", ["b1", "c1"]),
        ("a1", "d4", ["b2", "c3"]),
        ("h8", "e5", ["g7", "f6"]),
        ("c3", "c4", []),
        ("c3", "d4", []),
    ],
)
def test_squares_between(from_sq: str, to_sq: str, expected: list[str]) -> None:
    found = squares_between(Square.from_algebraic(from_sq), Square.from_algebraic(to_sq))
    assert [square.to_algebraic() for square in found] == expected


def test_squares_between_requires_a_line() -> None:
    with pytest.raises(ValueError):
        squares_between(Square.from_algebraic("a1"), Square.from_algebraic("b3"))


# --- STRUCTURAL CHECKS ---
@pytest.mark.parametrize(
    "move",
    [
        Move(Square(4, 1), Square(4, 8)),  # destination off the board
        Move(Square(-1, 1), Square(0, 2)),  # origin off the board
        Move.from_algebraic("e4", "e5"),  # empty origin
        Move.from_algebraic("e7", "e6"),  # not your piece
        Move.from_algebraic("e2", "e2"),  # no movement
        Move.from_algebraic("d1", "e1"),  # own piece on destination
    ],
)
def test_structural_problems(move: Move) -> None:
    board = Board.starting_position()
    assert structural_problem(board, move, Color.WHITE) is not None
    assert not is_structurally_legal(board, move, Color.WHITE)


def test_no_structural_problem() -> None:
    board = Board.starting_position()
    assert structural_problem(board, Move.from_algebraic("e2", "e4"), Color.WHITE) is None


# --- PAWNS ---
@pytest.mark.parametrize(
    "fen, from_sq, to_sq, color, expected",
    [
        ("8/8/8/8/8/8/4P3/8", "e2", "e3", Color.WHITE, True),  # single push
        ("8/8/8/8/8/8/4P3/8", "e2", "e4", Color.WHITE, True),  # double push from start
        ("8/8/8/8/8/4P3/8/8", "e3", "e5", Color.WHITE, False),  # double push not from start
        ("8/8/8/8/8/4n3/4P3/8", "e2", "e3", Color.WHITE, False),  # blocked
        ("8/8/8/8/8/4n3/4P3/8", "e2", "e4", Color.WHITE, False),  # cannot jump
        ("8/8/8/8/4n3/8/4P3/8", "e2", "e4", Color.WHITE, False),  # destination occupied
        ("8/8/8/8/8/8/4P3/8", "e2", "e1", Color.WHITE, False),  # backwards
        ("8/8/8/8/8/8/4P3/8", "e2", "d3", Color.WHITE, False),  # diagonal without capture
        ("8/8/8/8/8/3n4/4P3/8", "e2", "d3", Color.WHITE, True),  # capture
        ("8/8/8/8/8/5n2/4P3/8", "e2", "f3", Color.WHITE, True),  # capture other side
        ("8/8/8/8/8/8/4P3/8", "e2", "f2", Color.WHITE, False),  # sideways
        ("8/4p3/8/8/8/8/8/8", "e7", "e6", Color.BLACK, True),  # black goes down
        ("8/4p3/8/8/8/8/8/8", "e7", "e5", Color.BLACK, True),
        ("8/4p3/8/8/8/8/8/8", "e7", "e8", Color.BLACK, False),
        ("8/4p3/5N2/8/8/8/8/8", "e7", "f6", Color.BLACK, True),
    ],
)
def test_pawn_rule(
    fen: str, from_sq: str, to_sq: str, color: Color, expected: bool
) -> None:
    assert _legal(fen, from_sq, to_sq, color) == expected


# --- KNIGHTS ---
@pytest.mark.parametrize(
    "to_sq", ["e6", "c6", "f5", "b5", "f3", "b3", "e2", "c2"]
)
def test_knight_jumps(to_sq: str) -> None:
    assert _legal("8/8/8/8/3N4/8/8/8", "d4", to_sq)


@pytest.mark.parametrize("to_sq", ["d5", "e5", "d6", "f6", "h4"])
def test_knight_cannot_move_otherwise(to_sq: str) -> None:
    assert not _legal("8/8/8/8/3N4/8/8/8", "d4", to_sq)


def test_knight_jumps_over_pieces() -> None:
    assert _legal(Board.starting_position().to_fen(), "g1", "f3")


# --- BISHOPS ---
@pytest.mark.parametrize("to_sq", ["a1", "h8", "a7", "g1"])
def test_bishop_diagonals(to_sq: str) -> None:
    assert _legal("8/8/8/8/3B4/8/8/8", "d4", to_sq)


@pytest.mark.parametrize("to_sq", ["d8", "a4", "e6"])
def test_bishop_cannot_leave_diagonals(to_sq: str) -> None:
    assert not _legal("8/8/8/8/3B4/8/8/8", "d4", to_sq)


def test_bishop_blocked() -> None:
    fen = "8/8/5p2/8/3B4/8/8/8"
    assert _legal(fen, "d4", "f6")  # capture the blocker
    assert not _legal(fen, "d4", "g7")  # but not beyond


# --- ROOKS ---
@pytest.mark.parametrize("to_sq", ["d8", "d1", "a4", "h4"])
def test_rook_lines(to_sq: str) -> None:
    assert _legal("8/8/8/8/3R4/8/8/8", "d4", to_sq)


def test_rook_cannot_move_diagonally() -> None:
    assert not _legal("8/8/8/8/3R4/8/8/8", "d4", "e5")


@pytest.mark.parametrize("blocker", ["p", "P"])
def test_rook_cannot_jump(blocker: str) -> None:
    """A rook never jumps over a pawn, whatever the color of the pawn."""
    fen = f"8/8/8/3{blocker}4/8/8/8/3R4"
    assert not _legal(fen, "d1", "d8")
    assert not _legal(fen, "d1", "d6")


# --- QUEENS ---
@pytest.mark.parametrize("to_sq", ["d8", "a4", "h8", "a1", "g1"])
def test_queen_moves(to_sq: str) -> None:
    assert _legal("8/8/8/8/3Q4/8/8/8", "d4", to_sq)


@pytest.mark.parametrize("to_sq", ["e6", "c2", "f5"])
def test_queen_cannot_move_like_knight(to_sq: str) -> None:
    assert not _legal("8/8/8/8/3Q4/8/8/8", "d4", to_sq)


def test_queen_blocked() -> None:
    assert not _legal(Board.starting_position().to_fen(), "d1", "d3")


# --- KINGS ---
@pytest.mark.parametrize("to_sq", ["c3", "c4", "c5", "d3", "d5", "e3", "e4", "e5"])
def test_king_single_step(to_sq: str) -> None:
    assert _legal("8/8/8/8/3K4/8/8/8", "d4", to_sq)


@pytest.mark.parametrize("to_sq", ["d6", "f4", "b2"])
def test_king_cannot_move_far(to_sq: str) -> None:
    assert not _legal("8/8/8/8/3K4/8/8/8", "d4", to_sq)


def test_no_castling() -> None:
    assert not _legal("4k3/8/8/8/8/8/8/4K2R", "e1", "g1")


# -- PROMOTION --
def test_is_promotion_move() -> None:
    board = Board.from_fen("8/4P3/8/8/8/8/3p4/R7")
    assert is_promotion_move(Move.from_algebraic("e7", "e8"), board)
    assert is_promotion_move(Move.from_algebraic("d2", "d1"), board)
    assert not is_promotion_move(Move.from_algebraic("a1", "a8"), board)  # not a pawn


@pytest.mark.parametrize(
    "requested, expected",
    [
        (None, PieceType.QUEEN),
        (PieceType.KNIGHT, PieceType.KNIGHT),
        (PieceType.KING, PieceType.QUEEN),
    ],
)
def test_resolve_promotion(requested: PieceType | None, expected: PieceType) -> None:
    assert resolve_promotion(requested) == expected
