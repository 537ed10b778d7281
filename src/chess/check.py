"""
Check detection and the end-of-game conditions built on top of it.

All functions are pure: hypothetical moves are always played on a copy (`Board.apply`), never on the board passed in.
"""

from typing import Iterator, Optional

from src.chess.board import Board
from src.chess.moves import Move, is_structurally_legal
from src.chess.pieces import MINOR_PIECES
from src.chess.square import Square, all_squares
from src.core.shared_types import Color, PieceType, Status


def is_in_check(board: Board, color: Color) -> bool:
    """True if any of the opponent's pieces could move onto the king's square."""
    king_square = board.locate_king(color)
    opponent = color.opponent
    return any(
        is_structurally_legal(board, Move(attacker, king_square), opponent)
        for attacker in board.locate_color(opponent)
    )


def leaves_king_in_check(board: Board, move: Move, color: Color) -> bool:
    """
    Return True if the move puts (or leaves) you in check

    plan:
    1. make the candidate move on a copy of the board
    2. determine if king is in check on the new board
    """
    return is_in_check(board.apply(move), color)


def legal_moves(board: Board, color: Color) -> Iterator[Move]:
    """
    Every move for `color` that follows the movement rules and does not leave its own king in check.
    ----

    Brute force: every own piece x every square of the board.
    Lazy, so callers that only need one move can stop at the first.
    """
    destinations: list[Square] = all_squares()
    for origin in board.locate_color(color):
        for destination in destinations:
            move = Move(origin, destination)
            if not is_structurally_legal(board, move, color):
                continue
            if leaves_king_in_check(board, move, color):
                continue
            yield move


def has_any_legal_move(board: Board, color: Color) -> bool:
    return next(legal_moves(board, color), None) is not None


def is_checkmate(board: Board, color: Color) -> bool:
    return is_in_check(board, color) and not has_any_legal_move(board, color)


def is_stalemate(board: Board, color: Color) -> bool:
    return not is_in_check(board, color) and not has_any_legal_move(board, color)


def is_insufficient_material(board: Board) -> bool:
    """
    Forced draws because nobody can ever mate:
    * King vs King
    * King vs King + a single bishop or knight
    * King + bishop vs King + bishop, with both bishops on the same square color

    Anything else is played on, even if it is obviously drawn.
    """
    non_kings: dict[Color, list[tuple[Square, PieceType]]] = {
        Color.WHITE: [],
        Color.BLACK: [],
    }
    for square, piece in board.position.items():
        if piece is not None and piece.type != PieceType.KING:
            non_kings[piece.color].append((square, piece.type))
    white, black = non_kings[Color.WHITE], non_kings[Color.BLACK]
    if len(white) > 1 or len(black) > 1:
        return False

    # bare kings, or one side has a lone minor piece
    if not white or not black:
        remaining = white or black
        return not remaining or remaining[0][1] in MINOR_PIECES

    # one extra piece each: only same colored bishops are a draw
    (white_square, white_type), (black_square, black_type) = white[0], black[0]
    both_bishops = white_type == black_type == PieceType.BISHOP
    return both_bishops and white_square.is_light() == black_square.is_light()


def game_over_status(board: Board) -> Optional[Status]:
    """
    Evaluated for the side about to move, right after a move was played.
    In order: checkmate, stalemate, insufficient material. None if the game goes on.
    """
    color = board.turn
    in_check = is_in_check(board, color)
    can_move = has_any_legal_move(board, color)
    if in_check and not can_move:
        return Status.CHECKMATE
    if not can_move:
        return Status.STALEMATE
    if is_insufficient_material(board):
        return Status.DRAW
    return None
