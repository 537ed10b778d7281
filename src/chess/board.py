"""The Game board: which piece stands where, and whose turn it is. No rules live here."""

from dataclasses import dataclass
from typing import Optional, Self

from src.chess.moves import Move, is_promotion_move, resolve_promotion
from src.chess.pieces import Piece
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares
from src.core.shared_types import Color, PieceType

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


@dataclass
class Board:
    position: dict[Square, Optional[Piece]]
    turn: Color = Color.WHITE

    @classmethod
    def from_fen(cls, fen_str: str, turn: Color = Color.WHITE) -> Self:
        """Construct a board using a given FEN string.

        That is, we supply the first part of the FEN string that denotes the board position
        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces.
        """
        position: dict[Square, Optional[Piece]] = {square: None for square in all_squares()}
        fen_by_ranks = fen_str.split("/")
        if len(fen_by_ranks) != BOARD_DIMENSIONS[1]:
            raise ValueError(f"Expected {BOARD_DIMENSIONS[1]} ranks in {fen_str!r}")

        for rank_idx, fen_one_rank in enumerate(fen_by_ranks):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - 1 - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 0
            for character in fen_one_rank:
                if character.isalpha():
                    # simple case: a letter directly denotes the piece that should be created
                    position[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
            if file != BOARD_DIMENSIONS[0]:
                raise ValueError(f"Rank {fen_one_rank!r} does not cover the full board")
        return cls(position, turn)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_POSITION)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_DIMENSIONS[0]):
            piece = self.piece(Square(file, rank))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Optional[Piece]:
        return self.position[square]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square
            for square, piece in self.position.items()
            if piece is not None and piece.color == color
        ]

    def locate_king(self, color: Color) -> Square:
        """Always scan the board. (No cached king square that could go stale.)"""
        king = Piece(PieceType.KING, color)
        for square, piece in self.position.items():
            if piece == king:
                return square
        raise ValueError(f"No {color} king on the board")

    def pieces(self, color: Color) -> list[Piece]:
        """find all pieces of a given color"""
        return [
            piece
            for piece in self.position.values()
            if piece is not None and piece.color == color
        ]

    def copy(self) -> Self:
        """Pieces are immutable, so a shallow copy of the mapping is an independent board."""
        return type(self)(dict(self.position), self.turn)

    def apply(self, move: Move) -> Self:
        """
        Return the board after the move. The board itself is left untouched.

        NOTE: No legality checks. The caller is trusted to have validated the move.
        ---
        1. the piece leaves the origin square
        2. it replaces whatever stood on the destination
        3. a pawn arriving on the far rank gets replaced by the promotion piece (queen by default)
        4. the other side is to move
        """
        new_board = self.copy()
        piece_that_moved = self.piece(move.from_square)
        if piece_that_moved is not None and is_promotion_move(move, self):
            piece_that_moved = piece_that_moved.promoted_to(
                resolve_promotion(move.promote_to)
            )
        new_board.position[move.from_square] = None
        new_board.position[move.to_square] = piece_that_moved
        new_board.turn = self.turn.opponent
        return new_board

    def snapshot(self) -> list[list[Optional[dict[str, str]]]]:
        """
        8x8 grid of plain dictionaries for clients to render.
        Row 0 is the 8th rank (as seen from white), column 0 is the a-file.
        """
        grid: list[list[Optional[dict[str, str]]]] = []
        for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1):
            row: list[Optional[dict[str, str]]] = []
            for file in range(BOARD_DIMENSIONS[0]):
                piece = self.piece(Square(file, rank))
                row.append(piece.to_dict() if piece else None)
            grid.append(row)
        return grid
