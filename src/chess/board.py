"""The Game board implements all rules that effect the `position` (in chess: the configuration of pieces on the board)"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.moves import MOVEMENT_RULES, CandidateMovesFn, Move, MoveRecord
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares

logger = logging.getLogger(__name__)

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


@dataclass
class Board:
    # Only occupied squares are stored: a missing key is an empty square.
    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> Self:
        return cls({})

    @classmethod
    def starting_position(cls) -> Self:
        """White back rank on row 7, black back rank on row 0, pawns on rows 6 and 1."""
        return cls.from_fen(STARTING_POSITION_FEN)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the piece placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank (row 0), starting with the rook on a8
        * black pawns cover row 1 entirely
        * rows 2 through 5 have 8 consecutive empty squares
        * row 6 are the white pawns (capital letters)
        * row 7 holds the white pieces, again read a-file to h-file.
        """
        position: dict[Square, Piece] = {}
        for row, fen_one_row in enumerate(fen_str.split("/")):
            col = 0
            for character in fen_one_row:
                if character.isalpha():
                    # simple case: a letter directly denotes the piece that should be created
                    position[Square(row, col)] = Piece.from_fen(character)
                    col += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    col += int(character)
        return cls(position)

    def to_fen(self) -> str:
        """Rows are separated by slashes in FEN string."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        """FEN string of a single row"""
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            piece = self.piece(Square(row, col))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire row is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def to_grid(self) -> list[list[Optional[str]]]:
        """8x8 grid of piece symbols (None for empty squares), as the presentation layer draws it"""
        grid: list[list[Optional[str]]] = []
        for row in range(BOARD_DIMENSIONS[0]):
            grid.append([])
            for col in range(BOARD_DIMENSIONS[1]):
                piece = self.piece(Square(row, col))
                grid[row].append(piece.to_fen() if piece else None)
        return grid

    def render(self) -> str:
        """Text diagram with chess glyphs, rank 8 on top. Empty squares are dots."""
        lines: list[str] = []
        for row in range(BOARD_DIMENSIONS[0]):
            cells = [
                piece.glyph if (piece := self.piece(Square(row, col))) else "·"
                for col in range(BOARD_DIMENSIONS[1])
            ]
            lines.append(f"{BOARD_DIMENSIONS[0] - row} {' '.join(cells)}")
        lines.append("  " + " ".join("abcdefgh"[: BOARD_DIMENSIONS[1]]))
        return "\n".join(lines)

    def copy(self) -> Self:
        """Disposable copy to simulate moves on. The live board never gets used for 'what-if' checks."""
        # Squares and Pieces are immutable: a new mapping is a full clone
        return type(self)(dict(self.position))

    # --- QUERIES ---
    def piece(self, square: Square) -> Optional[Piece]:
        return self.position.get(square)

    def color_at(self, square: Square) -> Optional[Color]:
        piece = self.piece(square)
        return piece.color if piece else None

    def locate_pieces(self, piece: Piece) -> list[Square]:
        return [square for square in all_squares() if self.piece(square) == piece]

    def locate_color(self, color: Color) -> list[Square]:
        """Squares holding pieces of the given color, scanned row by row from a8."""
        return [square for square in all_squares() if self.color_at(square) == color]

    def locate_king(self, color: Color) -> Optional[Square]:
        kings = self.locate_pieces(Piece(PieceType.KING, color))
        return kings[0] if kings else None

    # --- MUTATIONS ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        return self.position.pop(square, None)

    def move_piece(self, move: Move) -> MoveRecord:
        """
        Update the position on the board

        A pawn that reaches the far side of the board is replaced by a queen right away.
        """
        record = MoveRecord.from_move_and_board(move, self)
        self.remove_piece(move.from_square)
        landing_piece = (
            record.moving_piece.promoted_to(PieceType.QUEEN)
            if record.is_promotion
            else record.moving_piece
        )
        self.place_piece(landing_piece, move.to_square)
        return record

    # --- MOVE GENERATION / CHECK DETECTION ---
    def generate_candidate_moves(self, color: Color) -> list[Move]:
        """
        Before knowing the set of legal moves, we use raycasting to find candidate moves, which will later be tested for legality
        (making sure it does not put yourself in check.)
        """
        candidate_moves: list[Move] = []
        for starting_square in self.locate_color(color):
            candidate_moves.extend(self.candidate_moves_from(starting_square))
        return candidate_moves

    def candidate_moves_from(self, square: Square) -> list[Move]:
        """Pseudo-legal moves of the piece standing on the square. Empty square: no moves."""
        piece = self.piece(square)
        if piece is None:
            return []
        movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece.type]
        return movement_rule(square, self)

    def is_check(self, color: Color) -> bool:
        """
        The king of `color` is in check if any of the opponent's pieces could move onto its square.

        A board without that king is corrupted (cannot happen through legal play): nothing to attack, so no check.
        """
        king_square = self.locate_king(color)
        if king_square is None:
            logger.warning("No %s king on the board: %s", color, self.to_fen())
            return False

        return any(
            move.to_square == king_square
            for move in self.generate_candidate_moves(color.opponent)
        )

    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        return {color: self._count_material_player(color) for color in Color}

    def _count_material_player(self, color: Color) -> int:
        """Tally the points of material for a specific player"""
        return sum(
            piece.points for piece in self.position.values() if piece.color == color
        )
