"""Pieces on the board: what they are, whose they are, how they are written down and what they are worth"""

from dataclasses import dataclass
from typing import Self

from src.core.shared_types import Color, PieceType

# Lower case letter per type. Case carries the color: upper case white, lower case black.
FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

# Chess glyphs as the board is drawn for a player
PIECE_GLYPHS: dict[Color, dict[PieceType, str]] = {
    Color.WHITE: {
        PieceType.PAWN: "♙",
        PieceType.KNIGHT: "♘",
        PieceType.BISHOP: "♗",
        PieceType.ROOK: "♖",
        PieceType.QUEEN: "♕",
        PieceType.KING: "♔",
    },
    Color.BLACK: {
        PieceType.PAWN: "♟",
        PieceType.KNIGHT: "♞",
        PieceType.BISHOP: "♝",
        PieceType.ROOK: "♜",
        PieceType.QUEEN: "♛",
        PieceType.KING: "♚",
    },
}

# Capture value. The king is never captured and is worth nothing.
PIECE_POINTS: dict[PieceType, int] = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
    PieceType.KING: 0,
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        piece_type = FEN_TO_PIECE.get(character.lower())
        if piece_type is None:
            raise ValueError(f"Unknown piece symbol: {character!r}")
        return cls(piece_type, Color.WHITE if character.isupper() else Color.BLACK)

    def to_fen(self) -> str:
        symbol = PIECE_TO_FEN[self.type]
        return symbol.upper() if self.color == Color.WHITE else symbol

    @property
    def glyph(self) -> str:
        return PIECE_GLYPHS[self.color][self.type]

    @property
    def points(self) -> int:
        return PIECE_POINTS[self.type]

    def promoted_to(self, new_type: PieceType) -> Self:
        """Pieces are immutable: promotion replaces the pawn by a new piece of the same color."""
        return type(self)(new_type, self.color)
