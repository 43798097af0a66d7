"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define the pseudo-legal move sets for each piece type.


Legality (not leaving your own king in check) is checked later by Game
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]

# White starts at the bottom of the grid (rows 6-7) and moves UP (towards row 0). Black moves DOWN.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_START_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: BOARD_DIMENSIONS[0] - 1}


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface style notation: <from_square><to_square>

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "g8f6": knight from g8 to f6

        NOTE: promotion suffixes are not needed, pawns always become queens.
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        return cls(from_sq, to_sq)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}"


@dataclass(frozen=True)
class MoveRecord:
    """Snapshot of a move that was actually played: what moved, what got captured."""

    move: Move
    moving_piece: Piece
    captured_piece: Optional[Piece] = None
    is_promotion: bool = False

    @classmethod
    def from_move_and_board(cls, move: Move, board: Board) -> Self:
        """Must be created BEFORE the board gets updated."""
        moving_piece = board.piece(move.from_square)
        if moving_piece is None:
            raise ValueError(f"No piece to move on {move.from_square.to_algebraic()}")
        return cls(
            move=move,
            moving_piece=moving_piece,
            captured_piece=board.piece(move.to_square),
            is_promotion=is_pawn_push_to_promotion_square(move, moving_piece),
        )

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    ---
    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board.
    """
    player_color = _color_on(square, board)

    moves: list[Move] = []
    for d_row, d_col in directions:
        target_square = square
        while True:
            target_square = target_square.offset(d_row, d_col)
            if not target_square.is_within_bounds():
                break

            piece_found = board.piece(target_square)
            if piece_found is not None:
                # only need to add the first occupied square found if it is the opponent's: then it can be captured.
                if piece_found.color != player_color:
                    moves.append(Move(from_square=square, to_square=target_square))
                break

            moves.append(Move(from_square=square, to_square=target_square))
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just can move a single step along a direction"""
    player_color = _color_on(square, board)
    moves: list[Move] = []
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if not target_square.is_within_bounds():
            continue

        piece_found = board.piece(target_square)
        if piece_found is None or piece_found.color != player_color:
            moves.append(Move(from_square=square, to_square=target_square))

    return moves


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting row) if both squares are empty
    - takes diagonally, only when an opponent's piece stands there

    NOTE: no en passant
    """
    player_color = _color_on(square, board)
    direction = PAWN_DIRECTION[player_color]
    moves: list[Move] = []

    one_step = square.offset(direction, 0)
    if one_step.is_within_bounds() and board.piece(one_step) is None:
        moves.append(Move(from_square=square, to_square=one_step))

        two_steps = square.offset(2 * direction, 0)
        if (
            square.row == PAWN_START_ROW[player_color]
            and two_steps.is_within_bounds()
            and board.piece(two_steps) is None
        ):
            moves.append(Move(from_square=square, to_square=two_steps))

    # pawns take diagonally:
    for d_col in (-1, 1):
        target_square = square.offset(direction, d_col)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece(target_square)
        if piece_found is not None and piece_found.color != player_color:
            moves.append(Move(from_square=square, to_square=target_square))
    return moves


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    knight_deltas: list[Vector] = [
        (-2, -1),
        (-2, 1),
        (-1, -2),
        (-1, 2),
        (1, -2),
        (1, 2),
        (2, -1),
        (2, 1),
    ]
    return single_step_move(square, board, knight_deltas)


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    diagonals: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
    return raycasting_move(square, board, diagonals)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    stay_on_row = [(0, 1), (0, -1)]
    stay_on_col = [(1, 0), (-1, 0)]
    horizontal_moves = raycasting_move(square, board, stay_on_row)
    vertical_moves = raycasting_move(square, board, stay_on_col)
    return horizontal_moves + vertical_moves


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    horizontal_and_vertical_moves = candidate_rook_moves(square, board)
    diagonal_moves = candidate_bishop_moves(square, board)
    return horizontal_and_vertical_moves + diagonal_moves


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """
    The king can move by a single square at the time.

    NOTE: No castling. Kings standing next to each other is not prevented by a special rule either,
    only by the normal check detection.
    """
    king_deltas: list[Vector] = [
        (d_row, d_col)
        for d_row in (-1, 0, 1)
        for d_col in (-1, 0, 1)
        if (d_row, d_col) != (0, 0)
    ]
    return single_step_move(square, board, king_deltas)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# -- PAWN PROMOTION --
def is_pawn_push_to_promotion_square(move: Move, moving_piece: Piece) -> bool:
    """check if the move is a pawn move that reaches the far side of the board"""
    is_pawn_move = moving_piece.type == PieceType.PAWN
    reaches_promotion_row = move.to_square.row == PROMOTION_ROW[moving_piece.color]
    return is_pawn_move and reaches_promotion_row


def _color_on(square: Square, board: Board) -> Color:
    piece = board.piece(square)
    if piece is None:
        raise ValueError(f"No piece on {square.to_algebraic()} to generate moves for")
    return piece.color
