"""
The Game class is the entrypoint into the domain layer for the session layer.
It is responsible for the rules of playing a turn: which moves are legal, applying them,
and deciding whether the game goes on (check), or ended (checkmate / stalemate).
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.board import Board
from src.chess.moves import Move, MoveRecord
from src.chess.pieces import Color
from src.chess.square import Square
from src.core.exceptions import GameStateError, IllegalMoveError, NotYourTurnError
from src.core.shared_types import Outcome

logger = logging.getLogger(__name__)


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY THE SESSION ---

    board: Board
    color_to_move: Color = Color.WHITE
    moves: list[MoveRecord] = field(default_factory=list)
    outcome: Outcome = Outcome.IN_PROGRESS

    @classmethod
    def new_game(cls) -> Self:
        """Standard starting position, white to move."""
        return cls(board=Board.starting_position())

    @classmethod
    def from_fen(cls, position_fen: str, color_to_move: Color = Color.WHITE) -> Self:
        """Start from an arbitrary position (piece placement part of FEN). The status is evaluated right away."""
        game = cls(board=Board.from_fen(position_fen), color_to_move=color_to_move)
        game._update_game_status()
        return game

    @property
    def is_over(self) -> bool:
        return self.outcome.is_terminal

    @property
    def winner(self) -> Optional[Color]:
        """
        Only defined for checkmate.
        Given we know it is checkmate, the side that is to move just got mated and the opponent must be the winner
        """
        if self.outcome != Outcome.CHECKMATE:
            return None
        return self.color_to_move.opponent

    def legal_moves(self, color: Optional[Color] = None) -> list[Move]:
        """
        List of legal moves for the player with the 'color' pieces (defaults to the side to move)
        ----

        1. generate candidate moves, using the basic movement rules for all pieces (the board does this calculation)
        2. remove illegal options --> a move that would put you in check or you are in check and the move does not get you out of it.
        """
        color = self.color_to_move if color is None else color
        candidate_moves = self.board.generate_candidate_moves(color)
        return [
            move
            for move in candidate_moves
            if not self._is_putting_yourself_in_check(move, color)
        ]

    def legal_destinations(self, square: Square) -> list[Square]:
        """Where can the piece on this square go? Only for the side to move: the opponent's pieces have no legal moves right now."""
        piece = self.board.piece(square)
        if piece is None or piece.color != self.color_to_move:
            return []
        return [
            move.to_square
            for move in self.board.candidate_moves_from(square)
            if not self._is_putting_yourself_in_check(move, piece.color)
        ]

    def make_move(self, move: Move) -> MoveRecord:
        """
        Attempt to make a move
        -----

        1. make sure the game did not end yet
        2. make sure a piece of the side to move is moved
        3. make sure the move is legal
        4. update the board (incl. promotion)
        5. update the list of moves, flip the turn
        6. update game status (if needed)
        """
        if self.is_over:
            raise GameStateError(f"Game is over. outcome: {self.outcome}")

        moving_piece = self.board.piece(move.from_square)
        if moving_piece is None or moving_piece.color != self.color_to_move:
            raise NotYourTurnError(
                f"No {self.color_to_move} piece on {move.from_square.to_algebraic()}."
            )

        if move.to_square not in self.legal_destinations(move.from_square):
            raise IllegalMoveError(f"Move not allowed: {move.to_uci()}")

        record = self.board.move_piece(move)
        self.moves.append(record)
        self.color_to_move = self.color_to_move.opponent
        self._update_game_status()
        return record

    def is_check(self, color: Optional[Color] = None) -> bool:
        color = self.color_to_move if color is None else color
        return self.board.is_check(color)

    def has_legal_move(self, color: Optional[Color] = None) -> bool:
        return len(self.legal_moves(color)) > 0

    # -- PRIVATE HELPERS ---
    def _is_putting_yourself_in_check(self, move: Move, color: Color) -> bool:
        """Return True if the move puts (or leaves) you in check

        plan:
        1. Copy the board
        2. make the candidate move
        3. determine if king is in check on the new board
        """
        board = self.board.copy()
        board.move_piece(move)
        return board.is_check(color)

    def _update_game_status(self) -> None:
        """Performs checks to see if game has ended and changes status accordingly.

        NOTE the turn has already been flipped. Evaluated for the side that is about to move.
        """
        in_check = self.is_check()
        has_moves = self.has_legal_move()

        if not has_moves and in_check:
            self.outcome = Outcome.CHECKMATE
        elif not has_moves:
            self.outcome = Outcome.STALEMATE
        elif in_check:
            self.outcome = Outcome.CHECK
        else:
            self.outcome = Outcome.IN_PROGRESS

        if self.is_over:
            logger.info("Game over: %s (winner: %s)", self.outcome, self.winner)
