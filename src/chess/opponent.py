"""
Computer opponent.

No search tree: looks one move ahead and picks by a fixed priority list.
"""

import logging
import random
from typing import Optional

from src.chess.game import Game
from src.chess.moves import Move
from src.chess.pieces import Color
from src.core.exceptions import NoLegalMovesError

logger = logging.getLogger(__name__)


class HeuristicOpponent:
    """Plays the pieces of one color."""

    def __init__(self, color: Color, rng: Optional[random.Random] = None) -> None:
        self.color = color
        self.rng = rng or random.Random()

    def choose_move(self, game: Game) -> Move:
        """
        Pick a move
        ----

        1. In check? Any legal move resolves it: pick one at random.
        2. First move that gives check to the opponent.
        3. Capture of the most valuable piece (first one found wins ties).
        4. Random legal move.
        """
        legal_moves = game.legal_moves(self.color)
        if not legal_moves:
            raise NoLegalMovesError(
                f"Computer ({self.color}) has no legal moves in {game.board.to_fen()}"
            )

        if game.is_check(self.color):
            move = self.rng.choice(legal_moves)
            logger.debug("Escaping check with %s", move.to_uci())
            return move

        checking_move = self._first_checking_move(game, legal_moves)
        if checking_move:
            return checking_move

        best_capture = self._best_capture(game, legal_moves)
        if best_capture:
            return best_capture

        return self.rng.choice(legal_moves)

    def _first_checking_move(self, game: Game, legal_moves: list[Move]) -> Optional[Move]:
        for move in legal_moves:
            board = game.board.copy()
            board.move_piece(move)
            if board.is_check(self.color.opponent):
                return move
        return None

    def _best_capture(self, game: Game, legal_moves: list[Move]) -> Optional[Move]:
        best_move: Optional[Move] = None
        highest_value = -1
        for move in legal_moves:
            target = game.board.piece(move.to_square)
            if target is None:
                continue
            # strictly greater: ties stay with the first capture found
            if target.points > highest_value:
                highest_value = target.points
                best_move = move
        return best_move
