"""
Boundary layer data model(s).

These objects are handed out by the GameSession to whoever drives it (presentation layer, ChessService, tests).
They are snapshots: the board inside is a copy, so holding on to one never gives access to the live game.
"""

from dataclasses import dataclass, field
from typing import Optional

from src.chess.board import Board
from src.chess.square import Square
from src.core.shared_types import Color, GameMode, Outcome, Phase


@dataclass(frozen=True)
class Selection:
    """The square a human picked, and where that piece may go."""

    square: Optional[Square] = None
    destinations: tuple[Square, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.square is None


@dataclass(frozen=True)
class GameState:
    """Observable state of one game session (compared by value)."""

    board: Board
    active_color: Color
    mode: Optional[GameMode]
    phase: Phase
    outcome: Outcome
    winner: Optional[Color] = None
    selection: Selection = field(default_factory=Selection)
    ai_thinking: bool = False

    @property
    def is_check(self) -> bool:
        """Also true at checkmate."""
        return self.outcome in (Outcome.CHECK, Outcome.CHECKMATE)

    @property
    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER
