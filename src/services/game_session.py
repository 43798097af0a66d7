"""
Turn controller of a single game: the state machine the presentation layer talks to.

ModeSelection --start_game--> Active --checkmate/stalemate--> GameOver --new_game--> ModeSelection

Every session owns its own Game. Nothing is shared between sessions, so a host can run as many as it likes.
"""

import logging
import random
from typing import Callable, Optional

from src.chess.board import Board
from src.chess.game import Game
from src.chess.moves import Move, MoveRecord
from src.chess.opponent import HeuristicOpponent
from src.chess.square import Square
from src.core.config import EngineSettings
from src.core.exceptions import IllegalMoveError, NoLegalMovesError, NotYourTurnError
from src.core.models import GameState, Selection
from src.core.shared_types import Color, GameMode, Outcome, Phase
from src.services.scheduling import ManualScheduler, ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

AiMoveCallback = Callable[[MoveRecord, GameState], None]


class GameSession:
    """Orchestrates one game: human input, turn order, and the (deferred) computer reply."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.scheduler: Scheduler = scheduler or ManualScheduler()
        self.opponent = HeuristicOpponent(
            self.settings.ai_color, rng or random.Random(self.settings.random_seed)
        )
        self.game = Game.new_game()
        self.mode: Optional[GameMode] = None
        self.phase = Phase.MODE_SELECTION
        self.selection = Selection()
        # bumped on every reset: deferred computer moves remember the generation they were scheduled in
        self.generation = 0
        self._ai_task: Optional[ScheduledTask] = None
        self._ai_move_callbacks: list[AiMoveCallback] = []

    # -- LIFECYCLE ---
    def start_game(self, mode: GameMode) -> GameState:
        """
        Fresh board, white to move.

        Allowed from mode selection, or as a restart of a running game.
        A finished game stays finished until `new_game()` brings the session back to mode selection.
        """
        if self.phase == Phase.GAME_OVER:
            logger.debug("Ignoring start of %s: game #%d is over", mode, self.generation)
            return self.state()

        self._reset()
        self.mode = mode
        self.phase = Phase.ACTIVE
        logger.info("Game #%d started: %s", self.generation, mode)

        if self._is_computer_turn():
            self._schedule_ai_move()
        return self.state()

    def new_game(self) -> GameState:
        """Back to mode selection. The only way out of GameOver."""
        self._reset()
        self.mode = None
        self.phase = Phase.MODE_SELECTION
        return self.state()

    def close(self) -> None:
        """Host destroyed the game surface. A pending computer move is dropped."""
        self._cancel_pending_ai_move()
        self.generation += 1

    def on_ai_move_ready(self, callback: AiMoveCallback) -> None:
        """Called after the computer played, with the move and the state after it."""
        self._ai_move_callbacks.append(callback)

    # -- HUMAN INPUT ---
    def select_square(self, square: Square) -> Selection:
        """
        Pick one of your own pieces to see where it can go. Anything else clears the selection.
        Never moves a piece.
        """
        if not self._accepts_human_input():
            return self.selection

        piece = self.game.board.piece(square)
        if piece is not None and piece.color == self.game.color_to_move:
            self.selection = Selection(square, tuple(self.game.legal_destinations(square)))
        else:
            self.selection = Selection()
        return self.selection

    def click_square(self, square: Square) -> GameState:
        """
        A click on the board
        ----

        * a piece is selected and the square is one of its destinations --> play the move
        * otherwise --> (re)select: own piece gets selected, anything else clears the selection
        """
        if not self._accepts_human_input():
            return self.state()

        if not self.selection.is_empty and square in self.selection.destinations:
            assert self.selection.square is not None
            return self.attempt_move(self.selection.square, square)

        self.select_square(square)
        return self.state()

    def attempt_move(self, from_square: Square, to_square: Square) -> GameState:
        """Play a human move. Anything that is not a legal move of the side to move is ignored (state stays the same)."""
        move = Move(from_square, to_square)
        if not self._accepts_human_input():
            logger.debug("Ignoring %s: not accepting moves right now", move.to_uci())
            return self.state()

        try:
            record = self.game.make_move(move)
        except (IllegalMoveError, NotYourTurnError) as error:
            logger.debug("Ignoring %s: %s", move.to_uci(), error)
            return self.state()

        self._after_move(record)
        return self.state()

    # -- QUERIES ---
    @property
    def board(self) -> Board:
        return self.game.board.copy()

    @property
    def active_color(self) -> Color:
        return self.game.color_to_move

    @property
    def outcome(self) -> Outcome:
        return self.game.outcome

    @property
    def winner(self) -> Optional[Color]:
        return self.game.winner

    @property
    def is_ai_thinking(self) -> bool:
        return self._ai_task is not None

    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    def state(self) -> GameState:
        return GameState(
            board=self.board,
            active_color=self.active_color,
            mode=self.mode,
            phase=self.phase,
            outcome=self.outcome,
            winner=self.winner,
            selection=self.selection,
            ai_thinking=self.is_ai_thinking,
        )

    def status_text(self) -> str:
        return describe(self.state(), self.settings.ai_color)

    # -- PRIVATE HELPERS ---
    def _reset(self) -> None:
        self._cancel_pending_ai_move()
        self.generation += 1
        self.game = Game.new_game()
        self.selection = Selection()

    def _is_computer_turn(self) -> bool:
        return (
            self.mode == GameMode.HUMAN_VS_COMPUTER
            and self.game.color_to_move == self.opponent.color
        )

    def _accepts_human_input(self) -> bool:
        return (
            self.phase == Phase.ACTIVE
            and not self.is_ai_thinking
            and not self._is_computer_turn()
        )

    def _after_move(self, record: MoveRecord) -> None:
        """The board and turn are updated already. Decide what happens next."""
        self.selection = Selection()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Game #%d after %s:\n%s",
                self.generation,
                record.move.to_uci(),
                self.game.board.render(),
            )

        if self.game.is_over:
            self.phase = Phase.GAME_OVER
            logger.info(
                "Game #%d over after %s: %s",
                self.generation,
                record.move.to_uci(),
                self.game.outcome,
            )
            return

        if self._is_computer_turn():
            self._schedule_ai_move()

    # -- COMPUTER MOVE ---
    def _schedule_ai_move(self) -> None:
        generation = self.generation
        self.selection = Selection()
        self._ai_task = self.scheduler.call_later(
            self.settings.ai_thinking_delay, lambda: self._play_ai_move(generation)
        )

    def _cancel_pending_ai_move(self) -> None:
        if self._ai_task is not None:
            self._ai_task.cancel()
            self._ai_task = None

    def _play_ai_move(self, generation: int) -> None:
        if generation != self.generation:
            logger.debug(
                "Discarding computer move scheduled for game #%d (now #%d)",
                generation,
                self.generation,
            )
            return
        self._ai_task = None

        try:
            move = self.opponent.choose_move(self.game)
        except NoLegalMovesError:
            # the game should have ended before handing the turn over
            logger.error(
                "Computer has no legal move, ending game #%d", self.generation, exc_info=True
            )
            self.phase = Phase.GAME_OVER
            return

        record = self.game.make_move(move)
        logger.info("Computer (%s) plays %s", self.opponent.color, move.to_uci())
        self._after_move(record)

        state = self.state()
        for callback in self._ai_move_callbacks:
            callback(record, state)


def describe(state: GameState, ai_color: Color = Color.BLACK) -> str:
    """Status line shown above the board."""
    if state.phase == Phase.MODE_SELECTION:
        return "Select a game mode"
    if state.ai_thinking:
        return f"Computer ({ai_color.title()}) is thinking..."
    if state.outcome == Outcome.CHECKMATE and state.winner is not None:
        return f"Checkmate — {state.winner.title()} wins"
    if state.outcome == Outcome.STALEMATE:
        return "Stalemate — Draw"
    if state.phase == Phase.GAME_OVER:
        return "Game over"

    turn_message = f"{state.active_color.title()} to move"
    if state.outcome == Outcome.CHECK:
        return f"Check! {turn_message}"
    return turn_message
