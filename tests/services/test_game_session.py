"""Unit tests for src/services/game_session.py"""

import asyncio
import logging
from unittest.mock import Mock, patch

import pytest

from src.chess.board import Board
from src.chess.game import Game
from src.chess.moves import Move, MoveRecord
from src.chess.square import Square
from src.core.config import EngineSettings
from src.core.exceptions import NoLegalMovesError
from src.core.models import GameState, Selection
from src.core.shared_types import Color, GameMode, Outcome, Phase
from src.services.game_session import GameSession, describe
from src.services.scheduling import ManualScheduler

FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def play(session: GameSession, uci_moves: list[str]) -> GameState:
    state = session.state()
    for uci in uci_moves:
        move = Move.from_uci(uci)
        state = session.attempt_move(move.from_square, move.to_square)
    return state


# --- MODE SELECTION ---
def test_session_starts_in_mode_selection(session: GameSession) -> None:
    assert session.phase == Phase.MODE_SELECTION
    assert session.mode is None
    assert session.status_text() == "Select a game mode"
    assert not session.is_game_over()


def test_no_moves_before_a_mode_is_chosen(session: GameSession) -> None:
    before = session.state()
    assert session.attempt_move(sq("e2"), sq("e4")) == before
    assert session.select_square(sq("e2")).is_empty


@pytest.mark.parametrize("mode", list(GameMode))
def test_start_game(session: GameSession, mode: GameMode) -> None:
    state = session.start_game(mode)
    assert state.phase == Phase.ACTIVE
    assert state.mode == mode
    assert state.active_color == Color.WHITE
    assert state.outcome == Outcome.IN_PROGRESS
    assert state.board == Board.starting_position()
    assert state.selection == Selection()
    assert not state.ai_thinking
    assert session.status_text() == "White to move"


# --- SELECTION ---
def test_select_own_piece(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    selection = session.select_square(sq("g1"))
    assert selection.square == sq("g1")
    assert set(selection.destinations) == {sq("f3"), sq("h3")}
    assert session.board == Board.starting_position()


@pytest.mark.parametrize("square_name", ["e7", "e4"])
def test_select_opponent_piece_or_empty_square_clears(session: GameSession, square_name: str) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    session.select_square(sq("e2"))
    assert session.select_square(sq(square_name)) == Selection()


def test_click_piece_then_destination_moves(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    state = session.click_square(sq("e2"))
    assert state.selection.square == sq("e2")

    state = session.click_square(sq("e4"))
    assert state.selection.is_empty
    assert state.active_color == Color.BLACK
    assert state.board.piece(sq("e4")) is not None
    assert state.board.piece(sq("e2")) is None


def test_click_other_own_piece_replaces_selection(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    session.click_square(sq("e2"))
    state = session.click_square(sq("b1"))
    assert state.selection.square == sq("b1")
    assert set(state.selection.destinations) == {sq("a3"), sq("c3")}


def test_click_invalid_target_clears_without_moving(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    session.click_square(sq("e2"))
    state = session.click_square(sq("e5"))
    assert state.selection.is_empty
    assert state.board == Board.starting_position()
    assert state.active_color == Color.WHITE


# --- MOVES ---
@pytest.mark.parametrize(
    "uci",
    [
        "e2e5",  # not a pawn move
        "e7e5",  # not your piece
        "e3e4",  # empty square
        "d1d3",  # blocked
    ],
)
def test_invalid_move_is_a_no_op(session: GameSession, uci: str) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    session.select_square(sq("g1"))
    before = session.state()

    move = Move.from_uci(uci)
    after = session.attempt_move(move.from_square, move.to_square)

    assert after == before


def test_human_vs_human_turns_alternate(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    state = play(session, ["e2e4", "e7e5", "g1f3"])
    assert state.active_color == Color.BLACK
    assert not state.ai_thinking


def test_fools_mate(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    state = play(session, FOOLS_MATE)

    assert state.phase == Phase.GAME_OVER
    assert state.outcome == Outcome.CHECKMATE
    assert state.winner == Color.BLACK
    assert session.outcome == Outcome.CHECKMATE
    assert session.is_game_over()
    assert session.status_text() == "Checkmate — Black wins"


def test_moves_are_ignored_after_game_over(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    before = play(session, FOOLS_MATE)
    assert session.attempt_move(sq("e2"), sq("e4")) == before
    assert session.click_square(sq("e2")) == before


def test_check_status(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    state = play(session, ["e2e4", "f7f5", "d1h5"])
    assert state.outcome == Outcome.CHECK
    assert state.is_check
    assert state.phase == Phase.ACTIVE
    assert session.status_text() == "Check! Black to move"


def test_stalemate(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    session.game = Game.from_fen("k7/8/8/2Q5/8/8/8/7K")
    state = session.attempt_move(sq("c5"), sq("b6"))

    assert state.outcome == Outcome.STALEMATE
    assert state.outcome != Outcome.CHECKMATE
    assert state.winner is None
    assert state.phase == Phase.GAME_OVER
    assert session.status_text() == "Stalemate — Draw"


# --- NEW GAME ---
def test_new_game_after_game_over(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    play(session, FOOLS_MATE)

    state = session.new_game()
    assert state.phase == Phase.MODE_SELECTION
    assert state.mode is None

    state = session.start_game(GameMode.HUMAN_VS_COMPUTER)
    assert state.board == Board.starting_position()
    assert state.active_color == Color.WHITE
    assert state.outcome == Outcome.IN_PROGRESS


@pytest.mark.parametrize("mode", list(GameMode))
def test_start_game_does_not_leave_game_over(session: GameSession, mode: GameMode) -> None:
    """Only new_game leads out of a finished game"""
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    finished = play(session, FOOLS_MATE)

    state = session.start_game(mode)

    assert state == finished
    assert session.phase == Phase.GAME_OVER
    assert session.mode == GameMode.HUMAN_VS_HUMAN
    assert session.outcome == Outcome.CHECKMATE


def test_restart_running_game(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    play(session, ["e2e4", "e7e5"])

    state = session.start_game(GameMode.HUMAN_VS_HUMAN)

    assert state.phase == Phase.ACTIVE
    assert state.board == Board.starting_position()
    assert session.game.moves == []


def test_board_query_is_a_copy(session: GameSession) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    board = session.board
    board.remove_piece(sq("e1"))
    assert session.board == Board.starting_position()


# --- COMPUTER OPPONENT ---
def test_computer_reply_is_deferred(
    session: GameSession, scheduler: ManualScheduler, engine_settings: EngineSettings
) -> None:
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    state = session.attempt_move(sq("e2"), sq("e4"))

    assert state.ai_thinking
    assert state.active_color == Color.BLACK
    assert session.is_ai_thinking
    assert session.status_text() == "Computer (Black) is thinking..."
    assert len(scheduler.pending) == 1
    assert scheduler.pending[0].delay == engine_settings.ai_thinking_delay

    scheduler.run_pending()

    assert not session.is_ai_thinking
    assert session.active_color == Color.WHITE
    assert len(session.game.moves) == 2


def test_on_ai_move_ready_delivers_move_and_state(
    session: GameSession, scheduler: ManualScheduler
) -> None:
    callback = Mock()
    session.on_ai_move_ready(callback)
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.attempt_move(sq("d2"), sq("d4"))
    scheduler.run_pending()

    callback.assert_called_once()
    record, state = callback.call_args.args
    assert isinstance(record, MoveRecord)
    assert record.moving_piece.color == Color.BLACK
    assert record == session.game.moves[-1]
    assert state == session.state()
    assert not state.ai_thinking


def test_computer_escapes_check_with_only_move(
    session: GameSession, scheduler: ManualScheduler
) -> None:
    played: list[Move] = []
    session.on_ai_move_ready(lambda record, state: played.append(record.move))
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.game = Game.from_fen("rnbqkbnr/ppppp1pp/8/5p2/4P3/8/PPPP1PPP/RNBQKBNR")

    session.attempt_move(sq("d1"), sq("h5"))
    scheduler.run_pending()

    assert played == [Move.from_uci("g7g6")]


def test_input_ignored_while_computer_thinks(
    session: GameSession, scheduler: ManualScheduler
) -> None:
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    thinking = session.attempt_move(sq("e2"), sq("e4"))

    assert session.click_square(sq("e7")) == thinking
    assert session.select_square(sq("e7")) == Selection()
    assert session.attempt_move(sq("e7"), sq("e5")) == thinking
    assert len(scheduler.pending) == 1


def test_new_game_cancels_pending_computer_move(
    session: GameSession, scheduler: ManualScheduler
) -> None:
    callback = Mock()
    session.on_ai_move_ready(callback)
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.attempt_move(sq("e2"), sq("e4"))

    state = session.start_game(GameMode.HUMAN_VS_COMPUTER)

    assert not state.ai_thinking
    assert scheduler.pending == []
    assert scheduler.run_pending() == 0
    callback.assert_not_called()
    assert session.board == Board.starting_position()


def test_stale_computer_move_is_discarded() -> None:
    """Even if the host fails to cancel the task, the generation tag keeps the move off the new board"""
    scheduler = Mock()
    session = GameSession(EngineSettings(ai_thinking_delay=0), scheduler)
    callback = Mock()
    session.on_ai_move_ready(callback)

    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.attempt_move(sq("e2"), sq("e4"))
    _, deferred = scheduler.call_later.call_args.args

    session.new_game()
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    deferred()

    callback.assert_not_called()
    assert session.board == Board.starting_position()
    assert session.active_color == Color.WHITE


def test_human_checkmates_computer(session: GameSession, scheduler: ManualScheduler) -> None:
    """Game over: the computer is not asked for a move"""
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.game = Game.from_fen("6k1/5ppp/8/8/8/8/8/R5K1")
    state = session.attempt_move(sq("a1"), sq("a8"))

    assert state.phase == Phase.GAME_OVER
    assert state.winner == Color.WHITE
    assert not state.ai_thinking
    assert scheduler.pending == []


def test_computer_checkmates_human(session: GameSession, scheduler: ManualScheduler) -> None:
    states: list[GameState] = []
    session.on_ai_move_ready(lambda record, state: states.append(state))
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.game = Game.from_fen("r3k3/8/8/8/8/8/2P3PP/7K")

    session.attempt_move(sq("c2"), sq("c3"))
    scheduler.run_pending()

    assert session.is_game_over()
    assert states[-1].outcome == Outcome.CHECKMATE
    assert states[-1].winner == Color.BLACK
    assert session.status_text() == "Checkmate — Black wins"


def test_computer_without_moves_ends_the_game(
    session: GameSession, scheduler: ManualScheduler, caplog: pytest.LogCaptureFixture
) -> None:
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.attempt_move(sq("e2"), sq("e4"))

    with (
        patch.object(session.opponent, "choose_move", side_effect=NoLegalMovesError("none")),
        caplog.at_level(logging.ERROR, logger="src.services.game_session"),
    ):
        scheduler.run_pending()

    assert session.is_game_over()
    assert not session.is_ai_thinking
    assert "no legal move" in caplog.text
    assert session.status_text() == "Game over"


def test_computer_playing_white_moves_first(scheduler: ManualScheduler) -> None:
    settings = EngineSettings(ai_color=Color.WHITE, ai_thinking_delay=0, random_seed=7)
    session = GameSession(settings, scheduler)
    state = session.start_game(GameMode.HUMAN_VS_COMPUTER)
    assert state.ai_thinking
    assert session.select_square(sq("e2")) == Selection()

    scheduler.run_pending()
    assert session.active_color == Color.BLACK
    assert session.select_square(sq("e7")).square == sq("e7")


def test_close_drops_pending_move(session: GameSession, scheduler: ManualScheduler) -> None:
    session.start_game(GameMode.HUMAN_VS_COMPUTER)
    session.attempt_move(sq("e2"), sq("e4"))
    session.close()
    assert scheduler.run_pending() == 0
    assert not session.is_ai_thinking


def test_asyncio_event_loop_as_scheduler() -> None:
    """The event loop's call_later fits the Scheduler contract directly"""

    async def scenario() -> GameState:
        loop = asyncio.get_running_loop()
        session = GameSession(EngineSettings(ai_thinking_delay=0.01, random_seed=3), loop)
        session.start_game(GameMode.HUMAN_VS_COMPUTER)
        session.attempt_move(sq("e2"), sq("e4"))
        assert session.is_ai_thinking
        await asyncio.sleep(0.1)
        return session.state()

    state = asyncio.run(scenario())
    assert not state.ai_thinking
    assert state.active_color == Color.WHITE


# --- STATUS TEXT ---
def test_describe_white_computer() -> None:
    state = GameState(
        board=Board.starting_position(),
        active_color=Color.WHITE,
        mode=GameMode.HUMAN_VS_COMPUTER,
        phase=Phase.ACTIVE,
        outcome=Outcome.IN_PROGRESS,
        ai_thinking=True,
    )
    assert describe(state, Color.WHITE) == "Computer (White) is thinking..."


def test_accepted_moves_log_the_board(session: GameSession, caplog: pytest.LogCaptureFixture) -> None:
    session.start_game(GameMode.HUMAN_VS_HUMAN)
    with caplog.at_level(logging.DEBUG, logger="src.services.game_session"):
        session.attempt_move(sq("e2"), sq("e4"))
    assert "after e2e4" in caplog.text
    assert "4 · · · · ♙ · · ·" in caplog.text
