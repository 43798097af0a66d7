"""Orchestration of communication from a host (API router, desktop shell) to independent game sessions (and the reverse direction)."""

import logging
from typing import Callable, Mapping, Optional, Self
from uuid import UUID, uuid4

from src.api.models import (
    AiMoveResponse,
    GameStateResponse,
    MoveRequest,
    SelectSquareRequest,
    SessionRequest,
    StartGameRequest,
)
from src.chess.moves import MoveRecord
from src.chess.square import Square
from src.core.config import EngineSettings, load_settings
from src.core.exceptions import SessionNotFoundError
from src.core.log import configure_logging
from src.core.models import GameState
from src.services.game_session import GameSession
from src.services.scheduling import ManualScheduler, Scheduler

logger = logging.getLogger(__name__)

AiMoveListener = Callable[[AiMoveResponse], None]


class ChessService:
    """Keeps the open game sessions (one per window of the host) and translates requests into session calls."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        scheduler: Optional[Scheduler] = None,
        ai_move_listener: Optional[AiMoveListener] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.scheduler: Scheduler = scheduler or ManualScheduler()
        self.ai_move_listener = ai_move_listener
        self._sessions: dict[UUID, GameSession] = {}

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        scheduler: Optional[Scheduler] = None,
        ai_move_listener: Optional[AiMoveListener] = None,
    ) -> Self:
        """Entry point for a host process: CHESS_* settings and logging set up in one go."""
        settings = load_settings(environ)
        configure_logging(settings.log_level)
        logger.debug("Engine settings: %s", settings)
        return cls(settings, scheduler, ai_move_listener)

    # -- Session lifecycle --
    def open_session(self) -> GameStateResponse:
        """Host opened a new game window. The session starts in mode selection."""
        session_id = uuid4()
        session = GameSession(settings=self.settings, scheduler=self.scheduler)
        session.on_ai_move_ready(
            lambda record, state: self._forward_ai_move(session_id, record, state)
        )
        self._sessions[session_id] = session
        logger.info("Opened session %s", session_id)
        return self._create_response(session_id, session)

    def close_session(self, request: SessionRequest) -> None:
        """Host closed the window: drop the session (a pending computer move gets cancelled)."""
        session = self._fetch_session(request.session_id)
        session.close()
        del self._sessions[request.session_id]
        logger.info("Closed session %s", request.session_id)

    # -- Game logic --
    def start_game(self, request: StartGameRequest) -> GameStateResponse:
        session = self._fetch_session(request.session_id)
        session.start_game(request.mode)
        return self._create_response(request.session_id, session)

    def new_game(self, request: SessionRequest) -> GameStateResponse:
        session = self._fetch_session(request.session_id)
        session.new_game()
        return self._create_response(request.session_id, session)

    def select_square(self, request: SelectSquareRequest) -> GameStateResponse:
        """A click on a board square (select / move / deselect)."""
        session = self._fetch_session(request.session_id)
        session.click_square(Square.from_algebraic(request.square))
        return self._create_response(request.session_id, session)

    def make_move(self, request: MoveRequest) -> GameStateResponse:
        """Make a move attempt. Illegal moves leave the game untouched."""
        session = self._fetch_session(request.session_id)
        session.attempt_move(
            Square.from_algebraic(request.from_square),
            Square.from_algebraic(request.to_square),
        )
        return self._create_response(request.session_id, session)

    def get_game_state(self, request: SessionRequest) -> GameStateResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by a frontend to check when the computer is done thinking for instance.
        """
        session = self._fetch_session(request.session_id)
        return self._create_response(request.session_id, session)

    @property
    def session_ids(self) -> list[UUID]:
        return list(self._sessions.keys())

    # -- Internal helpers --
    def _create_response(self, session_id: UUID, session: GameSession) -> GameStateResponse:
        return GameStateResponse.from_state(session_id, session.state(), session.status_text())

    def _forward_ai_move(self, session_id: UUID, record: MoveRecord, state: GameState) -> None:
        if self.ai_move_listener is None:
            return
        session = self._sessions.get(session_id)
        status_text = session.status_text() if session else ""
        response = GameStateResponse.from_state(session_id, state, status_text)
        self.ai_move_listener(AiMoveResponse.from_record(session_id, record, response))

    def _fetch_session(self, session_id: UUID) -> GameSession:
        """Attempt to find the session and raise error if it fails."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session with {session_id=} not found.")
        return session
