"""Requests and Response models"""

from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.chess.moves import MoveRecord
from src.chess.square import BOARD_DIMENSIONS
from src.core.exceptions import InvalidRequestError
from src.core.models import GameState
from src.core.shared_types import Color, GameMode, Outcome, Phase


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False

    file_character = value[0]
    rank_character = value[1]
    if not (file_character.isalpha() and rank_character.isnumeric()):
        return False

    valid_file = ord("a") <= ord(file_character) < ord("a") + BOARD_DIMENSIONS[1]
    valid_rank = 1 <= int(rank_character) <= BOARD_DIMENSIONS[0]
    return valid_file and valid_rank


# --- REQUEST MODELS ---
class StartGameRequest(BaseModel):
    session_id: UUID
    mode: GameMode


class SelectSquareRequest(BaseModel):
    session_id: UUID
    square: str

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value


class MoveRequest(BaseModel):
    session_id: UUID
    from_square: str
    to_square: str

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value


class SessionRequest(BaseModel):
    """Requests that only need to know which session they are about."""

    session_id: UUID


# --- RESPONSE MODELS ---
class GameStateResponse(BaseModel):
    session_id: UUID
    phase: Phase
    mode: Optional[GameMode]
    active_color: Color
    outcome: Outcome
    winner: Optional[Color]
    is_check: bool
    ai_thinking: bool
    status_text: str
    position: str  # piece placement, FEN style
    board: list[list[Optional[str]]]
    material: dict[Color, int]  # points on the board per side
    selected_square: Optional[str]
    legal_destinations: list[str]

    @classmethod
    def from_state(cls, session_id: UUID, state: GameState, status_text: str) -> Self:
        selection = state.selection
        return cls(
            session_id=session_id,
            phase=state.phase,
            mode=state.mode,
            active_color=state.active_color,
            outcome=state.outcome,
            winner=state.winner,
            is_check=state.is_check,
            ai_thinking=state.ai_thinking,
            status_text=status_text,
            position=state.board.to_fen(),
            board=state.board.to_grid(),
            material=state.board.count_material(),
            selected_square=selection.square.to_algebraic() if selection.square else None,
            legal_destinations=[square.to_algebraic() for square in selection.destinations],
        )


class AiMoveResponse(BaseModel):
    """Pushed to the host once the computer played."""

    session_id: UUID
    move: str
    captured: Optional[str]
    promoted: bool
    state: GameStateResponse

    @classmethod
    def from_record(cls, session_id: UUID, record: MoveRecord, state: GameStateResponse) -> Self:
        return cls(
            session_id=session_id,
            move=record.move.to_uci(),
            captured=record.captured_piece.to_fen() if record.captured_piece else None,
            promoted=record.is_promotion,
            state=state,
        )
