"""
Custom exceptions.

Domain errors are raised where the rule is broken. The session layer decides which ones are
expected user noise (silently ignored) and which ones are programming errors.
"""


class ChessError(Exception):
    """Base class for all errors raised by this package"""


# --- DOMAIN ---
class GameStateError(ChessError):
    """The requested action does not fit the current state of the game (ex. moving after checkmate)."""


class IllegalMoveError(ChessError):
    """The move is not among the legal moves of the piece."""


class NotYourTurnError(ChessError):
    """Trying to move a piece (or an empty square) that does not belong to the side to move."""


class NoLegalMovesError(ChessError):
    """The computer was asked for a move while it has none. Game should have been over already."""


# --- SERVICE / API ---
class InvalidRequestError(ChessError):
    """Request data could not be interpreted."""


class SessionNotFoundError(ChessError):
    """No game session is registered under the requested id."""
