"""
Custom exceptions shared by all layers.

Every exception is raised BEFORE any state gets mutated, so catching one always leaves the game exactly as it was.
"""


class GameError(Exception):
    """Top-level exception for anything that goes wrong while handling a game request."""


# --- MOVES ---
class IllegalMoveError(GameError):
    """The move does not follow the movement rules of the piece, or leaves your own king in check."""


class StructuralError(IllegalMoveError):
    """Malformed move: square off the board, no piece to move, not your piece, etc."""


class SelfCheckError(IllegalMoveError):
    """The move has a legal shape, but would leave the mover's king under attack."""


class NotYourTurnError(GameError):
    """The player requesting the move is not the one to move."""


# --- SESSION STATE ---
class GameStateError(GameError):
    """The action is not allowed with the current game status."""


class SessionFullError(GameStateError):
    """Two players are already seated."""


class NotParticipantError(GameError):
    """The identity is not one of the players of this game."""


# --- LOOKUP ---
class RepositoryError(GameError):
    """Something went wrong finding / storing a game."""


class SessionNotFoundError(RepositoryError):
    """No game registered under the requested ID."""


# --- BOUNDARY ---
class InvalidRequestError(GameError):
    """Request payload cannot be interpreted."""
