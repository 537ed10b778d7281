"""Protocol registry (can implement later for a shared cache / database etc.)"""

from typing import Optional, Protocol

from src.chess.game import Game


class SessionRegistry(Protocol):
    """Keeps track of the games that are currently being played."""

    def create(self, clock_seconds: Optional[float] = None) -> Game:
        """Allocate a new, empty game under a fresh ID."""
        ...

    def get(self, game_id: str) -> Game | None:
        """Get game by ID, if it exists."""
        ...

    def remove(self, game_id: str) -> Game | None:
        """Forget a game."""
        ...

    def ids(self) -> list[str]:
        """All IDs currently in use."""
        ...
