"""Implementation of (Session)Registry keeping the games in memory"""

import logging
import secrets
from string import ascii_uppercase, digits
from threading import Lock
from typing import Optional

from src.chess.game import Game

logger = logging.getLogger(__name__)

ID_ALPHABET = ascii_uppercase + digits
DEFAULT_ID_LENGTH = 6


def generate_game_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Short code players can read out to each other, e.g. 'K3ZQ9A'"""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


class InMemorySessionRegistry:
    """
    Games stored in a dictionary.

    The lock only guards adding / removing entries. Each Game serializes its own requests.
    """

    def __init__(self, id_length: int = DEFAULT_ID_LENGTH) -> None:
        self.id_length = id_length
        self._games: dict[str, Game] = {}
        self._lock = Lock()

    def create(self, clock_seconds: Optional[float] = None) -> Game:
        with self._lock:
            game_id = generate_game_id(self.id_length)
            while game_id in self._games:
                logger.debug("Game ID %s already taken, generating a new one", game_id)
                game_id = generate_game_id(self.id_length)
            game = Game.new_game(game_id, clock_seconds=clock_seconds)
            self._games[game_id] = game
        logger.info("Created game %s", game_id)
        return game

    def get(self, game_id: str) -> Game | None:
        return self._games.get(game_id)

    def remove(self, game_id: str) -> Game | None:
        with self._lock:
            game = self._games.pop(game_id, None)
        if game is not None:
            logger.info("Removed game %s", game_id)
        return game

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._games)

    def clear(self) -> None:
        """Forget all games (useful in between tests)"""
        with self._lock:
            self._games.clear()
