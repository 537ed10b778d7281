"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from pathlib import Path
from typing import Callable, Iterator, Optional
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.chess.game import Game
from src.core.config import Settings
from src.core.shared_types import Color
from src.main import create_app
from src.registry.memory_registry import InMemorySessionRegistry
from src.services.chess_service import ChessService

WHITE_PLAYER = "alice"
BLACK_PLAYER = "bob"


def seat_players(game: Game, white: str = WHITE_PLAYER, black: str = BLACK_PLAYER) -> None:
    """First joiner gets a random color: pin it, so tests know who plays white."""
    with patch("src.chess.game.random.choice", return_value=Color.WHITE):
        game.join(white)
    game.join(black)


@pytest.fixture
def active_game() -> Callable[[Optional[str], Color], Game]:
    """Call the inner function with a FEN board position (defaults to the starting position) and the side to move."""

    def _create_game(fen: Optional[str] = None, turn: Color = Color.WHITE) -> Game:
        game = Game.new_game("TEST01", starting_position=fen)
        game.board.turn = turn
        seat_players(game)
        return game

    return _create_game


@pytest.fixture
def registry() -> Iterator[InMemorySessionRegistry]:
    """Ensures to clear the registry between tests"""
    registry = InMemorySessionRegistry()
    try:
        yield registry
    finally:
        registry.clear()


@pytest.fixture
def service(registry: InMemorySessionRegistry) -> ChessService:
    return ChessService(registry)


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    """App with its own registry. No static directory to serve."""
    settings = Settings(static_dir=tmp_path / "no_static_files_here")
    with TestClient(create_app(settings)) as test_client:
        yield test_client
