"""Tests for real-time play over WebSockets (src/api/websocket.py)"""

from typing import Any
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from src.api.websocket import ConnectionManager
from src.core.shared_types import Color

WHITE = "alice"
BLACK = "bob"


def _create_game(client: TestClient) -> str:
    return client.post("/games", json={}).json()["game_id"]


def _receive(websocket: Any, expected_type: str) -> dict[str, Any]:
    message = websocket.receive_json()
    assert message["type"] == expected_type, message
    return message


def test_two_players_play_a_move(client: TestClient) -> None:
    game_id = _create_game(client)
    with patch("src.chess.game.random.choice", return_value=Color.WHITE):
        with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
            joined = _receive(alice, "joined")
            assert joined["color"] == "white"
            assert _receive(alice, "game_state")["game"]["status"] == "waiting"

            with client.websocket_connect(f"/ws/{game_id}/{BLACK}") as bob:
                assert _receive(bob, "joined")["color"] == "black"
                assert _receive(bob, "game_state")["game"]["status"] == "active"
                assert _receive(alice, "game_state")["game"]["status"] == "active"

                alice.send_json({"type": "move", "from_square": "e2", "to_square": "e4"})
                for websocket in (alice, bob):
                    move = _receive(websocket, "move")
                    assert move["move"]["to_square"] == "e4"
                    assert move["game"]["turn"] == "black"


def test_rejected_request_only_goes_to_sender(client: TestClient) -> None:
    game_id = _create_game(client)
    with patch("src.chess.game.random.choice", return_value=Color.WHITE):
        with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
            _receive(alice, "joined")
            _receive(alice, "game_state")
            with client.websocket_connect(f"/ws/{game_id}/{BLACK}") as bob:
                _receive(bob, "joined")
                _receive(bob, "game_state")
                _receive(alice, "game_state")

                bob.send_json({"type": "move", "from_square": "e7", "to_square": "e5"})
                error = _receive(bob, "error")
                assert error["error"] == "NotYourTurnError"

                # alice gets nothing for bob's mistake: the next thing she sees is her own answer
                alice.send_json({"type": "legal_moves"})
                assert len(_receive(alice, "legal_moves")["legal_moves"]) == 20


def test_bad_messages(client: TestClient) -> None:
    game_id = _create_game(client)
    with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
        _receive(alice, "joined")
        _receive(alice, "game_state")

        alice.send_text("this is not json")
        assert _receive(alice, "error")["error"] == "InvalidRequestError"

        alice.send_json({"type": "castle"})
        assert _receive(alice, "error")["error"] == "InvalidRequestError"

        alice.send_json({"type": "move", "from_square": "e2"})
        assert _receive(alice, "error")["error"] == "ValidationError"

        alice.send_json(["move"])
        assert _receive(alice, "error")["error"] == "InvalidRequestError"


def test_opponent_disconnect(client: TestClient) -> None:
    game_id = _create_game(client)
    with patch("src.chess.game.random.choice", return_value=Color.WHITE):
        with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
            _receive(alice, "joined")
            _receive(alice, "game_state")
            with client.websocket_connect(f"/ws/{game_id}/{BLACK}") as bob:
                _receive(bob, "joined")
                _receive(bob, "game_state")
                _receive(alice, "game_state")

            # closing the socket is enough: the game is already abandoned
            assert client.get(f"/games/{game_id}").json()["status"] == "abandoned"
            left = _receive(alice, "opponent_disconnected")
            assert left["player_name"] == BLACK
            assert left["game"]["status"] == "abandoned"
            assert left["game"]["winner"] == WHITE

    # both gone: the game is forgotten
    assert client.get(f"/games/{game_id}").status_code == 404


def test_lone_player_leaving_removes_game(client: TestClient) -> None:
    game_id = _create_game(client)
    with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
        _receive(alice, "joined")
    assert client.get(f"/games/{game_id}").status_code == 404


def test_connect_to_unknown_game(client: TestClient) -> None:
    with client.websocket_connect(f"/ws/NOPE00/{WHITE}") as websocket:
        assert _receive(websocket, "error")["error"] == "SessionNotFoundError"


def test_connect_to_full_game(client: TestClient) -> None:
    game_id = _create_game(client)
    client.post(f"/games/{game_id}/join", json={"player_name": WHITE})
    client.post(f"/games/{game_id}/join", json={"player_name": BLACK})
    with client.websocket_connect(f"/ws/{game_id}/carol") as websocket:
        assert _receive(websocket, "error")["error"] == "SessionFullError"


def test_second_socket_for_same_player_is_turned_away(client: TestClient) -> None:
    game_id = _create_game(client)
    with patch("src.chess.game.random.choice", return_value=Color.WHITE):
        with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as alice:
            _receive(alice, "joined")
            _receive(alice, "game_state")

            with client.websocket_connect(f"/ws/{game_id}/{WHITE}") as duplicate:
                assert _receive(duplicate, "error")["error"] == "GameStateError"

            with client.websocket_connect(f"/ws/{game_id}/{BLACK}") as bob:
                _receive(bob, "joined")
                _receive(bob, "game_state")
                # the turned-away socket closing did not count as alice leaving
                assert _receive(alice, "game_state")["game"]["status"] == "active"
                assert client.get(f"/games/{game_id}").json()["status"] == "active"

                alice.send_json({"type": "move", "from_square": "e2", "to_square": "e4"})
                assert _receive(bob, "move")["game"]["turn"] == "black"


def test_connection_manager_keeps_first_socket() -> None:
    manager = ConnectionManager()
    first, second = MagicMock(), MagicMock()
    assert manager.connect("ABC123", WHITE, first) is True
    assert manager.connect("ABC123", WHITE, second) is False

    # only the registered socket can let go of the seat
    assert manager.disconnect("ABC123", WHITE, second) is False
    assert manager.disconnect("ABC123", WHITE, first) is True
    assert manager.connect("ABC123", WHITE, second) is True
