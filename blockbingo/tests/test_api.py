"""
Tests for API layer.

Tests:
- Service helpers (status mapping, bearer parsing)
- Request/response serialization (camelCase)
- Game lifecycle over HTTP
- Error responses
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import ErrorCode, InitializeRequest
from ..api.service import BingoService, status_for, token_from_authorization
from ..errors import (
    AuthError,
    DerivationExhaustionError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ..session import SessionManager
from .conftest import SEED, TXID, line_numbers


class TestServiceHelpers:
    """Framework-agnostic pieces of the service."""

    @pytest.mark.parametrize("error,status", [
        (ValidationError("x"), 400),
        (NotFoundError("x"), 404),
        (AuthError("x", missing=True), 401),
        (AuthError("x"), 403),
        (StateError("x"), 400),
        (DerivationExhaustionError("x"), 500),
    ])
    def test_status_for(self, error, status):
        assert status_for(error) == status

    @pytest.mark.parametrize("header,token", [
        ("Bearer abc", "abc"),
        ("bearer   abc  ", "abc"),
        ("Basic abc", None),
        ("Bearer", None),
        ("", None),
        (None, None),
    ])
    def test_token_from_authorization(self, header, token):
        assert token_from_authorization(header) == token

    def test_error_response_body(self):
        status, body = BingoService.error_response(AuthError("Invalid authorization token."))
        assert status == 403
        assert body.error_code is ErrorCode.AUTH_INVALID
        assert body.model_dump(by_alias=True)["errorCode"] == "AUTH_INVALID"

    def test_initialize_request_accepts_camel_case(self):
        request = InitializeRequest.model_validate({
            "blockHash": SEED,
            "participants": [{"name": "Alice"}],
            "mode": "PartialAndFull",
        })
        assert request.block_hash == SEED
        assert request.mode.value == "PartialAndFull"


class TestHTTP:
    """End-to-end over FastAPI's TestClient."""

    @pytest.fixture
    def service(self, drawer):
        return BingoService(session_manager=SessionManager(drawer=drawer))

    @pytest.fixture
    def client(self, service):
        return TestClient(create_app(service))

    @pytest.fixture
    def game(self, client):
        response = client.post(f"/api/games/{TXID}", json={
            "blockHash": SEED,
            "participants": [{"name": "Alice"}, {"name": "Bob"}],
            "mode": "PartialAndFull",
        })
        assert response.status_code == 200
        return response.json()

    @staticmethod
    def auth(token):
        return {"Authorization": f"Bearer {token}"}

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_initialize(self, client, game):
        assert game["created"] is True
        assert game["gmToken"]
        assert game["blockHash"] == SEED
        assert game["participantCount"] == 2
        assert game["cards"][0]["ownerName"] == "Alice"
        assert game["cards"][0]["grid"]["N"][2] is None

        again = client.post(f"/api/games/{TXID}", json={
            "blockHash": SEED,
            "participants": [{"name": "Alice"}],
        }).json()
        assert again["created"] is False
        assert again["gmToken"] is None

    def test_initialize_bad_seed(self, client):
        response = client.post(f"/api/games/{TXID}", json={
            "blockHash": "nothex",
            "participants": [{"name": "Alice"}],
        })
        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    def test_draw_requires_token(self, client, game):
        response = client.post(f"/api/draw/{TXID}")
        assert response.status_code == 401
        assert response.json()["message"] == "Authorization token required for drawing numbers."

    def test_draw_invalid_token(self, client, game):
        response = client.post(f"/api/draw/{TXID}", headers=self.auth("wrong"))
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid authorization token."

    def test_draw_unknown_game(self, client):
        response = client.post("/api/draw/nope", headers=self.auth("x"))
        assert response.status_code == 404
        assert response.json()["message"] == "Game not found."

    def test_line_win_then_end(self, client, game, service, drawer):
        session = service.session_manager.get_session(TXID)
        drawer.script = line_numbers(session.cards[0], 0)
        token = game["gmToken"]

        for _ in range(5):
            body = client.post(f"/api/draw/{TXID}", headers=self.auth(token)).json()
        assert body["message"] == "Number drawn successfully!"
        assert body["partialWinOccurred"] is True
        assert body["partialWinPending"] is True
        assert "Alice" in [w["username"] for w in body["partialWinners"]]

        ended = client.post(f"/api/end-game/{TXID}", headers=self.auth(token))
        assert ended.status_code == 200
        assert ended.json()["message"] == "Game successfully ended by Game Master."
        assert ended.json()["isOver"] is True

        again = client.post(f"/api/end-game/{TXID}", headers=self.auth(token))
        assert again.status_code == 400
        assert again.json()["message"] == "Game is already over."

    def test_end_without_line_win(self, client, game):
        response = client.post(f"/api/end-game/{TXID}", headers=self.auth(game["gmToken"]))
        assert response.status_code == 400
        assert response.json()["errorCode"] == "INVALID_STATE"

    def test_continue_game(self, client, game, service, drawer):
        session = service.session_manager.get_session(TXID)
        drawer.script = line_numbers(session.cards[1], 0)
        token = game["gmToken"]
        for _ in range(5):
            client.post(f"/api/draw/{TXID}", headers=self.auth(token))

        response = client.post(f"/api/continue-game/{TXID}", headers=self.auth(token))
        assert response.status_code == 200
        assert response.json()["continueAfterPartialWin"] is True

        state = client.get(f"/api/game-state/{TXID}").json()
        assert state["continueAfterPartialWin"] is True
        assert state["status"] == "active"

    def test_continue_missing_token(self, client, game):
        response = client.post(f"/api/continue-game/{TXID}")
        assert response.status_code == 401
        assert response.json()["message"] == "Authorization token required."

    def test_game_state_views(self, client, game, service, drawer):
        session = service.session_manager.get_session(TXID)
        drawer.script = line_numbers(session.cards[0], 0)
        token = game["gmToken"]
        client.post(f"/api/draw/{TXID}", headers=self.auth(token))

        player = client.get(f"/api/game-state/{TXID}").json()
        assert player["totalDrawn"] == 1
        assert "statistics" not in player

        bad = client.get(f"/api/game-state/{TXID}", headers=self.auth("wrong")).json()
        assert "statistics" not in bad

        gm = client.get(f"/api/game-state/{TXID}", headers=self.auth(token)).json()
        assert gm["drawnNumbers"] == player["drawnNumbers"]
        assert gm["statistics"]["summary"]
        assert isinstance(gm["statistics"]["buckets"], list)

    def test_game_state_keeps_null_winners(self, client, game):
        """Before any win the winner keys are present and null."""
        player = client.get(f"/api/game-state/{TXID}").json()

        for key in ("partialWinners", "fullCardWinners", "winners", "lastDrawTime"):
            assert key in player
            assert player[key] is None
        assert "statistics" not in player

        gm = client.get(f"/api/game-state/{TXID}", headers=self.auth(game["gmToken"])).json()
        assert gm["partialWinners"] is None
        assert gm["fullCardWinners"] is None
        assert "statistics" in gm

    def test_game_state_unknown(self, client):
        response = client.get("/api/game-state/nope")
        assert response.status_code == 404
        assert response.json()["message"] == "Game not found."

    def test_draw_sequence(self, client, game, service, drawer):
        session = service.session_manager.get_session(TXID)
        drawer.script = line_numbers(session.cards[0], 0)
        client.post(f"/api/draw/{TXID}", headers=self.auth(game["gmToken"]))

        body = client.get(f"/api/draw-sequence/{TXID}").json()
        assert body["blockHash"] == SEED
        assert len(body["draws"]) == 1
        assert body["draws"][0]["derivationIndex"] == 0

    def test_cards(self, client, game):
        response = client.get("/api/cards", params={"txId": TXID, "nickname": " alice "})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["blockHash"] == SEED
        assert body["cards"][0]["cardId"] == game["cards"][0]["cardId"]

    @pytest.mark.parametrize("params,status,message", [
        ({"nickname": "Alice"}, 400, "Transaction ID (txId) is required"),
        ({"txId": TXID}, 400, "Nickname is required"),
        ({"txId": TXID, "nickname": "Zed"}, 404,
         "Nickname 'Zed' not found in the participant list for this transaction."),
        ({"txId": "nope", "nickname": "Alice"}, 404, "Game not found."),
    ])
    def test_cards_errors(self, client, game, params, status, message):
        response = client.get("/api/cards", params=params)
        assert response.status_code == status
        assert response.json()["message"] == message


class TestRealGame:
    """HTTP against real derivation."""

    def test_full_game_draws_every_number(self):
        client = TestClient(create_app(BingoService()))
        token = client.post(f"/api/games/{TXID}", json={
            "blockHash": SEED,
            "participants": [],
            "mode": "FullCardOnly",
        }).json()["gmToken"]

        headers = {"Authorization": f"Bearer {token}"}
        first = client.post(f"/api/draw/{TXID}", headers=headers).json()
        assert first["drawnNumber"] == 20

        for _ in range(74):
            assert client.post(f"/api/draw/{TXID}", headers=headers).status_code == 200

        state = client.get(f"/api/game-state/{TXID}").json()
        assert sorted(state["drawnNumbers"]) == list(range(1, 76))

        last = client.post(f"/api/draw/{TXID}", headers=headers)
        assert last.status_code == 400
        assert last.json()["message"] == "All 75 numbers have been drawn."
