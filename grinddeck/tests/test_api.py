"""
Tests for the API service and the FastAPI routes.
"""

import pytest
from fastapi.testclient import TestClient

from ..api import APIService, create_app
from ..api.schemas import (
    CreateGameRequest,
    ErrorCode,
    ErrorResponse,
    PlayCardRequest,
    PlayFunctionRequest,
    PlayPairRequest,
    SessionStatus,
    SetTargetRequest,
)
from ..engine_core.cards import Card
from ..session import SessionManager

NUMBER_TYPES = {"number", "zero", "negative", "constant"}


@pytest.fixture
def service(kv_store, history, clock):
    return APIService(session_manager=SessionManager(kv_store, history, clock))


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def _with_hand(service, session_id, hand):
    service.session_manager.get_session(session_id).engine.state.hand = list(hand)


def _known_hand():
    return [
        Card.number(5, card_id="n5"),
        Card.number(3, card_id="n3"),
        Card.arithmetic("+", card_id="add"),
        Card.arithmetic("÷", card_id="div"),
        Card.zero(card_id="zero"),
        Card.function("x^y", card_id="pow"),
        Card.variable(card_id="var"),
    ]


class TestAPIService:

    def test_create_game(self, service):
        state = service.create_game(CreateGameRequest(difficulty="functions", random_seed=3))

        assert state.status == SessionStatus.ACTIVE
        assert state.difficulty.value == "functions"
        assert state.solo.mode.value == "unlimited"
        assert len(state.hand) >= 7
        assert state.grind_value is None

    def test_unknown_session(self, service):
        result = service.draw("missing")
        assert isinstance(result, ErrorResponse)
        assert result.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_play_sequence(self, service):
        game = service.create_game(CreateGameRequest(difficulty="algebra"))
        _with_hand(service, game.session_id, _known_hand())

        result = service.play_number(game.session_id, PlayCardRequest(card_id="n5"))
        assert result.game_state.grind_value == 5

        result = service.play_arithmetic(game.session_id, PlayPairRequest(card_id="add", second_card_id="n3"))
        assert result.state_changes == ["5 + 3 = 8"]
        assert result.game_state.current_score == 8

        result = service.play_function(game.session_id, PlayFunctionRequest(card_id="pow", second_card_id="zero"))
        assert result.game_state.grind_value == 1

    def test_division_by_zero_code(self, service):
        game = service.create_game(CreateGameRequest())
        _with_hand(service, game.session_id, _known_hand())
        service.play_number(game.session_id, PlayCardRequest(card_id="n5"))

        result = service.play_arithmetic(game.session_id, PlayPairRequest(card_id="div", second_card_id="zero"))

        assert result.error_code == ErrorCode.DIVISION_BY_ZERO
        assert service.get_game(game.session_id).grind_value == 5

    def test_algebra_commands(self, service):
        game = service.create_game(CreateGameRequest(difficulty="algebra"))
        _with_hand(service, game.session_id, _known_hand())
        service.play_number(game.session_id, PlayCardRequest(card_id="n5"))

        result = service.play_variable(game.session_id, PlayCardRequest(card_id="var"))
        assert result.game_state.algebra_active
        assert result.game_state.active_target.value == "algebra"

        service.play_arithmetic(game.session_id, PlayPairRequest(card_id="add", second_card_id="n3"))
        assert service.get_game(game.session_id).algebra_function == "(x + 3)"

        result = service.apply_algebra(game.session_id)
        assert result.game_state.grind_value == 8

        result = service.set_target(game.session_id, SetTargetRequest(target=None))
        assert result.game_state.active_target is None

    def test_moves_and_legal_actions(self, service):
        game = service.create_game(CreateGameRequest())
        _with_hand(service, game.session_id, _known_hand())
        service.play_number(game.session_id, PlayCardRequest(card_id="n5"))

        moves = service.get_moves(game.session_id)
        assert moves.count == 1
        assert moves.moves[0].move_type == "number"
        assert moves.moves[0].cards[0].value == 5

        legal = service.get_legal_actions(game.session_id)
        types = {a.action_type for a in legal.actions}
        assert "play_arithmetic" in types
        assert "end_game" in types
        assert ("div", "zero") not in {(a.card_id, a.second_card_id) for a in legal.actions}

    def test_end_game_records_history(self, service):
        game = service.create_game(CreateGameRequest(solo_mode="deck_limited", limit=10))
        service.end_game(game.session_id)

        assert service.get_game(game.session_id).status == SessionStatus.GAME_OVER
        history = service.get_history()
        assert history.count == 1
        assert history.entries[0].end_reason == "manual_end"
        assert history.entries[0].deck_limit == 10

        rejected = service.draw(game.session_id)
        assert rejected.error_code == ErrorCode.GAME_OVER

    def test_non_finite_values_sent_as_null(self, service):
        game = service.create_game(CreateGameRequest())
        state = service.session_manager.get_session(game.session_id).engine.state
        state.grind.push([Card.number(9)], float("inf"))
        state.current_score = float("inf")

        result = service.get_game(game.session_id)

        assert result.grind_value is None
        assert result.grind_display == "inf"
        assert result.current_score is None
        assert result.model_dump_json()

    def test_tick(self, service, clock):
        game = service.create_game(CreateGameRequest(solo_mode="time_limited", limit=5))

        assert not service.tick(game.session_id).ended
        clock.advance(5)

        result = service.tick(game.session_id)
        assert result.ended
        assert result.end_reason == "time_up"
        assert result.remaining_time == 0
        assert service.list_games() == []


class TestRoutes:

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/api/docs"

    def test_create_and_get(self, client):
        response = client.post("/api/v1/games", json={"difficulty": "decimals", "random_seed": 1})
        assert response.status_code == 200
        game = response.json()

        response = client.get(f"/api/v1/games/{game['session_id']}")
        assert response.status_code == 200
        assert response.json()["difficulty"] == "decimals"

        listed = client.get("/api/v1/games").json()
        assert listed["sessions"] == [game["session_id"]]

    @pytest.mark.parametrize("body", [
        {"difficulty": "impossible"},
        {"solo_mode": "deck_limited", "limit": 0},
        {"solo_mode": "blitz"},
    ])
    def test_create_validation(self, client, body):
        assert client.post("/api/v1/games", json=body).status_code == 422

    def test_unknown_game_is_404(self, client):
        response = client.get("/api/v1/games/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_seed_and_play(self, client):
        game = client.post("/api/v1/games", json={"random_seed": 5}).json()
        sid = game["session_id"]
        number = next(c for c in game["hand"] if c["card_type"] in NUMBER_TYPES)

        response = client.post(f"/api/v1/games/{sid}/play/number", json={"card_id": number["card_id"]})
        assert response.status_code == 200
        assert response.json()["game_state"]["grind_value"] == number["value"]

        response = client.post(f"/api/v1/games/{sid}/play/number", json={"card_id": number["card_id"]})
        assert response.status_code == 400
        assert response.json()["error_code"] == "ILLEGAL_MOVE"

        moves = client.get(f"/api/v1/games/{sid}/moves").json()
        assert moves["count"] == 1

    def test_arithmetic_before_seed_rejected(self, client):
        game = client.post("/api/v1/games", json={}).json()
        sid = game["session_id"]
        operator = next(c for c in game["hand"] if c["card_type"] == "arithmetic")
        number = next(c for c in game["hand"] if c["card_type"] in NUMBER_TYPES)

        response = client.post(
            f"/api/v1/games/{sid}/play/arithmetic",
            json={"card_id": operator["card_id"], "second_card_id": number["card_id"]},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "ILLEGAL_MOVE"

    def test_end_game_then_commands_conflict(self, client):
        sid = client.post("/api/v1/games", json={}).json()["session_id"]

        response = client.delete(f"/api/v1/games/{sid}")
        assert response.status_code == 200
        assert response.json()["end_reason"] == "manual_end"

        response = client.post(f"/api/v1/games/{sid}/draw")
        assert response.status_code == 409
        assert response.json()["error_code"] == "GAME_OVER"

        assert client.get("/api/v1/games/{}/legal-actions".format(sid)).json()["count"] == 0

        history = client.get("/api/v1/history", params={"limit": 5}).json()
        assert history["count"] == 1
        stats = client.get("/api/v1/history/stats").json()
        assert stats["total_games"] == 1

    def test_tick_route(self, client):
        sid = client.post("/api/v1/games", json={"solo_mode": "time_limited", "limit": 60}).json()["session_id"]
        response = client.post(f"/api/v1/games/{sid}/tick")
        assert response.status_code == 200
        assert response.json()["remaining_time"] == 60

    def test_target_route(self, client):
        sid = client.post("/api/v1/games", json={}).json()["session_id"]
        response = client.post(f"/api/v1/games/{sid}/target", json={"target": "grind"})
        assert response.status_code == 200
        assert response.json()["game_state"]["active_target"] == "grind"
