"""Tests for the FastAPI ClassicXO interface."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from classicxo import ui
from classicxo.ui import app


client = TestClient(app)


@pytest.fixture(autouse=True)
def short_delays(monkeypatch):
    monkeypatch.setattr(ui, "AI_MOVE_DELAY", 0.05)
    monkeypatch.setattr(ui, "RESET_DELAY", 0.05)


def new_game() -> dict:
    response = client.post("/api/game")
    assert response.status_code == 200
    return response.json()


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "ClassicXO" in response.text


def test_create_game_and_first_move():
    payload = new_game()
    assert payload["state"] == "human_turn"
    assert payload["currentPlayer"] == "X"
    assert payload["cells"] == [""] * 9
    assert payload["moveLog"] == []

    game_id = payload["id"]
    move_response = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["cells"][0] == "X"
    assert state["moveLog"][0] == {"player": "X", "index": 0}
    assert state["state"] == "computer_turn"
    assert state["aiPending"] is True

    time.sleep(0.06)
    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["state"] == "human_turn"
    assert final_state["aiPending"] is False
    last = final_state["moveLog"][-1]
    assert last["player"] == "O"
    assert final_state["cells"][last["index"]] == "O"
    assert final_state["lastMove"] == last


def test_invalid_move_rejected():
    game_id = new_game()["id"]
    first_move = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert first_move.status_code == 200

    # Still the computer's turn (or the cell is taken): either way a 400.
    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_out_of_range_index_is_422():
    game_id = new_game()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"index": 9})
    assert response.status_code == 422


def test_unknown_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert client.post("/api/game/missing/move", json={"index": 0}).status_code == 404


def test_human_win_resets_after_delay():
    game_id = new_game()["id"]
    session = ui.SESSIONS[game_id]
    with session.lock:
        session.game.board.cells[:] = ["X", "X", " ", "O", "O", " ", " ", " ", " "]

    response = client.post(f"/api/game/{game_id}/move", json={"index": 2})
    assert response.status_code == 200
    state = response.json()
    assert state["state"] == "human_won"
    assert state["winner"] == "X"
    assert state["currentPlayer"] is None
    assert state["pending"] == ["reset"]

    time.sleep(0.06)
    after = client.get(f"/api/game/{game_id}").json()
    assert after["state"] == "human_turn"
    assert after["cells"] == [""] * 9
    assert after["moveLog"] == []
    assert after["lastResult"] == "human_won"


def test_restart_cancels_pending_computer_move(monkeypatch):
    monkeypatch.setattr(ui, "AI_MOVE_DELAY", 60.0)
    game_id = new_game()["id"]
    session = ui.SESSIONS[game_id]
    ui._apply_player_move(game_id, session, 0)
    assert session.pacing.pending == [ui.COMPUTER_MOVE]

    restarted = client.post(f"/api/game/{game_id}/restart")
    assert restarted.status_code == 200
    state = restarted.json()
    assert state["state"] == "human_turn"
    assert state["cells"] == [""] * 9
    assert state["pending"] == []


def seed_board(game_id: str, rows: str) -> None:
    session = ui.SESSIONS[game_id]
    with session.lock:
        session.game.board.cells[:] = [" " if c == "." else c for c in rows]


def test_computer_win_resets_after_delay(monkeypatch):
    monkeypatch.setattr(ui, "AI_MOVE_DELAY", 0.0)
    game_id = new_game()["id"]
    seed_board(game_id, "OO.XX.X..")

    state = client.post(f"/api/game/{game_id}/move", json={"index": 8}).json()
    assert state["state"] == "computer_won"
    assert state["winner"] == "O"
    assert state["cells"][2] == "O"
    assert state["pending"] == ["reset"]

    time.sleep(0.06)
    after = client.get(f"/api/game/{game_id}").json()
    assert after["state"] == "human_turn"
    assert after["cells"] == [""] * 9
    assert after["lastResult"] == "computer_won"


def test_computer_filling_last_cell_resets_after_delay(monkeypatch):
    monkeypatch.setattr(ui, "AI_MOVE_DELAY", 0.0)
    game_id = new_game()["id"]
    seed_board(game_id, "XOXXO.OX.")

    state = client.post(f"/api/game/{game_id}/move", json={"index": 8}).json()
    assert state["state"] == "draw"
    assert state["drawn"] is True
    assert state["winner"] is None
    assert state["moveLog"][-1] == {"player": "O", "index": 5}
    assert state["pending"] == ["reset"]

    time.sleep(0.06)
    after = client.get(f"/api/game/{game_id}").json()
    assert after["state"] == "human_turn"
    assert after["cells"] == [""] * 9
    assert after["lastResult"] == "draw"


def test_human_filling_last_cell_is_a_draw():
    game_id = new_game()["id"]
    seed_board(game_id, "XOXXOOOX.")

    state = client.post(f"/api/game/{game_id}/move", json={"index": 8}).json()
    assert state["state"] == "draw"
    assert state["aiPending"] is False
    assert state["pending"] == ["reset"]

    time.sleep(0.06)
    after = client.get(f"/api/game/{game_id}").json()
    assert after["state"] == "human_turn"
    assert after["lastResult"] == "draw"


def test_restart_clears_previous_result():
    game_id = new_game()["id"]
    seed_board(game_id, "XX.OO....")
    client.post(f"/api/game/{game_id}/move", json={"index": 2})

    time.sleep(0.06)
    assert client.get(f"/api/game/{game_id}").json()["lastResult"] == "human_won"

    restarted = client.post(f"/api/game/{game_id}/restart").json()
    assert restarted["state"] == "human_turn"
    assert restarted["lastResult"] is None


def test_idle_games_are_dropped():
    stale_id = new_game()["id"]
    ui.SESSIONS[stale_id].last_seen = time.time() - ui.SESSION_TTL_SECONDS - 1
    fresh_id = new_game()["id"]

    assert stale_id not in ui.SESSIONS
    assert fresh_id in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404
