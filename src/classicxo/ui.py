"""FastAPI-powered web UI for playing ClassicXO in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import MinimaxAI
from .config import Settings
from .game import COMPUTER, DRAW, HUMAN, TicTacToeGame, empty_cells
from .pacing import PacingQueue

logger = logging.getLogger(__name__)

COMPUTER_MOVE = "computer-move"
RESET = "reset"
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes


@dataclass
class GameSession:
    """Container for an active game, its computer opponent and pending timers."""

    game: TicTacToeGame
    ai: MinimaxAI
    pacing: PacingQueue = field(default_factory=PacingQueue)
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_seen: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="ClassicXO", description="Tic-tac-toe against a minimax opponent"
)

_settings = Settings.from_env()
AI_MOVE_DELAY: float = _settings.ai_move_delay
RESET_DELAY: float = _settings.reset_delay


class MoveRequest(BaseModel):
    """Request payload for placing the human's mark."""

    index: int = Field(ge=0, le=8, description="Board cell, row-major 0..8")


def _cleanup_sessions() -> None:
    """Remove games nobody has touched for longer than the TTL."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_seen >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Dropped %d idle games", len(expired))


def _create_session() -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    session = GameSession(game=TicTacToeGame(), ai=MinimaxAI(player=COMPUTER))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_seen = time.time()
    return session


# ---- paced actions (run with session.lock held) ----


def _reset_board(session: GameSession) -> None:
    session.game.reset()
    session.move_log.clear()


def _schedule_reset_if_finished(session: GameSession) -> None:
    if session.game.finished:
        session.pacing.schedule(
            RESET_DELAY, lambda: _reset_board(session), RESET
        )


def _computer_turn(session: GameSession) -> None:
    game = session.game
    if game.current_player != session.ai.player:
        return
    index = session.ai.choose(game.board)
    game.play_computer(index)
    session.move_log.append({"player": session.ai.player, "index": index})
    _schedule_reset_if_finished(session)


def _drain_pacing(game_id: str) -> None:
    """Background task: sleep until each scheduled action is due and run it."""

    session = SESSIONS.get(game_id)
    if not session:
        return
    while True:
        with session.lock:
            session.pacing.run_due()
            delay = session.pacing.next_delay()
        if delay is None:
            return
        time.sleep(delay)


# ---- request handling ----


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        session.pacing.run_due()
        game = session.game
        pending = session.pacing.pending
        state: Dict[str, object] = {
            "id": game_id,
            "cells": [c if c in (HUMAN, COMPUTER) else "" for c in game.board.cells],
            "state": game.state,
            "currentPlayer": game.current_player,
            "winner": game.winner,
            "drawn": game.state == DRAW,
            "emptyCells": empty_cells(game.board),
            "moveLog": list(session.move_log),
            "lastResult": game.last_result,
            "pending": pending,
            "aiPending": COMPUTER_MOVE in pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        session.pacing.run_due()
        game = session.game
        try:
            game.play_human(index)
        except ValueError as exc:
            logger.warning("Rejected move %d in game %s: %s", index, game_id, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": HUMAN, "index": index})

        if game.current_player == session.ai.player:
            session.pacing.schedule(
                AI_MOVE_DELAY, lambda: _computer_turn(session), COMPUTER_MOVE
            )
        else:
            _schedule_reset_if_finished(session)

    if background_tasks is not None:
        background_tasks.add_task(_drain_pacing, game_id)


@app.post("/api/game")
def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.pacing.cancel_all()
        _reset_board(session)
        session.game.last_result = None
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>ClassicXO</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(420px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      #status {
        min-height: 1.5rem;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      #status.ai-turn {
        color: #6a4bc4;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 8px;
        margin: 0 auto 1.5rem;
        width: min(300px, 100%);
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.5rem;
        font-weight: 700;
        border: none;
        border-radius: 12px;
        background: #eef1ff;
        cursor: pointer;
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: #e0475b;
      }
      .cell.o {
        color: #2f6fe0;
      }
      .cell.last-move {
        box-shadow: inset 0 0 0 3px rgba(47, 111, 224, 0.35);
      }
      #restart-button {
        padding: 0.6rem 1.4rem;
        border-radius: 999px;
        border: none;
        background: #13203a;
        color: white;
        font-weight: 600;
        cursor: pointer;
      }
      #message {
        min-height: 1.2rem;
        color: #c0392b;
        margin-top: 0.75rem;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>ClassicXO</h1>
      <div id=\"status\">Setting up your game…</div>
      <div id=\"board\"></div>
      <button id=\"restart-button\" type=\"button\">Restart</button>
      <div id=\"message\"></div>
    </main>
    <script>
      const statusEl = document.getElementById('status');
      const boardEl = document.getElementById('board');
      const messageEl = document.getElementById('message');
      const restartButton = document.getElementById('restart-button');
      const resultText = {
        human_won: 'You Win!',
        computer_won: 'AI Wins!',
        draw: 'Tie!',
      };

      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;

      function stopPolling() {
        if (pollHandle !== null) {
          clearTimeout(pollHandle);
          pollHandle = null;
        }
      }

      function ensurePolling() {
        if (pollHandle !== null) return;
        pollHandle = window.setTimeout(poll, 250);
      }

      async function poll() {
        pollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
            return;
          }
        } catch (error) {
          console.error('Polling failed', error);
        }
        ensurePolling();
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        renderBoard();
        updateStatus();
        if (gameState.pending && gameState.pending.length) {
          ensurePolling();
        } else {
          stopPolling();
        }
      }

      function renderBoard() {
        boardEl.innerHTML = '';
        if (!gameState) return;
        const lastMove = gameState.lastMove;
        gameState.cells.forEach((value, index) => {
          const cell = document.createElement('button');
          cell.type = 'button';
          cell.classList.add('cell');
          if (value) {
            cell.textContent = value;
            cell.classList.add(value.toLowerCase());
          }
          if (lastMove && lastMove.index === index) {
            cell.classList.add('last-move');
          }
          const canClick = !value && gameState.state === 'human_turn';
          cell.disabled = !canClick;
          if (canClick) {
            cell.addEventListener('click', () => sendMove(index));
          }
          boardEl.appendChild(cell);
        });
      }

      function updateStatus() {
        statusEl.classList.remove('ai-turn');
        if (!gameState) return;
        if (resultText[gameState.state]) {
          statusEl.textContent = resultText[gameState.state];
        } else if (gameState.state === 'computer_turn') {
          statusEl.textContent = "AI's Turn";
          statusEl.classList.add('ai-turn');
        } else if (!gameState.moveLog.length && gameState.lastResult) {
          statusEl.textContent = `${resultText[gameState.lastResult]} Your Turn`;
        } else {
          statusEl.textContent = 'Your Turn';
        }
      }

      async function post(url, body) {
        const response = await fetch(url, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          const detail = typeof payload.detail === 'string' ? payload.detail : 'Request failed';
          throw new Error(detail);
        }
        return payload;
      }

      async function sendMove(index) {
        if (isRequestPending || !gameId) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await post(`/api/game/${gameId}/move`, { index }));
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function startGame() {
        stopPolling();
        messageEl.textContent = '';
        try {
          const url = gameId ? `/api/game/${gameId}/restart` : '/api/game';
          setState(await post(url));
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        }
      }

      restartButton.addEventListener('click', startGame);
      startGame();
    </script>
  </body>
</html>
"""
