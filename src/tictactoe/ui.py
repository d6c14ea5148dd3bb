"""FastAPI-powered web UI for playing tic-tac-toe against the minimax AI."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import MAX_DEPTH, MinimaxAI
from .flow import GameFlow
from .game import PLAYER_TWO, Cell

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game flow and the state of its AI turn."""

    flow: GameFlow
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe against a minimax AI")


AI_THINK_DELAY = (0.5, 1.0)


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    depth: int = Field(
        default=MAX_DEPTH,
        ge=1,
        le=MAX_DEPTH,
        description="Minimax look-ahead in plies; 9 searches to the end",
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    position: int = Field(ge=0, le=8)


def _create_session(depth: int) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    flow = GameFlow(ai=MinimaxAI(player=PLAYER_TWO, depth=depth))
    flow.start()
    session = GameSession(flow=flow)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s with depth %d", session_id, depth)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if session.flow.machine_to_move():
                session.flow.play_machine()
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        flow = session.flow
        board = flow.board
        outcome = flow.outcome

        state: Dict[str, object] = {
            "id": game_id,
            "phase": flow.phase.value,
            "cells": [c.value if c is not Cell.EMPTY else "" for c in board.cells],
            "currentPlayer": board.active_player.mark.value,
            "status": outcome.status.value,
            "winner": outcome.winner.mark.value if outcome.winner else None,
            "winningLine": list(outcome.line) if outcome.line else None,
            "message": flow.message,
            "scores": flow.scores(),
            "availableMoves": (
                [m.position for m in board.legal_moves()]
                if not outcome.is_over
                else []
            ),
            "moveLog": list(flow.move_log),
            "aiPending": session.ai_pending,
            "depth": flow.ai.depth,
        }
        if flow.move_log:
            state["lastMove"] = flow.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    position: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        try:
            session.flow.play_human(position)
        except ValueError as exc:
            logger.warning("Rejected move %d in game %s: %s", position, game_id, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        should_schedule_ai = session.flow.machine_to_move()
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _reset_session(game_id: str, session: GameSession) -> None:
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        try:
            session.flow.reset()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.info("Game %s reset, scores %s", game_id, session.flow.scores())


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(int(request.depth))
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
    _apply_player_move(game_id, session, request.position, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(game_id, session)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
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
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(480px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      .scores {
        display: flex;
        justify-content: space-around;
        margin-bottom: 1rem;
        font-weight: 600;
      }
      .grid {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 8px;
        margin: 0 auto 1rem;
        width: min(320px, 100%);
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.6rem;
        font-weight: 700;
        border-radius: 14px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.win {
        background: #dff5e3;
      }
      .cell.x {
        color: #3a66ff;
      }
      .cell.o {
        color: #e0475b;
      }
      #message {
        min-height: 1.5rem;
        font-weight: 600;
      }
      button.control,
      select {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      .hidden {
        display: none;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"toolbar\">
        <label>
          Look-ahead
          <select id=\"depth\">
            <option value=\"1\">1 ply</option>
            <option value=\"3\">3 plies</option>
            <option value=\"9\" selected>Perfect</option>
          </select>
        </label>
        <button class=\"control\" id=\"new-game\">New game</button>
      </div>
      <div class=\"scores\">
        <span>Player 1 (X): <span id=\"score-1\">0</span></span>
        <span>Draws: <span id=\"score-draw\">0</span></span>
        <span>Player 2 (O): <span id=\"score-2\">0</span></span>
      </div>
      <div class=\"grid\" id=\"grid\"></div>
      <p id=\"message\"></p>
      <button class=\"control hidden\" id=\"reset\">Play again</button>
    </main>
    <script>
      const grid = document.getElementById('grid');
      const message = document.getElementById('message');
      const resetButton = document.getElementById('reset');
      let state = null;
      let pollTimer = null;

      for (let i = 0; i < 9; i += 1) {
        const cell = document.createElement('button');
        cell.className = 'cell';
        cell.dataset.position = String(i);
        cell.addEventListener('click', () => play(i));
        grid.appendChild(cell);
      }

      async function request(method, url, body) {
        const response = await fetch(url, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined,
        });
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function render() {
        if (!state) {
          return;
        }
        const line = state.winningLine || [];
        grid.querySelectorAll('.cell').forEach((cell, index) => {
          const mark = state.cells[index];
          cell.textContent = mark;
          cell.className = 'cell' + (mark ? ' ' + mark.toLowerCase() : '');
          if (line.includes(index)) {
            cell.classList.add('win');
          }
          cell.disabled =
            state.aiPending || !state.availableMoves.includes(index) || state.currentPlayer !== 'X';
        });
        document.getElementById('score-1').textContent = state.scores.player1;
        document.getElementById('score-2').textContent = state.scores.player2;
        document.getElementById('score-draw').textContent = state.scores.draws;
        if (state.message) {
          message.textContent = state.message;
        } else if (state.aiPending) {
          message.textContent = 'Thinking…';
        } else {
          message.textContent = 'Your move';
        }
        resetButton.classList.toggle('hidden', state.phase !== 'game_over');
      }

      function schedulePoll() {
        clearTimeout(pollTimer);
        if (state && state.aiPending) {
          pollTimer = setTimeout(async () => {
            state = await request('GET', `/api/game/${state.id}`);
            render();
            schedulePoll();
          }, 250);
        }
      }

      async function newGame() {
        const depth = Number(document.getElementById('depth').value);
        state = await request('POST', '/api/game', { depth });
        render();
      }

      async function play(position) {
        try {
          state = await request('POST', `/api/game/${state.id}/move`, { position });
        } catch (error) {
          message.textContent = error.message;
          return;
        }
        render();
        schedulePoll();
      }

      resetButton.addEventListener('click', async () => {
        state = await request('POST', `/api/game/${state.id}/reset`);
        render();
      });
      document.getElementById('new-game').addEventListener('click', newGame);
      newGame();
    </script>
  </body>
</html>
"""
