"""FastAPI application that lets a browser play RollingXO against the computer."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
import random
import threading
import time
import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import DEFAULT_SEARCH_DEPTH, AIError, AIMove, get_ai_move, get_legal_moves
from .game import ONGOING, GameState, apply_move, new_game, settle_draw
from .scoring import DIFFICULTIES, ScoreBreakdown, calculate_score
from .timer import get_timer_state

logger = logging.getLogger(__name__)

HUMAN_PLAYER = "X"
CPU_PLAYER = "O"

ALLOWED_DIFFICULTIES: Tuple[str, ...] = DIFFICULTIES
AI_THINK_DELAY: Tuple[float, float] = (0.25, 0.25)
SEARCH_DEPTH = int(os.environ.get("ROLLINGXO_SEARCH_DEPTH", str(DEFAULT_SEARCH_DEPTH)))


@dataclass
class GameSession:
    """An ongoing match between the browser player and the computer."""

    state: GameState
    difficulty: str
    rng: random.Random = field(default_factory=random.Random, repr=False)
    ai_pending: bool = False
    last_ai_move: Optional[AIMove] = None
    # Running totals over the finished games of this session
    player_total: int = 0
    opponent_total: int = 0
    scored: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="RollingXO",
    description="Tic-tac-toe where each side keeps only its three newest marks",
)


def _check_difficulty(value: str) -> str:
    if value not in ALLOWED_DIFFICULTIES:
        raise ValueError(
            f"Unsupported difficulty {value!r}. "
            f"Choose one of {', '.join(ALLOWED_DIFFICULTIES)}."
        )
    return value


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: str = Field(
        default="beginner", description="Computer opponent strength"
    )

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: str) -> str:
        return _check_difficulty(value)


class RematchRequest(BaseModel):
    """Request payload for starting the next game of a session."""

    difficulty: Optional[str] = None

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_difficulty(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _create_session(difficulty: str) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(state=new_game(HUMAN_PLAYER), difficulty=difficulty)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s at %s difficulty", session_id, difficulty)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_result(game_id: str, session: GameSession) -> None:
    """Add a finished game's scores to the session totals (caller holds lock)."""
    if session.scored or session.state.result == ONGOING:
        return
    state = session.state
    session.player_total += calculate_score(
        state, HUMAN_PLAYER, session.difficulty
    ).final_score
    session.opponent_total += calculate_score(
        state, CPU_PLAYER, session.difficulty
    ).final_score
    session.scored = True
    winner = state.current_player if state.win_line else None
    logger.info(
        "Game %s finished: %s%s after %d moves",
        game_id,
        state.result,
        f" for {winner}" if winner else "",
        state.move_count,
    )


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            state = settle_draw(session.state)
            session.state = state
            if state.result != ONGOING or state.current_player != CPU_PLAYER:
                return
            move = get_ai_move(
                state,
                CPU_PLAYER,
                session.difficulty,
                rng=session.rng,
                depth=SEARCH_DEPTH,
            )
            outcome = apply_move(state, move.cell)
            if outcome.success:
                session.state = outcome.new_state
                session.last_ai_move = move
        except AIError:
            logger.exception("Computer move failed for game %s", game_id)
        finally:
            session.ai_pending = False
            _record_result(game_id, session)


def _serialize_score(score: ScoreBreakdown) -> Dict[str, object]:
    return {
        "result": score.result,
        "resultMultiplier": score.result_multiplier,
        "levelMultiplier": score.level_multiplier,
        "moveCount": score.move_count,
        "timeSeconds": score.time_seconds,
        "timeMultiplier": score.time_multiplier,
        "baseScore": score.base_score,
        "finalScore": score.final_score,
    }


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        session.state = settle_draw(session.state)
        _record_result(game_id, session)
        state = session.state
        timer = get_timer_state(state)
        last = session.last_ai_move

        board: List[str] = [c if c in ("X", "O") else "" for c in state.board]
        return {
            "id": game_id,
            "board": board,
            "currentPlayer": state.current_player,
            "result": state.result,
            "winLine": list(state.win_line) if state.win_line else None,
            "moveCount": state.move_count,
            "moveHistory": list(state.move_history),
            "difficulty": session.difficulty,
            "aiPending": session.ai_pending,
            "legalMoves": get_legal_moves(state) if state.result == ONGOING else [],
            "lastAIMove": (
                {"cell": last.cell, "score": last.score, "reason": last.reason}
                if last
                else None
            ),
            "scores": {
                player: _serialize_score(
                    calculate_score(state, player, session.difficulty)
                )
                for player in (HUMAN_PLAYER, CPU_PLAYER)
            },
            "totals": {
                "player": session.player_total,
                "opponent": session.opponent_total,
            },
            "timer": {
                "elapsed": timer.elapsed,
                "remaining": timer.remaining,
                "isRunning": timer.is_running,
                "formatted": timer.formatted,
            },
        }


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        session.state = settle_draw(session.state)
        state = session.state

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        if state.result == ONGOING and state.current_player != HUMAN_PLAYER:
            raise HTTPException(status_code=400, detail="It is not your turn")

        outcome = apply_move(state, cell_index)
        if not outcome.success:
            raise HTTPException(status_code=400, detail=outcome.message)
        session.state = outcome.new_state
        _record_result(game_id, session)

        should_schedule_ai = (
            session.state.result == ONGOING
            and session.state.current_player == CPU_PLAYER
        )
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.difficulty)
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
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/rematch")
def rematch(game_id: str, request: Optional[RematchRequest] = None) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        if request is not None and request.difficulty is not None:
            session.difficulty = request.difficulty
        session.state = new_game(HUMAN_PLAYER)
        session.last_ai_move = None
        session.scored = False
    return _serialize_session(game_id, session)
