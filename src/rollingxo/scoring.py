"""Score formula for finished (or running) RollingXO games.

    score = round(1000 * L * R / (1 + 0.02 * K + 0.01 * T))

where L is the difficulty multiplier, R the result multiplier from the
scored player's point of view, K the number of moves and T the seconds
since the game started.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, Tuple

from .clock import Clock, system_clock
from .game import DRAW, ONGOING, WIN, GameState
from .rules import Player

DIFFICULTIES: Tuple[str, ...] = ("beginner", "moderate", "hard")

LEVEL_MULTIPLIERS: Dict[str, float] = {
    "beginner": 1.0,
    "moderate": 1.2,
    "hard": 1.5,
}

# A loss is scored like an unfinished game.
RESULT_MULTIPLIERS: Dict[str, float] = {
    WIN: 1.0,
    DRAW: 0.5,
    ONGOING: 0.0,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    result: str
    result_multiplier: float
    level_multiplier: float
    move_count: int
    time_seconds: float
    time_multiplier: float
    base_score: float
    final_score: int


def calculate_score(
    state: GameState, player: Player, level: str, clock: Clock = system_clock
) -> ScoreBreakdown:
    """Score ``state`` for ``player``.

    Elapsed time is read from ``clock`` at call time, so call this right
    after the game ends to get a stable number.
    """
    try:
        level_multiplier = LEVEL_MULTIPLIERS[level]
    except KeyError as exc:
        raise ValueError(f"Unknown difficulty level: {level}") from exc

    result = state.result
    if result == WIN and state.current_player != player:
        result = ONGOING
    result_multiplier = RESULT_MULTIPLIERS[result]

    time_seconds = clock() - state.start_time
    time_multiplier = 1 / (1 + 0.02 * state.move_count + 0.01 * time_seconds)
    base_score = 1000 * level_multiplier * result_multiplier

    return ScoreBreakdown(
        result=result,
        result_multiplier=result_multiplier,
        level_multiplier=level_multiplier,
        move_count=state.move_count,
        time_seconds=time_seconds,
        time_multiplier=time_multiplier,
        base_score=base_score,
        final_score=_round_half_up(base_score * time_multiplier),
    )


def get_score(
    state: GameState, player: Player, level: str, clock: Clock = system_clock
) -> int:
    return calculate_score(state, player, level, clock=clock).final_score


def _round_half_up(value: float) -> int:
    # round() would round half to even
    return math.floor(value + 0.5)
