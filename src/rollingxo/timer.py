"""Countdown/elapsed display values derived from a game's start time."""

from __future__ import annotations

from dataclasses import dataclass

from .clock import Clock, system_clock
from .game import ONGOING, GameState
from .rules import TIME_CAP_SECONDS

TIME_CAP_MS = TIME_CAP_SECONDS * 1000


@dataclass(frozen=True)
class TimerState:
    elapsed: float  # ms
    remaining: float  # ms
    is_running: bool
    formatted: str


def get_elapsed_time(state: GameState, clock: Clock = system_clock) -> float:
    """Milliseconds since the game started."""
    return (clock() - state.start_time) * 1000


def get_remaining_time(
    state: GameState, time_cap_ms: float = TIME_CAP_MS, clock: Clock = system_clock
) -> float:
    return max(0.0, time_cap_ms - get_elapsed_time(state, clock))


def format_time(time_ms: float) -> str:
    """Format milliseconds as ``mm:ss.t``, truncating every field."""
    total_seconds = max(0.0, time_ms / 1000)
    minutes = int(total_seconds // 60)
    seconds = int(total_seconds % 60)
    tenths = int((total_seconds % 1) * 10)
    return f"{minutes:02d}:{seconds:02d}.{tenths}"


def get_timer_state(
    state: GameState, time_cap_ms: float = TIME_CAP_MS, clock: Clock = system_clock
) -> TimerState:
    # One clock read so elapsed and remaining agree.
    now = clock()
    elapsed = get_elapsed_time(state, lambda: now)
    remaining = get_remaining_time(state, time_cap_ms, lambda: now)
    is_running = state.result == ONGOING
    return TimerState(
        elapsed=elapsed,
        remaining=remaining,
        is_running=is_running,
        formatted=format_time(remaining if is_running else elapsed),
    )
