"""RollingXO package exposing the game engine, AI tiers, and the web application."""

from .ai import AIMove, MinimaxAI, get_ai_move
from .game import GameState, MoveOutcome, apply_move, new_game
from .scoring import calculate_score
from .timer import get_timer_state

__all__ = [
    "AIMove",
    "GameState",
    "MinimaxAI",
    "MoveOutcome",
    "apply_move",
    "calculate_score",
    "get_ai_move",
    "get_timer_state",
    "new_game",
]
