"""Tests for the RollingXO score formula."""

import pytest

from conftest import fixed_clock
from rollingxo.game import DRAW, ONGOING, WIN, GameState
from rollingxo.scoring import calculate_score, get_score


def test_beginner_win_score():
    state = GameState(result=WIN, current_player="X", move_count=10, start_time=0.0)
    score = calculate_score(state, "X", "beginner", clock=fixed_clock(60.0))
    assert score.result == WIN
    assert score.result_multiplier == 1.0
    assert score.level_multiplier == 1.0
    assert score.move_count == 10
    assert score.time_seconds == 60.0
    assert score.base_score == 1000
    assert score.time_multiplier == pytest.approx(0.5556, abs=1e-4)
    assert score.final_score == 556


def test_moderate_draw_score():
    state = GameState(result=DRAW, current_player="O", move_count=20, start_time=0.0)
    score = calculate_score(state, "X", "moderate", clock=fixed_clock(60.0))
    assert score.result == DRAW
    assert score.base_score == pytest.approx(600)
    assert score.time_multiplier == pytest.approx(0.5)
    assert score.final_score == 300


def test_loss_scores_like_unfinished_game():
    state = GameState(result=WIN, current_player="X", move_count=7, start_time=0.0)
    score = calculate_score(state, "O", "hard", clock=fixed_clock(30.0))
    assert score.result == ONGOING
    assert score.result_multiplier == 0.0
    assert score.final_score == 0


def test_hard_level_multiplier():
    state = GameState(result=WIN, current_player="O", move_count=0, start_time=5.0)
    score = calculate_score(state, "O", "hard", clock=fixed_clock(5.0))
    assert score.level_multiplier == 1.5
    assert score.final_score == 1500


def test_get_score_returns_final_score():
    state = GameState(result=WIN, current_player="X", move_count=10, start_time=0.0)
    assert get_score(state, "X", "beginner", clock=fixed_clock(60.0)) == 556


def test_unknown_level_rejected():
    with pytest.raises(ValueError):
        calculate_score(GameState(), "X", "impossible", clock=fixed_clock(0.0))
