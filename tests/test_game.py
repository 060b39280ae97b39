"""Unit tests for RollingXO game state and the move applier."""

from conftest import fixed_clock, make_board
from rollingxo.game import (
    DRAW,
    ONGOING,
    WIN,
    GameState,
    apply_move,
    new_game,
    other,
    settle_draw,
)
from rollingxo.rules import EMPTY

CLOCK = fixed_clock(0.0)


def play(state, *cells):
    for cell in cells:
        outcome = apply_move(state, cell, clock=CLOCK)
        assert outcome.success, outcome.message
        state = outcome.new_state
    return state


def test_new_game_defaults():
    game = new_game(clock=fixed_clock(42.0))
    assert game.board == (EMPTY,) * 9
    assert game.current_player == "X"
    assert game.result == ONGOING
    assert game.move_count == 0
    assert game.move_history == ()
    assert game.win_line is None
    assert game.start_time == 42.0


def test_new_game_with_o_first():
    assert new_game("O", clock=CLOCK).current_player == "O"


def test_other_is_an_involution():
    assert other("X") == "O"
    assert other(other("X")) == "X"


def test_move_places_mark_and_switches_turn():
    game = new_game(clock=CLOCK)
    state = play(game, 0)
    assert state.board[0] == "X"
    assert state.current_player == "O"
    assert state.move_count == 1
    assert state.move_history == (0,)
    # Original value untouched
    assert game.board[0] == EMPTY


def test_occupied_cell_rejected():
    state = play(new_game(clock=CLOCK), 0)
    outcome = apply_move(state, 0, clock=CLOCK)
    assert not outcome.success
    assert outcome.message == "Cell is already occupied"
    assert outcome.new_state is state


def test_finished_game_rejects_moves():
    state = play(new_game(clock=CLOCK), 0, 3, 1, 4, 2)
    assert state.result == WIN
    outcome = apply_move(state, 5, clock=CLOCK)
    assert not outcome.success
    assert outcome.message == "Game is already finished"
    assert outcome.new_state is state


def test_out_of_range_cell_rejected():
    game = new_game(clock=CLOCK)
    for cell in (-1, 9):
        outcome = apply_move(game, cell, clock=CLOCK)
        assert not outcome.success
        assert outcome.message == "Cell is outside the board"
        assert outcome.new_state is game


def test_win_keeps_current_player():
    state = GameState(board=make_board("XX.|OO.|..."), current_player="X")
    outcome = apply_move(state, 2, clock=CLOCK)
    assert outcome.success
    assert outcome.new_state.result == WIN
    assert outcome.new_state.win_line == (0, 1, 2)
    assert outcome.new_state.current_player == "X"


def test_rolling_rule_removes_oldest_mark():
    state = play(new_game(clock=CLOCK), 0, 1, 2, 3, 5, 4, 7)
    assert state.board[0] == EMPTY
    assert state.board[2] == "X"
    assert state.board[5] == "X"
    assert state.board[7] == "X"
    assert state.current_player == "O"
    assert state.result == ONGOING
    # History keeps the removed placement
    assert state.move_history == (0, 1, 2, 3, 5, 4, 7)
    assert state.move_count == 7


def test_rolling_rule_applies_to_both_players():
    state = play(new_game(clock=CLOCK), 0, 1, 2, 3, 5, 4, 7, 8)
    # O had 1, 3, 4; placing 8 rolls off 1
    assert state.board[1] == EMPTY
    assert [state.board[c] for c in (3, 4, 8)] == ["O", "O", "O"]


def test_no_removal_on_winning_fourth_mark():
    state = play(new_game(clock=CLOCK), 0, 3, 8, 1, 2, 5, 4)
    assert state.result == WIN
    assert state.win_line == (0, 4, 8)
    for cell in (0, 2, 4, 8):
        assert state.board[cell] == "X"
    assert state.current_player == "X"


def test_vacated_cell_can_be_replayed():
    state = play(new_game(clock=CLOCK), 0, 1, 2, 3, 5, 4, 7)
    assert state.board[0] == EMPTY
    state = play(state, 0)
    assert state.board[0] == "O"


def test_oldest_mark_uses_board_before_move():
    # X's first placement (cell 0) was already rolled off and O now sits there;
    # the next X removal must skip it and take cell 2.
    state = play(new_game(clock=CLOCK), 0, 1, 2, 3, 5, 4, 7, 0)
    assert state.board[0] == "O"
    state = play(state, 6)
    assert state.result == ONGOING
    assert state.board[2] == EMPTY
    assert state.board[0] == "O"
    assert [state.board[c] for c in (5, 6, 7)] == ["X", "X", "X"]


def test_draw_by_time_cap():
    board = make_board("X..|.O.|...")
    late = GameState(board=board, current_player="X", move_count=2, start_time=0.0)
    outcome = apply_move(late, 8, clock=fixed_clock(181.0))
    assert outcome.new_state.result == DRAW
    assert outcome.new_state.current_player == "X"

    outcome = apply_move(late, 8, clock=fixed_clock(179.0))
    assert outcome.new_state.result == ONGOING
    assert outcome.new_state.current_player == "O"


def test_draw_by_move_cap():
    board = make_board("X..|.O.|...")
    state = GameState(board=board, current_player="X", move_count=59)
    outcome = apply_move(state, 8, clock=CLOCK)
    assert outcome.new_state.result == DRAW
    assert outcome.new_state.move_count == 60


def test_settle_draw_after_time_cap():
    state = new_game(clock=fixed_clock(0.0))
    assert settle_draw(state, clock=fixed_clock(100.0)) is state
    settled = settle_draw(state, clock=fixed_clock(180.0))
    assert settled.result == DRAW
    assert settled.board == state.board


def test_settle_draw_leaves_finished_games():
    state = play(new_game(clock=CLOCK), 0, 3, 1, 4, 2)
    assert settle_draw(state, clock=fixed_clock(1000.0)) is state
