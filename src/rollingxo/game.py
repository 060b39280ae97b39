"""Game state and the rolling-rule move applier for RollingXO."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Optional, Tuple

from .clock import Clock, system_clock
from .rules import (
    BOARD_SIZE,
    EMPTY,
    Board,
    Player,
    check_draw,
    check_win,
    count_player_marks,
)

logger = logging.getLogger(__name__)

ONGOING = "ongoing"
WIN = "win"
DRAW = "draw"

# Each player keeps at most this many marks once the rolling rule kicks in.
MAX_MARKS = 3


def other(player: Player) -> Player:
    return "O" if player == "X" else "X"


@dataclass(frozen=True)
class GameState:
    board: Board = field(default_factory=lambda: (EMPTY,) * BOARD_SIZE)
    current_player: Player = "X"
    result: str = ONGOING
    move_count: int = 0
    start_time: float = 0.0
    # Set only when result == WIN
    win_line: Optional[Tuple[int, int, int]] = None
    # Every placement in order, including marks later rolled off the board
    move_history: Tuple[int, ...] = ()

    @property
    def is_over(self) -> bool:
        return self.result != ONGOING


@dataclass(frozen=True)
class MoveOutcome:
    success: bool
    new_state: GameState
    message: Optional[str] = None


def new_game(first_player: Player = "X", clock: Clock = system_clock) -> GameState:
    """Start a fresh game; ``start_time`` is fixed here and never changes."""
    return GameState(current_player=first_player, start_time=clock())


def apply_move(state: GameState, cell: int, clock: Clock = system_clock) -> MoveOutcome:
    """Place the current player's mark at ``cell`` under the rolling rule.

    Order matters:
      1. place the mark and record it in the history
      2. a completed line wins at once and nothing is removed
      3. otherwise a player who already had three marks loses the oldest one
      4. the draw caps are checked on the resulting board
      5. the turn passes only while the game is still going
    Rejected moves return the original state with a message.
    """
    if state.result != ONGOING:
        logger.debug("Rejected move at %d: game already finished", cell)
        return MoveOutcome(False, state, "Game is already finished")
    if not 0 <= cell < BOARD_SIZE:
        logger.debug("Rejected move at %d: outside the board", cell)
        return MoveOutcome(False, state, "Cell is outside the board")
    if state.board[cell] != EMPTY:
        logger.debug("Rejected move at %d: cell occupied", cell)
        return MoveOutcome(False, state, "Cell is already occupied")

    player = state.current_player
    board = list(state.board)
    board[cell] = player
    history = state.move_history + (cell,)
    move_count = state.move_count + 1

    win = check_win(board, player)
    if win.has_win:
        logger.debug("%s wins on line %s", player, win.win_line)
        return MoveOutcome(
            True,
            replace(
                state,
                board=tuple(board),
                result=WIN,
                move_count=move_count,
                win_line=win.win_line,
                move_history=history,
            ),
        )

    if count_player_marks(state.board, player) >= MAX_MARKS:
        oldest = _oldest_mark(state, player)
        if oldest is not None:
            board[oldest] = EMPTY
            logger.debug("Rolled %s off cell %d", player, oldest)

    result = ONGOING
    if check_draw(board, move_count, state.start_time, clock=clock):
        result = DRAW
        logger.debug("Game drawn after %d moves", move_count)

    return MoveOutcome(
        True,
        replace(
            state,
            board=tuple(board),
            current_player=other(player) if result == ONGOING else player,
            result=result,
            move_count=move_count,
            move_history=history,
        ),
    )


def _oldest_mark(state: GameState, player: Player) -> Optional[int]:
    # Matches against the board before the move, so the mark just placed
    # can never be picked.
    for cell in state.move_history:
        if state.board[cell] == player:
            return cell
    return None


def settle_draw(state: GameState, clock: Clock = system_clock) -> GameState:
    """Close an idle game as a draw once the time cap has run out."""
    if state.result != ONGOING:
        return state
    if not check_draw(state.board, state.move_count, state.start_time, clock=clock):
        return state
    logger.debug("Game drawn while idle after %d moves", state.move_count)
    return replace(state, result=DRAW)
