"""Board predicates for RollingXO: wins, draws and mark bookkeeping."""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Sequence, Tuple

from .clock import Clock, system_clock

Player = str  # "X" or "O"
Mark = str  # "X", "O" or EMPTY
Board = Tuple[Mark, ...]

EMPTY = " "
BOARD_SIZE = 9
CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)
EDGES: Tuple[int, ...] = (1, 3, 5, 7)

TIME_CAP_SECONDS = 180
MOVE_CAP = 60

# Rows, then columns, then diagonals. Callers depend on this order.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class WinCheck(NamedTuple):
    has_win: bool
    win_line: Optional[Tuple[int, int, int]] = None


def check_win(board: Sequence[Mark], player: Player) -> WinCheck:
    """Return the first line fully held by ``player``, if any."""
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] == player and board[b] == player and board[c] == player:
            return WinCheck(True, line)
    return WinCheck(False)


def check_draw(
    board: Sequence[Mark],
    move_count: int,
    start_time: float,
    time_cap_seconds: float = TIME_CAP_SECONDS,
    move_cap: int = MOVE_CAP,
    clock: Clock = system_clock,
) -> bool:
    """A game is drawn on a full board, at the move cap, or at the time cap."""
    if all(cell != EMPTY for cell in board):
        return True
    if move_count >= move_cap:
        return True
    return clock() - start_time >= time_cap_seconds


def count_player_marks(board: Sequence[Mark], player: Player) -> int:
    return sum(1 for cell in board if cell == player)


def get_player_mark_indices(board: Sequence[Mark], player: Player) -> List[int]:
    return [i for i, cell in enumerate(board) if cell == player]
