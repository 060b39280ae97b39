"""Computer opponents for RollingXO: beginner, moderate and minimax (hard)."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import random
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

from .clock import Clock, system_clock
from .game import DRAW, ONGOING, WIN, GameState, apply_move, other
from .rules import (
    CENTER,
    CORNERS,
    EDGES,
    EMPTY,
    MOVE_CAP,
    WINNING_LINES,
    Mark,
    Player,
    check_win,
)
from .scoring import DIFFICULTIES

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DEPTH = 6

# Terminal scores for the search; far above anything the heuristic produces.
WIN_SCORE = 10_000.0

# TT entry flags
EXACT, LOWER, UPPER = 0, 1, 2


class AIError(Exception):
    """The AI was asked for a move it cannot give."""


class NoLegalMovesError(AIError, RuntimeError):
    pass


class UnknownDifficultyError(AIError, ValueError):
    pass


@dataclass(frozen=True)
class AIMove:
    cell: int
    score: float
    reason: str


# ---------- Shared primitives ----------


def get_legal_moves(state: GameState) -> List[int]:
    return [i for i, cell in enumerate(state.board) if cell == EMPTY]


def find_immediate_win(
    board: Sequence[Mark], player: Player, exclude_cell: Optional[int] = None
) -> Optional[int]:
    """First empty cell (ascending) where ``player`` completes a line."""
    for i, cell in enumerate(board):
        if i == exclude_cell or cell != EMPTY:
            continue
        trial = list(board)
        trial[i] = player
        if check_win(trial, player).has_win:
            return i
    return None


def find_immediate_block(
    board: Sequence[Mark], opponent: Player, exclude_cell: Optional[int] = None
) -> Optional[int]:
    """The cell the opponent would win on next, i.e. the one to block."""
    return find_immediate_win(board, opponent, exclude_cell)


def calculate_heuristic(board: Sequence[Mark], player: Player) -> float:
    """Static positional score of ``board`` for ``player`` (higher is better)."""
    opponent = other(player)
    score = 0.0

    for line in WINNING_LINES:
        trio = [board[c] for c in line]
        mine = trio.count(player)
        theirs = trio.count(opponent)
        empty = trio.count(EMPTY)

        if theirs == 0 and empty:
            if mine == 2:
                score += 500
            elif mine == 1:
                score += 50
            else:
                score += 5
        if mine == 0 and empty:
            if theirs == 2:
                score -= 500
            elif theirs == 1:
                score -= 50

    if board[CENTER] == player:
        score += 5
    elif board[CENTER] == opponent:
        score -= 5
    for corner in CORNERS:
        if board[corner] == player:
            score += 3
        elif board[corner] == opponent:
            score -= 3
    return score


def evaluate_move(
    state: GameState, cell: int, player: Player, clock: Clock = system_clock
) -> float:
    """One-ply lookahead: win, safe heuristic position, or a hanging threat."""
    outcome = apply_move(state, cell, clock=clock)
    if not outcome.success:
        return -math.inf

    after = outcome.new_state
    if after.result == WIN and after.current_player == player:
        return 1000.0
    if after.result == ONGOING:
        if find_immediate_win(after.board, other(player)) is None:
            return calculate_heuristic(after.board, player)
    return -100.0


# ---------- Tiers ----------


def get_beginner_move(
    state: GameState, player: Player, rng: Optional[random.Random] = None
) -> AIMove:
    """Blocks half of the time, otherwise plays a random preferred cell."""
    chooser = rng if rng is not None else random
    legal = get_legal_moves(state)
    if not legal:
        raise NoLegalMovesError("No legal moves available")

    if chooser.random() < 0.5:
        block = find_immediate_block(state.board, other(player))
        if block is not None:
            return AIMove(block, 50.0, "Blocked opponent win")

    preferred: List[int] = []
    if CENTER in legal:
        preferred.append(CENTER)
    preferred.extend(c for c in CORNERS if c in legal)
    preferred.extend(c for c in EDGES if c in legal)
    if preferred:
        return AIMove(chooser.choice(preferred), 10.0, "Random move with preference")

    return AIMove(chooser.choice(legal), 1.0, "Random move")


def get_moderate_move(
    state: GameState, player: Player, clock: Clock = system_clock
) -> AIMove:
    """Win, else block, else the best one-ply evaluation (lowest cell on ties)."""
    legal = get_legal_moves(state)
    if not legal:
        raise NoLegalMovesError("No legal moves available")

    win = find_immediate_win(state.board, player)
    if win is not None:
        return AIMove(win, 1000.0, "Immediate win")

    block = find_immediate_block(state.board, other(player))
    if block is not None:
        return AIMove(block, 500.0, "Blocked opponent win")

    best_cell, best_score = legal[0], -math.inf
    for cell in legal:
        score = evaluate_move(state, cell, player, clock=clock)
        if score > best_score:
            best_cell, best_score = cell, score
    return AIMove(best_cell, best_score, "Heuristic evaluation")


@dataclass
class TTEntry:
    depth: int
    score: float
    flag: int
    best_move: Optional[int]


@dataclass
class MinimaxAI:
    """Alpha-beta minimax over the real move applier.

    Positions repeat under the rolling rule, so the search is bounded by
    ``depth`` plies and scores the horizon with ``calculate_heuristic``.
    Wins are scored higher the sooner they come, losses the later.
    """

    player: Player
    depth: int = DEFAULT_SEARCH_DEPTH
    clock: Clock = field(default=system_clock, repr=False)
    _tt: Dict[Hashable, TTEntry] = field(default_factory=dict, repr=False)
    _frozen_clock: Clock = field(default=system_clock, init=False, repr=False)
    nodes: int = field(default=0, init=False, repr=False)

    # ---- public API ----

    def choose(self, state: GameState) -> AIMove:
        if state.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        if state.result != ONGOING or not get_legal_moves(state):
            raise NoLegalMovesError("No legal moves available")

        # Freeze time so the time cap behaves the same across the whole tree.
        now = self.clock()
        self._frozen_clock = lambda: now
        self._tt.clear()
        self.nodes = 0

        # Two plies is the least that sees an opponent's winning reply.
        max_depth = max(2, self.depth)
        score, best_move = -math.inf, None
        for d in range(1, max_depth + 1):
            score, move = self._minimax(state, d, -math.inf, math.inf)
            if move is not None:
                best_move = move

        if best_move is None:
            raise NoLegalMovesError("No valid moves available")
        logger.debug(
            "Minimax picked %d (score %.1f, depth %d, %d nodes)",
            best_move,
            score,
            max_depth,
            self.nodes,
        )
        return AIMove(best_move, score, f"Minimax evaluation (depth {max_depth})")

    # ---- core search ----

    def _minimax(
        self, state: GameState, depth: int, alpha: float, beta: float
    ) -> Tuple[float, Optional[int]]:
        self.nodes += 1

        # Terminal/leaf
        if state.result == WIN:
            # The winner keeps the move after a winning placement.
            value = WIN_SCORE + depth
            return (value if state.current_player == self.player else -value), None
        if state.result == DRAW:
            return 0.0, None
        if depth == 0:
            return calculate_heuristic(state.board, self.player), None

        key = self._hash(state, depth)
        alpha_orig, beta_orig = alpha, beta

        # TT probe; scores depend on remaining depth so only exact depth matches
        tt_hit = self._tt.get(key)
        if tt_hit and tt_hit.depth == depth:
            if tt_hit.flag == EXACT:
                return tt_hit.score, tt_hit.best_move
            if tt_hit.flag == LOWER:
                alpha = max(alpha, tt_hit.score)
            elif tt_hit.flag == UPPER:
                beta = min(beta, tt_hit.score)
            if alpha >= beta:
                return tt_hit.score, tt_hit.best_move

        moves = get_legal_moves(state)
        moves.sort(key=lambda m: self._move_heuristic(state, m), reverse=True)
        # Principal variation from a shallower iteration goes first
        if tt_hit and tt_hit.best_move in moves:
            moves.remove(tt_hit.best_move)
            moves.insert(0, tt_hit.best_move)

        maximizing = state.current_player == self.player
        best_move: Optional[int] = None
        value = -math.inf if maximizing else math.inf

        for move in moves:
            child = apply_move(state, move, clock=self._frozen_clock).new_state
            score, _ = self._minimax(child, depth - 1, alpha, beta)
            if maximizing:
                if score > value:
                    value, best_move = score, move
                alpha = max(alpha, value)
            else:
                if score < value:
                    value, best_move = score, move
                beta = min(beta, value)
            if alpha >= beta:
                break

        if value <= alpha_orig:
            flag = UPPER
        elif value >= beta_orig:
            flag = LOWER
        else:
            flag = EXACT
        self._tt[key] = TTEntry(depth=depth, score=value, flag=flag, best_move=best_move)
        return value, best_move

    # ---- heuristics ----

    def _hash(self, state: GameState, depth: int) -> Hashable:
        # Removal order follows the first appearance of each cell in the
        # history, so that ordering is part of the position.
        first_seen = tuple(dict.fromkeys(state.move_history))
        # Only distinguish move counts when the move cap is within reach.
        moves_left = min(MOVE_CAP - state.move_count, depth + 1)
        return state.board, state.current_player, first_seen, moves_left

    def _move_heuristic(self, state: GameState, move: int) -> float:
        """Ordering score: wins, then blocks, then center > corner > edge."""
        mover = state.current_player
        trial = list(state.board)
        trial[move] = mover
        if check_win(trial, mover).has_win:
            return 1_000.0
        trial[move] = other(mover)
        if check_win(trial, other(mover)).has_win:
            return 900.0
        return 0.4 if move == CENTER else (0.2 if move in CORNERS else 0.1)


def get_hard_move(
    state: GameState,
    player: Player,
    depth: int = DEFAULT_SEARCH_DEPTH,
    clock: Clock = system_clock,
) -> AIMove:
    if not get_legal_moves(state):
        raise NoLegalMovesError("No legal moves available")
    return MinimaxAI(player=player, depth=depth, clock=clock).choose(state)


def get_ai_move(
    state: GameState,
    player: Player,
    difficulty: str,
    rng: Optional[random.Random] = None,
    clock: Clock = system_clock,
    depth: int = DEFAULT_SEARCH_DEPTH,
) -> AIMove:
    """Pick ``player``'s next cell at the requested difficulty tier."""
    if difficulty not in DIFFICULTIES:
        raise UnknownDifficultyError(f"Unknown difficulty level: {difficulty}")

    if difficulty == "beginner":
        move = get_beginner_move(state, player, rng=rng)
    elif difficulty == "moderate":
        move = get_moderate_move(state, player, clock=clock)
    else:
        move = get_hard_move(state, player, depth=depth, clock=clock)

    logger.debug("%s AI (%s) -> %d: %s", player, difficulty, move.cell, move.reason)
    return move
