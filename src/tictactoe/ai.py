"""Depth-limited minimax with alpha-beta pruning for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import logging
import math
import time

from .game import BOARD_SIZE, Board, GameError, Move, Player

logger = logging.getLogger(__name__)

# Enough plies to reach every terminal position from the empty board.
MAX_DEPTH = BOARD_SIZE


@dataclass
class SearchStats:
    nodes: int = 0
    cutoffs: int = 0
    elapsed: float = 0.0


def best_move(
    board: Board,
    for_player: Player,
    max_depth: int = MAX_DEPTH,
    *,
    prune: bool = True,
    stats: Optional[SearchStats] = None,
) -> Optional[Move]:
    """Pick the move for ``for_player`` with the best minimax value.

    Leaves and depth cutoffs are scored with ``board.score(for_player)``.
    Ties go to the lowest position. The board is walked with apply/undo and
    is left exactly as it was passed in, player to move included. Returns
    ``None`` only when no cell is empty.
    """
    moves = board.legal_moves()
    if not moves:
        return None

    stats = stats if stats is not None else SearchStats()
    depth = max(1, max_depth)
    started = time.perf_counter()

    saved_player = board.active_player
    board.set_active_player(for_player)
    try:
        alpha, beta = -math.inf, math.inf
        best: Optional[Move] = None
        best_score = -math.inf
        for move in moves:
            _apply(board, move)
            try:
                score = _minimax(board, for_player, depth - 1, alpha, beta, prune, stats)
            finally:
                board.undo(move)
            # Strict comparison keeps the first (lowest) of equally scored moves.
            if score > best_score:
                best, best_score = move, score
            if prune:
                alpha = max(alpha, best_score)
    finally:
        board.set_active_player(saved_player)
        stats.elapsed = time.perf_counter() - started

    assert best is not None
    return Move(best.position, score=best_score)


def _minimax(
    board: Board,
    for_player: Player,
    depth: int,
    alpha: float,
    beta: float,
    prune: bool,
    stats: SearchStats,
) -> float:
    stats.nodes += 1
    if depth <= 0 or board.evaluate_terminal_state().is_over:
        return board.score(for_player)

    maximizing = board.active_player == for_player
    value = -math.inf if maximizing else math.inf
    for move in board.legal_moves():
        _apply(board, move)
        try:
            child = _minimax(board, for_player, depth - 1, alpha, beta, prune, stats)
        finally:
            board.undo(move)
        if maximizing:
            value = max(value, child)
            alpha = max(alpha, value)
        else:
            value = min(value, child)
            beta = min(beta, value)
        if prune and alpha >= beta:
            stats.cutoffs += 1
            break
    return value


def _apply(board: Board, move: Move) -> None:
    # Moves come from legal_moves() on the same board, so a rejection here is
    # a bug in the search, not a user error.
    try:
        board.apply(move)
    except GameError as exc:
        raise AssertionError(f"Search generated an illegal move: {move}") from exc


@dataclass
class MinimaxAI:
    """Machine player bound to one side of the board.

      - MinimaxAI(player=PLAYER_TWO, depth=9)
      - choose(board) -> Move or None
    """

    player: Player
    depth: int = MAX_DEPTH
    prune: bool = True
    last_stats: SearchStats = field(default_factory=SearchStats, repr=False)

    def choose(self, board: Board) -> Optional[Move]:
        stats = SearchStats()
        move = best_move(
            board, self.player, self.depth, prune=self.prune, stats=stats
        )
        self.last_stats = stats
        logger.debug(
            "%s picked %s (value=%s) depth=%d nodes=%d cutoffs=%d in %.3fs",
            self.player.label,
            move.position if move else None,
            move.score if move else None,
            self.depth,
            stats.nodes,
            stats.cutoffs,
            stats.elapsed,
        )
        return move
