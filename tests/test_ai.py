"""Tests for the tic-tac-toe minimax AI."""

import random

import pytest

from tictactoe.ai import MinimaxAI, SearchStats, best_move
from tictactoe.game import PLAYER_ONE, PLAYER_TWO, Board, Move, Player, Status


def board_from(rows: str, current_player: Player = PLAYER_ONE) -> Board:
    return Board(cells=list(rows), current_player=current_player)


def test_ai_takes_immediate_win():
    board = board_from("XX." ".O." "...")

    move = best_move(board, PLAYER_ONE)

    assert move == Move(2)
    board.apply(move)
    assert board.score(PLAYER_ONE) == 4


def test_ai_blocks_the_only_losing_line():
    board = board_from("OO." ".X." "...")
    assert board.score(PLAYER_ONE) == 3

    move = best_move(board, PLAYER_ONE)

    assert move.position == 2


def test_ai_blocks_even_when_block_is_not_first_empty_cell():
    board = board_from("..." ".X." "OO.")

    move = best_move(board, PLAYER_ONE)

    assert move.position == 8
    assert move.score == 1


def test_reply_to_center_opening_is_a_corner():
    board = Board()
    board.apply(Move(4))

    move = best_move(board, PLAYER_TWO)

    assert move.position in {0, 2, 6, 8}


def test_ties_go_to_lowest_position():
    # X wins by playing either 3 or 7.
    board = board_from("OXO" ".XX" "O.O")

    move = best_move(board, PLAYER_ONE)

    assert move.position == 3
    assert move.score == 4


def test_search_is_deterministic():
    board = board_from("X.." ".O." "...", current_player=PLAYER_ONE)
    first = best_move(board, PLAYER_ONE, 4)
    second = best_move(board, PLAYER_ONE, 4)
    assert first == second
    assert first.score == second.score


def test_search_leaves_board_untouched():
    board = board_from("X.." ".O." "..X", current_player=PLAYER_ONE)
    snapshot = board.clone()

    # Searching for the side that is not to move must not leak the turn.
    best_move(board, PLAYER_TWO)

    assert board == snapshot
    assert board.active_player == PLAYER_ONE


def test_full_board_has_no_move():
    board = board_from("XOX" "XOO" "OXX")
    assert board.evaluate_terminal_state().status is Status.DRAW
    assert best_move(board, PLAYER_ONE) is None


def test_depth_below_one_searches_one_ply():
    board = board_from("XX." ".O." "...")
    assert best_move(board, PLAYER_ONE, 0) == best_move(board, PLAYER_ONE, 1)
    assert best_move(board, PLAYER_ONE, 0).position == 2


def _random_position(rng: random.Random, plies: int) -> Board:
    while True:
        board = Board()
        for _ in range(plies):
            board.apply(rng.choice(board.legal_moves()))
        if not board.evaluate_terminal_state().is_over:
            return board


@pytest.mark.parametrize("seed", range(8))
def test_pruning_selects_the_same_move(seed):
    rng = random.Random(seed)
    board = _random_position(rng, plies=3 + seed % 3)
    player = board.active_player

    plain_stats = SearchStats()
    pruned_stats = SearchStats()
    plain = best_move(board, player, prune=False, stats=plain_stats)
    pruned = best_move(board, player, prune=True, stats=pruned_stats)

    assert plain == pruned
    assert plain.score == pruned.score
    assert plain_stats.cutoffs == 0
    assert pruned_stats.nodes <= plain_stats.nodes


def test_illegal_move_inside_search_is_an_invariant_violation():
    board = board_from("X........", current_player=PLAYER_TWO)
    snapshot = board.clone()
    board.legal_moves = lambda: [Move(0)]

    with pytest.raises(AssertionError):
        best_move(board, PLAYER_TWO)

    assert board.cells == snapshot.cells
    assert board.active_player == PLAYER_TWO


def test_minimax_ai_records_search_stats():
    ai = MinimaxAI(player=PLAYER_TWO, depth=3)
    board = Board()
    board.apply(Move(0))

    move = ai.choose(board)

    assert move in board.legal_moves()
    assert ai.last_stats.nodes > 0
    assert ai.last_stats.elapsed >= 0.0


def test_perfect_play_is_a_draw():
    board = Board()
    ais = {PLAYER_ONE: MinimaxAI(player=PLAYER_ONE), PLAYER_TWO: MinimaxAI(player=PLAYER_TWO)}

    while not board.evaluate_terminal_state().is_over:
        move = ais[board.active_player].choose(board)
        board.apply(move)

    assert board.evaluate_terminal_state().status is Status.DRAW
