"""Tests for the setup / playing / game-over turn flow."""

from typing import List, Tuple

import pytest

from tictactoe.ai import MinimaxAI
from tictactoe.flow import FlowError, GameFlow, Phase
from tictactoe.game import PLAYER_ONE, PLAYER_TWO, Board, CellOccupied, Status


class RecordingPresenter:
    def __init__(self) -> None:
        self.events: List[Tuple] = []

    def board_cleared(self) -> None:
        self.events.append(("cleared",))

    def mark_placed(self, position, player) -> None:
        self.events.append(("mark", position, player.mark.value))

    def game_over(self, outcome, message) -> None:
        self.events.append(("over", outcome.status, message))


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def flow(presenter):
    flow = GameFlow(ai=MinimaxAI(player=PLAYER_TWO), presenter=presenter)
    flow.start()
    return flow


def test_start_enters_playing_with_empty_board(flow, presenter):
    assert flow.phase is Phase.PLAYING
    assert flow.board == Board()
    assert flow.board.active_player == PLAYER_ONE
    assert presenter.events == [("cleared",)]
    assert flow.scores() == {"player1": 0, "player2": 0, "draws": 0}


def test_actions_before_start_are_rejected(presenter):
    flow = GameFlow(presenter=presenter)
    assert flow.phase is Phase.SETUP
    with pytest.raises(FlowError):
        flow.play_human(0)
    with pytest.raises(FlowError):
        flow.reset()


def test_human_then_machine_turn(flow, presenter):
    flow.play_human(4)
    assert flow.machine_to_move()
    with pytest.raises(FlowError):
        flow.play_human(0)

    move = flow.play_machine()

    assert move.position in {0, 2, 6, 8}
    assert not flow.machine_to_move()
    assert flow.move_log == [
        {"player": "X", "position": 4},
        {"player": "O", "position": move.position},
    ]
    assert presenter.events[1:] == [("mark", 4, "X"), ("mark", move.position, "O")]


def test_machine_cannot_move_out_of_turn(flow):
    with pytest.raises(FlowError):
        flow.play_machine()


def test_occupied_cell_is_rejected_without_side_effects(flow):
    flow.play_human(4)
    flow.play_machine()
    snapshot = flow.board.clone()

    with pytest.raises(CellOccupied):
        flow.play_human(4)

    assert flow.board == snapshot
    assert flow.phase is Phase.PLAYING
    assert len(flow.move_log) == 2


def test_human_win_is_tallied(flow, presenter):
    flow.board = Board(cells=list("XX." "OO." "..."))

    outcome = flow.play_human(2)

    assert outcome.status is Status.WIN
    assert outcome.winner == PLAYER_ONE
    assert flow.phase is Phase.GAME_OVER
    assert flow.message == "Player 1 wins!"
    assert flow.scores() == {"player1": 1, "player2": 0, "draws": 0}
    assert presenter.events[-1] == (
        "over",
        Status.WIN,
        "Player 1 wins!",
    )
    with pytest.raises(FlowError, match="already finished"):
        flow.play_human(5)


def test_draw_is_tallied(flow):
    flow.board = Board(cells=list("XOX" "XOO" "OX."))

    outcome = flow.play_human(8)

    assert outcome.status is Status.DRAW
    assert flow.message == "It's a draw"
    assert flow.scores()["draws"] == 1
    assert not flow.machine_to_move()


def test_machine_beats_naive_opponent(flow):
    while flow.phase is Phase.PLAYING:
        flow.play_human(flow.board.legal_moves()[0].position)
        if flow.machine_to_move():
            flow.play_machine()

    assert flow.phase is Phase.GAME_OVER
    assert flow.scores()["player1"] == 0
    assert flow.message in ("Player 2 wins!", "It's a draw")


def test_reset_keeps_scores_and_starts_new_round(flow, presenter):
    with pytest.raises(FlowError):
        flow.reset()

    flow.board = Board(cells=list("XX." "OO." "..."))
    flow.play_human(2)
    flow.reset()

    assert flow.phase is Phase.PLAYING
    assert flow.board == Board()
    assert flow.move_log == []
    assert flow.message is None
    assert flow.outcome.status is Status.ONGOING
    assert flow.scores()["player1"] == 1
    assert presenter.events[-1] == ("cleared",)


def test_human_and_machine_must_differ():
    with pytest.raises(ValueError):
        GameFlow(ai=MinimaxAI(player=PLAYER_ONE), human=PLAYER_ONE)
