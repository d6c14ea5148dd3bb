"""Turn flow for a human-versus-machine game: setup, playing, game over."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Union
import logging

from .ai import MinimaxAI
from .game import (
    ONGOING,
    PLAYER_ONE,
    PLAYER_TWO,
    Board,
    Move,
    Outcome,
    Player,
    Status,
)

logger = logging.getLogger(__name__)


class FlowError(ValueError):
    """Raised when an action does not fit the current phase or turn."""


class Phase(Enum):
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


_NEXT_PHASES = {
    Phase.SETUP: (Phase.PLAYING,),
    Phase.PLAYING: (Phase.GAME_OVER,),
    Phase.GAME_OVER: (Phase.SETUP,),
}


class Presenter(Protocol):
    """Rendering hooks; implementations own every display element."""

    def board_cleared(self) -> None: ...

    def mark_placed(self, position: int, player: Player) -> None: ...

    def game_over(self, outcome: Outcome, message: str) -> None: ...


class LogPresenter:
    """Presenter that only writes the events to the log."""

    def board_cleared(self) -> None:
        logger.debug("Board cleared")

    def mark_placed(self, position: int, player: Player) -> None:
        logger.debug("%s marked %s at %d", player.label, player.mark.value, position)

    def game_over(self, outcome: Outcome, message: str) -> None:
        logger.info("Game over: %s", message)


def _default_ai() -> MinimaxAI:
    return MinimaxAI(player=PLAYER_TWO)


@dataclass
class GameFlow:
    ai: MinimaxAI = field(default_factory=_default_ai)
    human: Player = PLAYER_ONE
    presenter: Presenter = field(default_factory=LogPresenter, repr=False)
    board: Board = field(default_factory=Board)
    phase: Phase = Phase.SETUP
    outcome: Outcome = ONGOING
    message: Optional[str] = None
    wins: Dict[int, int] = field(
        default_factory=lambda: {PLAYER_ONE.player_id: 0, PLAYER_TWO.player_id: 0}
    )
    draws: int = 0
    move_log: List[Dict[str, Union[int, str]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.ai.player == self.human:
            raise ValueError("Human and machine must play different sides")

    # ---- phase control ----

    def start(self) -> None:
        """Set up a fresh round and begin play with player one to move."""
        if self.phase is not Phase.SETUP:
            raise FlowError(f"Cannot start a round while {self.phase.value}")
        self.board = Board()
        self.outcome = ONGOING
        self.message = None
        self.move_log = []
        self.presenter.board_cleared()
        self._enter(Phase.PLAYING)
        logger.info("New round started (depth=%d)", self.ai.depth)

    def reset(self) -> None:
        """Leave a finished round and start the next one; tallies are kept."""
        self._enter(Phase.SETUP)
        self.start()

    # ---- turns ----

    def play_human(self, position: int) -> Outcome:
        self._require_playing()
        if self.board.active_player != self.human:
            raise FlowError("It is not the human player's turn")
        self._place(Move(position))
        return self.outcome

    def machine_to_move(self) -> bool:
        return (
            self.phase is Phase.PLAYING
            and self.board.active_player == self.ai.player
        )

    def play_machine(self) -> Optional[Move]:
        """Search and play the machine's move; ``None`` if nothing is left."""
        if not self.machine_to_move():
            raise FlowError("It is not the machine player's turn")
        move = self.ai.choose(self.board)
        if move is None:
            # Full board: the outcome must already be terminal.
            self._settle()
            return None
        self._place(move)
        return move

    # ---- scoreboard ----

    def scores(self) -> Dict[str, int]:
        return {
            "player1": self.wins[PLAYER_ONE.player_id],
            "player2": self.wins[PLAYER_TWO.player_id],
            "draws": self.draws,
        }

    # ---- helpers ----

    def _place(self, move: Move) -> None:
        player = self.board.active_player
        self.board.apply(move)
        self.move_log.append({"player": player.mark.value, "position": move.position})
        self.presenter.mark_placed(move.position, player)
        self._settle()

    def _settle(self) -> None:
        outcome = self.board.evaluate_terminal_state()
        self.outcome = outcome
        if outcome.status is Status.WIN and outcome.winner is not None:
            self.wins[outcome.winner.player_id] += 1
            self.message = f"{outcome.winner.label} wins!"
        elif outcome.status is Status.DRAW:
            self.draws += 1
            self.message = "It's a draw"
        else:
            return
        self._enter(Phase.GAME_OVER)
        self.presenter.game_over(outcome, self.message)

    def _require_playing(self) -> None:
        if self.phase is Phase.GAME_OVER:
            raise FlowError("Game already finished")
        if self.phase is not Phase.PLAYING:
            raise FlowError("Game has not started")

    def _enter(self, phase: Phase) -> None:
        if phase not in _NEXT_PHASES[self.phase]:
            raise FlowError(
                f"Cannot move from {self.phase.value} to {phase.value}"
            )
        self.phase = phase
