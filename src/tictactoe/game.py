"""Core rules, move generation and positional scoring for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

BOARD_SIZE = 9

# Rows, then columns, then diagonals.
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


# ---------- Errors ----------


class GameError(ValueError):
    """Base class for board operations that are rejected before mutation."""


class InvalidBoardSize(GameError):
    """Raised when a board is built from a cell sequence of the wrong length."""


class PositionOutOfRange(GameError):
    """Raised when a move targets an index outside 0..8."""


class CellOccupied(GameError):
    """Raised when a move targets a cell that already holds a mark."""


# ---------- Values ----------


class Cell(Enum):
    EMPTY = " "
    X = "X"
    O = "O"


class Status(Enum):
    WIN = "win"
    DRAW = "draw"
    ONGOING = "ongoing"


@dataclass(frozen=True)
class Player:
    player_id: int
    mark: Cell

    @property
    def label(self) -> str:
        """Human numbering used in result messages ("Player 1")."""
        return f"Player {self.player_id + 1}"


PLAYER_ONE = Player(player_id=0, mark=Cell.X)
PLAYER_TWO = Player(player_id=1, mark=Cell.O)
PLAYERS: Tuple[Player, Player] = (PLAYER_ONE, PLAYER_TWO)


@dataclass(frozen=True)
class Move:
    position: int
    # Minimax value attached by the search; not part of the move's identity.
    score: Optional[float] = field(default=None, compare=False)


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Player] = None
    line: Optional[Tuple[int, int, int]] = None

    @property
    def is_over(self) -> bool:
        return self.status is not Status.ONGOING


ONGOING = Outcome(Status.ONGOING)
DRAW = Outcome(Status.DRAW)


CellLike = Union[Cell, str, None]


def _to_cell(value: CellLike) -> Cell:
    if isinstance(value, Cell):
        return value
    if value in (None, "", " ", "."):
        return Cell.EMPTY
    return Cell(value)


# ---------- Board ----------


@dataclass
class Board:
    """Nine cells plus the player to move.

    ``apply``/``undo`` mutate in place so a search can walk the game tree
    without copying; ``clone`` is there for callers that want a snapshot.
    """

    cells: List[Cell] = field(default_factory=lambda: [Cell.EMPTY] * BOARD_SIZE)
    current_player: Player = PLAYER_ONE
    players: Tuple[Player, Player] = field(default=PLAYERS, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cells is None:
            self.cells = [Cell.EMPTY] * BOARD_SIZE
        cells = [_to_cell(c) for c in self.cells]
        if len(cells) != BOARD_SIZE:
            raise InvalidBoardSize(
                f"Board needs exactly {BOARD_SIZE} cells, got {len(cells)}"
            )
        self.cells = cells
        self._check_player(self.current_player)

    # ---- turn control ----

    @property
    def active_player(self) -> Player:
        return self.current_player

    def set_active_player(self, player: Player) -> None:
        self._check_player(player)
        self.current_player = player

    def toggle_player(self) -> None:
        self.current_player = self.opponent_of(self.current_player)

    def opponent_of(self, player: Player) -> Player:
        self._check_player(player)
        return self.players[1] if player == self.players[0] else self.players[0]

    def player_for(self, cell: Cell) -> Optional[Player]:
        """Player owning ``cell``'s mark, ``None`` for an empty cell."""
        for player in self.players:
            if player.mark is cell:
                return player
        return None

    # ---- cells & moves ----

    def cell_at(self, position: int) -> Cell:
        self._check_position(position)
        return self.cells[position]

    def occupied_count(self) -> int:
        return sum(1 for c in self.cells if c is not Cell.EMPTY)

    def is_full(self) -> bool:
        return all(c is not Cell.EMPTY for c in self.cells)

    def legal_moves(self) -> List[Move]:
        return [Move(i) for i, c in enumerate(self.cells) if c is Cell.EMPTY]

    def apply(self, move: Move) -> None:
        """Mark ``move.position`` for the player to move and pass the turn."""
        self._check_position(move.position)
        if self.cells[move.position] is not Cell.EMPTY:
            raise CellOccupied(f"Cell {move.position} is already occupied")
        self.cells[move.position] = self.current_player.mark
        self.toggle_player()

    def undo(self, move: Move) -> None:
        """Take back ``move``; moves must be undone last-applied-first."""
        self._check_position(move.position)
        self.cells[move.position] = Cell.EMPTY
        self.toggle_player()

    def clone(self) -> "Board":
        return Board(cells=self.cells.copy(), current_player=self.current_player)

    # ---- evaluation ----

    def evaluate_terminal_state(self) -> Outcome:
        for line in WINNING_LINES:
            a, b, c = line
            v = self.cells[a]
            if v is not Cell.EMPTY and v is self.cells[b] is self.cells[c]:
                return Outcome(Status.WIN, winner=self.player_for(v), line=line)
        if self.is_full():
            return DRAW
        return ONGOING

    def is_one_move_from_winning(self, player: Player) -> bool:
        for a, b, c in WINNING_LINES:
            trio = [self.cells[a], self.cells[b], self.cells[c]]
            if trio.count(player.mark) == 2 and trio.count(Cell.EMPTY) == 1:
                return True
        return False

    def score(self, player: Player) -> int:
        """Static 0..4 evaluation of the current position for ``player``.

        4 if ``player`` has won, 0 if the opponent has won, 3 if the opponent
        threatens to complete a line, 2 if ``player`` does, 1 otherwise. The
        first matching rule decides, so a pending block outranks an own
        threat.
        """
        opponent = self.opponent_of(player)
        outcome = self.evaluate_terminal_state()
        if outcome.status is Status.WIN:
            return 4 if outcome.winner == player else 0
        if self.is_one_move_from_winning(opponent):
            return 3
        if self.is_one_move_from_winning(player):
            return 2
        return 1

    # ---- helpers ----

    def _check_position(self, position: int) -> None:
        if not isinstance(position, int) or not 0 <= position < BOARD_SIZE:
            raise PositionOutOfRange(
                f"Position must be between 0 and {BOARD_SIZE - 1}, got {position!r}"
            )

    def _check_player(self, player: Player) -> None:
        if player not in self.players:
            raise ValueError(f"Unknown player {player!r}")

    def __str__(self) -> str:
        rows: Iterable[List[Cell]] = (self.cells[i : i + 3] for i in (0, 3, 6))
        return "\n".join(
            "".join(c.value if c is not Cell.EMPTY else "." for c in row)
            for row in rows
        )
