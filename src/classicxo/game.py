"""Board rules and the turn state machine for ClassicXO (3×3 tic-tac-toe)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

Player = str  # "X" or "O"

HUMAN: Player = "X"
COMPUTER: Player = "O"
EMPTY = " "
MARKS: Tuple[Player, Player] = (HUMAN, COMPUTER)

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

# Turn states
HUMAN_TURN = "human_turn"
COMPUTER_TURN = "computer_turn"
HUMAN_WON = "human_won"
COMPUTER_WON = "computer_won"
DRAW = "draw"
TERMINAL_STATES: Tuple[str, ...] = (HUMAN_WON, COMPUTER_WON, DRAW)


def opponent(player: Player) -> Player:
    return COMPUTER if player == HUMAN else HUMAN


# ---------- Board ----------


@dataclass
class Board:
    # 'X', 'O', or ' ' (space) for empty; row-major indices 0..8
    cells: List[str] = field(default_factory=lambda: [EMPTY] * 9)

    def __post_init__(self) -> None:
        if len(self.cells) != 9:
            raise ValueError("A board has exactly 9 cells")

    def __getitem__(self, idx: int) -> str:
        return self.cells[idx]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)

    def place(self, idx: int, player: Player) -> None:
        if not 0 <= idx < 9:
            raise ValueError(f"Cell index {idx} is off the board")
        if player not in MARKS:
            raise ValueError(f"Unknown mark {player!r}")
        if self.cells[idx] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[idx] = player

    def clear(self, idx: int) -> None:
        self.cells[idx] = EMPTY

    def reset(self) -> None:
        self.cells[:] = [EMPTY] * 9

    def copy(self) -> "Board":
        return Board(cells=self.cells.copy())


BoardLike = Union[Board, Sequence[str]]


# ---------- Rules ----------


def empty_cells(board: BoardLike) -> List[int]:
    """Indices of empty cells in ascending order."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def has_winner(board: BoardLike, player: Player) -> bool:
    """True when ``player`` owns all three cells of any winning line."""
    return any(
        board[a] == player and board[b] == player and board[c] == player
        for a, b, c in WINNING_LINES
    )


def is_full(board: BoardLike) -> bool:
    return all(c != EMPTY for c in board)


def winner_of(board: BoardLike) -> Optional[Player]:
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return v
    return None


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    """Human-versus-computer turn state machine around a single board.

    The human always plays ``HUMAN`` and moves first. Finished games stay in
    their terminal state until ``reset`` is called; the result survives the
    reset in ``last_result`` so the page can keep showing it.
    """

    board: Board = field(default_factory=Board)
    state: str = HUMAN_TURN
    last_result: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def current_player(self) -> Optional[Player]:
        if self.state == HUMAN_TURN:
            return HUMAN
        if self.state == COMPUTER_TURN:
            return COMPUTER
        return None

    @property
    def winner(self) -> Optional[Player]:
        if self.state == HUMAN_WON:
            return HUMAN
        if self.state == COMPUTER_WON:
            return COMPUTER
        return None

    def play_human(self, idx: int) -> None:
        if self.finished:
            raise ValueError("Game already finished")
        if self.state != HUMAN_TURN:
            raise ValueError("It is not your turn")
        self.board.place(idx, HUMAN)
        self._advance(HUMAN, won_state=HUMAN_WON, next_state=COMPUTER_TURN)

    def play_computer(self, idx: int) -> None:
        if self.finished:
            raise ValueError("Game already finished")
        if self.state != COMPUTER_TURN:
            raise ValueError("It is not the computer's turn")
        self.board.place(idx, COMPUTER)
        self._advance(COMPUTER, won_state=COMPUTER_WON, next_state=HUMAN_TURN)

    def reset(self) -> None:
        self.board.reset()
        self.state = HUMAN_TURN

    # ---- helpers ----

    def _advance(self, player: Player, won_state: str, next_state: str) -> None:
        if has_winner(self.board, player):
            self.state = won_state
        elif is_full(self.board):
            self.state = DRAW
        else:
            self.state = next_state
            return
        self.last_result = self.state
        logger.info("Game finished: %s", self.state)
