"""Depth-capped minimax with alpha–beta pruning for ClassicXO."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .game import (
    COMPUTER,
    WINNING_LINES,
    Board,
    Player,
    empty_cells,
    opponent,
    winner_of,
)

logger = logging.getLogger(__name__)

MAX_DEPTH = 6

WIN_SCORE = 10
CENTER_SCORE = 5
CENTER = 4
EDGES = (1, 3, 5, 7)


@dataclass(frozen=True)
class SearchResult:
    score: int
    index: Optional[int]  # None means "no move"


def evaluate(board: Board, computer: Player = COMPUTER) -> int:
    """Static score of ``board`` from the computer's side.

    Only the first applicable rule counts: a completed line (±10), then the
    center (±5), then one point per edge cell.
    """
    human = opponent(computer)

    for a, b, c in WINNING_LINES:
        if board[a] == board[b] == board[c]:
            if board[a] == computer:
                return WIN_SCORE
            if board[a] == human:
                return -WIN_SCORE

    if board[CENTER] == computer:
        return CENTER_SCORE
    if board[CENTER] == human:
        return -CENTER_SCORE

    score = 0
    for i in EDGES:
        if board[i] == computer:
            score += 1
        elif board[i] == human:
            score -= 1
    return score


def best_move(
    board: Board,
    player: Player,
    depth: int = 0,
    alpha: float = -math.inf,
    beta: float = math.inf,
    computer: Player = COMPUTER,
    prune: bool = True,
) -> SearchResult:
    """Pick the best cell for ``player`` to play on ``board``.

    ``computer`` maximizes and the other mark minimizes. Candidates are tried
    in ascending index order and a later candidate only wins on a strictly
    better score. The board is mutated while searching and restored before
    returning. With ``prune=False`` the search visits every node up to the
    depth cap, which gives the same move.
    """
    moves = empty_cells(board)

    # Depth cap, decided game, or nothing left to play
    if depth == MAX_DEPTH or winner_of(board) is not None or not moves:
        return SearchResult(evaluate(board, computer), None)

    maximizing = player == computer
    value = -math.inf if maximizing else math.inf
    best_index: Optional[int] = None

    for move in moves:
        board.place(move, player)
        try:
            result = best_move(
                board, opponent(player), depth + 1, alpha, beta, computer, prune
            )
        finally:
            board.clear(move)

        if maximizing:
            if result.score > value:
                value, best_index = result.score, move
            alpha = max(alpha, result.score)
        else:
            if result.score < value:
                value, best_index = result.score, move
            beta = min(beta, result.score)

        if prune and beta <= alpha:
            break

    return SearchResult(int(value), best_index)


@dataclass
class MinimaxAI:
    """Computer opponent; always searches to the full depth cap."""

    player: Player = COMPUTER

    def choose(self, board: Board) -> int:
        result = best_move(
            board, self.player, 0, -math.inf, math.inf, computer=self.player
        )
        if result.index is None:
            raise RuntimeError("No valid moves available")
        logger.debug(
            "%s picks cell %d (score %d)", self.player, result.index, result.score
        )
        return result.index
