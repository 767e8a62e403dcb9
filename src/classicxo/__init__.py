"""ClassicXO package exposing game rules, the minimax opponent, and the web application."""

from .ai import MinimaxAI, SearchResult, best_move, evaluate
from .game import Board, TicTacToeGame, empty_cells, has_winner, is_full
from .ui import app

__all__ = [
    "Board",
    "MinimaxAI",
    "SearchResult",
    "TicTacToeGame",
    "app",
    "best_move",
    "empty_cells",
    "evaluate",
    "has_winner",
    "is_full",
]
