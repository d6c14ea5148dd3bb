"""Tic-tac-toe package exposing game logic, the minimax AI, and the web application."""

from .ai import MinimaxAI, best_move
from .flow import GameFlow
from .game import Board, Move, Player
from .ui import app

__all__ = ["Board", "GameFlow", "MinimaxAI", "Move", "Player", "app", "best_move"]
