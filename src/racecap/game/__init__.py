"""
Game module

from racecap.game import GameSession
"""

from .session import GameResult, GameSession, GameStateError

__all__ = ["GameResult", "GameSession", "GameStateError"]
