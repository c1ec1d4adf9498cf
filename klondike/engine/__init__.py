"""
Core engine for the Klondike package.

This package provides the game session and the command queue that
serializes every mutation of a game.
"""

from klondike.engine.queue import ActionQueue, PendingAction, PendingActionTracker
from klondike.engine.session import GameSession

__all__ = ["ActionQueue", "PendingAction", "PendingActionTracker", "GameSession"]
