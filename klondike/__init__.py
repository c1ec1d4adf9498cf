"""
Klondike solitaire rule engine and synchronization core.
"""

from klondike.api import TestHooks
from klondike.engine import GameSession
from klondike.errors import (
    CorruptSnapshotError,
    IntegrityViolationError,
    InvalidConfigurationError,
    KlondikeError,
    PendingActionLeakError,
)
from klondike.state import DrawMode, GameState, PileRef, StockAction

__all__ = [
    "TestHooks",
    "GameSession",
    "CorruptSnapshotError",
    "IntegrityViolationError",
    "InvalidConfigurationError",
    "KlondikeError",
    "PendingActionLeakError",
    "DrawMode",
    "GameState",
    "PileRef",
    "StockAction",
]
