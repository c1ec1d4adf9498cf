"""
Immutable state management for the Klondike engine.

This package provides immutable pile and game-state classes and pure
transition functions for managing game state in a predictable and testable
way.
"""

from klondike.state.models import (
    DrawMode,
    FoundationPile,
    GameState,
    Pile,
    PileKind,
    PileRef,
    StockAction,
    StockPile,
    TableauPile,
    WastePile,
)
from klondike.state.transitions import MoveResult, StateTransitionEngine
from klondike.state.analysis import is_dead, is_stuck, is_won, legal_moves

__all__ = [
    "DrawMode",
    "FoundationPile",
    "GameState",
    "Pile",
    "PileKind",
    "PileRef",
    "StockAction",
    "StockPile",
    "TableauPile",
    "WastePile",
    "MoveResult",
    "StateTransitionEngine",
    "is_dead",
    "is_stuck",
    "is_won",
    "legal_moves",
]
