"""
API module for the Klondike engine.

This module provides the plain-identifier surface used by UI and test-harness
collaborators, supporting both synchronous and asynchronous operation.
"""

from klondike.api.hooks import TestHooks

__all__ = ["TestHooks"]
