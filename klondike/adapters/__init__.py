"""
Remote store adapters for the Klondike engine.

This package provides the interface between the engine and the remote
document store that shares a game between clients.
"""

from klondike.adapters.base import RemoteStoreAdapter, Snapshot
from klondike.adapters.memory import InMemoryDocumentStore

__all__ = ["RemoteStoreAdapter", "Snapshot", "InMemoryDocumentStore"]
