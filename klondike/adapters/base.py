"""
Remote store adapter interface for the Klondike engine.

This module defines the contract a remote persistence layer must meet to
share a game between clients. The engine treats the remote side as an opaque
document store: it pushes whole snapshots and receives whole snapshots back.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

Snapshot = Dict[str, Any]
SnapshotCallback = Callable[[Snapshot], None]


class RemoteStoreAdapter(ABC):
    """
    Base interface for remote game-document stores.

    Implementations bridge the engine and a concrete store (a realtime
    database, a websocket relay, a test double). Snapshots use the
    `GameState.to_dict` shape.
    """

    @abstractmethod
    async def push_snapshot(self, snapshot: Snapshot) -> bool:
        """
        Write the local committed state to the shared document.

        Args:
            snapshot: Serialized game state

        Returns:
            True when the store acknowledged the write, False on failure
        """
        pass

    @abstractmethod
    def on_remote_snapshot(self, callback: SnapshotCallback) -> Callable[[], None]:
        """
        Subscribe to document updates.

        The callback runs on the event loop, once per delivered snapshot, in
        the order the store applied the writes. There is no ordering guarantee
        relative to this client's own pushes.

        Returns:
            Unsubscribe function
        """
        pass

    # The following methods have default implementations but can be overridden

    async def fetch_snapshot(self) -> Optional[Snapshot]:
        """
        Read the current document, or None if nothing has been written.
        """
        return None

    async def flush(self) -> None:
        """
        Wait until every scheduled delivery has been handed to subscribers.
        """
        pass

    @property
    def pending_deliveries(self) -> int:
        return 0
