"""
In-memory document store, used for testing and for running several replicas
of a game inside one process.

The document is kept as a JSON string, so every subscriber gets its own copy
of a snapshot, as it would from a real store.
"""

from typing import Callable, List, Optional, Set
import asyncio
import json
import logging

from klondike.adapters.base import RemoteStoreAdapter, Snapshot, SnapshotCallback

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(RemoteStoreAdapter):
    """
    Single shared game document with push and subscribe.

    Every accepted push becomes the new document (last writer wins) and is
    delivered to every subscriber, the writer included, in write order.
    """

    def __init__(self, latency: float = 0.0, fail_pushes: bool = False):
        """
        Initialize the store.

        Args:
            latency: Seconds each push waits before the write lands
            fail_pushes: Whether pushes are refused, to simulate an outage
        """
        self.latency = latency
        self.fail_pushes = fail_pushes

        self._document: Optional[str] = None
        self._subscribers: List[SnapshotCallback] = []
        self._deliveries: Set[asyncio.Task] = set()

        # Track writes for later inspection
        self.writes: List[Snapshot] = []

    async def push_snapshot(self, snapshot: Snapshot) -> bool:
        await asyncio.sleep(self.latency)
        if self.fail_pushes:
            logger.debug("Refusing push while failing pushes")
            return False

        self.inject(snapshot)
        return True

    def on_remote_snapshot(self, callback: SnapshotCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def fetch_snapshot(self) -> Optional[Snapshot]:
        await asyncio.sleep(self.latency)
        if self._document is None:
            return None
        return json.loads(self._document)

    async def flush(self) -> None:
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries))

    @property
    def pending_deliveries(self) -> int:
        return len(self._deliveries)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def inject(self, snapshot: Snapshot) -> None:
        """
        Overwrite the document as another writer would, delivering it to
        every subscriber. The snapshot is not checked in any way.
        """
        payload = json.dumps(snapshot)
        self._document = payload
        self.writes.append(json.loads(payload))
        task = asyncio.get_running_loop().create_task(self._deliver(payload))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, payload: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(json.loads(payload))
            except Exception as e:
                logger.error(f"Error delivering snapshot: {e}", exc_info=True)
