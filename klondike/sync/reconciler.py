"""
Reconciliation of remote snapshots with local state.

Policy:
- A snapshot that fails the integrity audit, or cannot be parsed, is
  rejected and the local state is kept.
- A snapshot whose piles match the local piles is an echo and ignored.
- Anything else replaces the local piles wholesale: the shared document is
  last-writer-wins in the order the store applied the writes. Revisions are
  per-replica counters and play no part in ordering; adopting a snapshot of
  the same game still moves the local revision forward.

Snapshots are only ever adopted while no local command is pending. A
snapshot that arrives while one is in flight is held (the newest held
snapshot replaces older ones) and re-evaluated once the session is idle.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional
import asyncio
import logging

from klondike.adapters.base import RemoteStoreAdapter, Snapshot
from klondike.errors import CorruptSnapshotError
from klondike.events import KlondikeEventType
from klondike.state.models import GameState
from klondike.verification import IntegrityReport, audit_snapshot, validate_integrity

if TYPE_CHECKING:
    from klondike.engine.session import GameSession

logger = logging.getLogger(__name__)


class SnapshotAction(Enum):
    ADOPT = "adopt"
    IGNORE = "ignore"
    REJECT = "reject"


@dataclass(frozen=True)
class SnapshotDecision:
    """
    What to do with one remote snapshot.

    Attributes:
        action: Adopt, ignore or reject
        reason: Short explanation, logged and emitted with events
        state: The parsed state, when the snapshot could be parsed
        report: The integrity report, when the snapshot was audited
    """

    action: SnapshotAction
    reason: str
    state: Optional[GameState] = None
    report: Optional[IntegrityReport] = None


def parse_snapshot(snapshot: Snapshot) -> GameState:
    """
    Audit and parse a remote snapshot.

    Raises:
        CorruptSnapshotError: If the snapshot is malformed or fails the audit
    """
    if not isinstance(snapshot, dict):
        raise CorruptSnapshotError(
            f"Snapshot must be an object, got {type(snapshot).__name__}"
        )
    try:
        report = audit_snapshot(snapshot)
    except (TypeError, AttributeError) as e:
        raise CorruptSnapshotError(f"Unreadable snapshot: {e}") from e
    if not report.valid:
        raise CorruptSnapshotError(
            f"Snapshot failed integrity audit: {report.summary()}", report
        )
    try:
        state = GameState.from_dict(snapshot)
    except (KeyError, TypeError, ValueError) as e:
        raise CorruptSnapshotError(f"Unreadable snapshot: {e}", report) from e
    # The parsed state is audited again, as installed
    installed = validate_integrity(state)
    if not installed.valid:
        raise CorruptSnapshotError(
            f"Parsed snapshot failed integrity audit: {installed.summary()}",
            installed,
        )
    return state


def evaluate_snapshot(
    current: Optional[GameState], snapshot: Snapshot
) -> SnapshotDecision:
    """
    Decide how a remote snapshot relates to the local state. Pure: neither
    argument is modified.
    """
    try:
        candidate = parse_snapshot(snapshot)
    except CorruptSnapshotError as e:
        return SnapshotDecision(SnapshotAction.REJECT, str(e), report=e.report)

    if current is None:
        return SnapshotDecision(SnapshotAction.ADOPT, "no local game", candidate)
    if candidate.game_id != current.game_id:
        return SnapshotDecision(SnapshotAction.ADOPT, "different game", candidate)
    if candidate.layout() == current.layout():
        return SnapshotDecision(SnapshotAction.IGNORE, "matches local state", candidate)
    return SnapshotDecision(
        SnapshotAction.ADOPT,
        "newer remote write",
        replace(candidate, revision=max(candidate.revision, current.revision + 1)),
    )


class SyncReconciler:
    """
    Connects a session to a remote store.

    Local commits reach the store through `GameSession`; this class handles
    the inbound direction: it subscribes to the store, holds snapshots while
    the session is busy, and submits adoptions through the session's queue.
    """

    def __init__(self, session: "GameSession", store: RemoteStoreAdapter):
        self.session = session
        self.store = store
        self._held: Optional[Snapshot] = None
        self._drain_task: Optional[asyncio.Task] = None
        self.received = 0
        self.held_count = 0
        self._unsubscribe = store.on_remote_snapshot(self.receive)

    @property
    def held_snapshot(self) -> Optional[Snapshot]:
        return self._held

    @property
    def busy(self) -> bool:
        return self._held is not None or (
            self._drain_task is not None and not self._drain_task.done()
        )

    def receive(self, snapshot: Snapshot) -> None:
        """
        Store callback: accept a snapshot for evaluation.

        Must run on the event loop.
        """
        self.received += 1
        if self.session.pending_action_count:
            self.held_count += 1
            logger.debug(
                "Holding remote snapshot while %d actions are pending",
                self.session.pending_action_count,
            )
            self.session.events.emit(
                KlondikeEventType.SNAPSHOT_HELD,
                {
                    "revision": _revision_of(snapshot),
                    "pending": self.session.pending_action_count,
                },
            )
        self._held = snapshot
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    def discard_held(self) -> None:
        """Drop a held snapshot, e.g. after the local game was replaced."""
        self._held = None

    async def settle(self) -> None:
        """Wait until every received snapshot has been evaluated."""
        while self._drain_task is not None and not self._drain_task.done():
            await self._drain_task

    def close(self) -> None:
        self._unsubscribe()
        self._held = None

    async def _drain(self) -> None:
        while self._held is not None:
            if self.session.pending_action_count:
                await self.session.wait_for_idle()
                continue
            # Nothing is pending, and admission registers synchronously, so no
            # local command can slip in between this check and the adoption
            snapshot, self._held = self._held, None
            await self.session.adopt_snapshot(snapshot)


def _revision_of(snapshot: Any) -> Optional[int]:
    if isinstance(snapshot, dict):
        revision = snapshot.get("revision")
        if isinstance(revision, int):
            return revision
    return None
