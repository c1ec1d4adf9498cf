"""
Command serialization for a game session.

`ActionQueue.submit` admits a command: it registers a `PendingAction` token
immediately, before the caller gets control back, then runs the command as a
task once every earlier command has settled. The token is released when the
command settles, whether it returned or raised, so the tracker always drains
back to zero.
"""

import asyncio
import inspect
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from klondike.errors import PendingActionLeakError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingAction:
    """
    Token for an admitted, unsettled command.

    Attributes:
        kind: Command kind ("draw", "move", "undo", "adopt", ...)
        id: Unique identifier for this token
        issued_at: Time the command was admitted
    """

    kind: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    issued_at: float = field(default_factory=time.time)


class PendingActionTracker:
    """
    Tracks in-flight commands and lets callers wait for quiescence.
    """

    def __init__(self):
        self._pending: Dict[str, PendingAction] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def count(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> List[PendingAction]:
        """Unsettled tokens in admission order."""
        return list(self._pending.values())

    def register(self, kind: str) -> PendingAction:
        token = PendingAction(kind)
        self._pending[token.id] = token
        self._idle.clear()
        return token

    def release(self, token: PendingAction) -> None:
        """
        Remove a token.

        Raises:
            PendingActionLeakError: If the token is not pending
        """
        if self._pending.pop(token.id, None) is None:
            raise PendingActionLeakError(
                f"Pending action {token.kind}/{token.id} released twice or never registered"
            )
        if not self._pending:
            self._idle.set()

    def discard(self, token: PendingAction) -> None:
        """Remove a token if it is still pending."""
        if token.id in self._pending:
            self.release(token)

    @asynccontextmanager
    async def track(self, kind: str):
        """Hold a token for the duration of a block, releasing it on every exit."""
        token = self.register(kind)
        try:
            yield token
        finally:
            self.release(token)

    async def wait_for_idle(self, timeout: Optional[float] = None) -> None:
        """
        Suspend until no command is pending.

        Raises:
            asyncio.TimeoutError: If the timeout is reached first
        """

        async def settle():
            while self._pending:
                await self._idle.wait()

        if timeout is None:
            await settle()
        else:
            await asyncio.wait_for(settle(), timeout)


class ActionQueue:
    """
    Single-writer FIFO queue of commands.

    At most one command runs at a time; commands start in admission order and
    each one's effects are visible to the next.
    """

    def __init__(self, tracker: Optional[PendingActionTracker] = None):
        self.tracker = tracker or PendingActionTracker()
        self._lock = asyncio.Lock()
        self._active: Optional[PendingAction] = None
        self.completed = 0
        self.failed = 0

    @property
    def active(self) -> Optional[PendingAction]:
        """The command currently holding the queue, if any."""
        return self._active

    @property
    def is_locked(self) -> bool:
        return self._lock.locked()

    def submit(
        self, kind: str, command: Callable[[], Any]
    ) -> "asyncio.Task[Any]":
        """
        Admit a command.

        Must be called with a running event loop. The returned task resolves to
        the command's result or raises its exception. Commands install
        their state before their first suspension point, so a cancelled
        command has either not run at all or already committed.

        Args:
            kind: Command kind recorded on the pending token
            command: Zero-argument callable; may return an awaitable

        Returns:
            Task settling with the command
        """
        loop = asyncio.get_running_loop()
        token = self.tracker.register(kind)
        try:
            task = loop.create_task(self._run(token, command))
        except BaseException:
            self.tracker.release(token)
            raise
        # A task cancelled before its first step never enters _run
        task.add_done_callback(lambda _: self.tracker.discard(token))
        return task

    async def _run(self, token: PendingAction, command: Callable[[], Any]) -> Any:
        try:
            async with self._lock:
                self._active = token
                try:
                    result = command()
                    if inspect.isawaitable(result):
                        result = await result
                    self.completed += 1
                    return result
                except BaseException:
                    self.failed += 1
                    logger.debug("Command %s/%s failed", token.kind, token.id)
                    raise
                finally:
                    self._active = None
        finally:
            self.tracker.release(token)

