"""
Event system for the Klondike engine.

Each game session owns one `EventEmitter`. The session emits a change event
after every committed command; the UI and the sync pusher subscribe to it.
Nothing in the engine holds a reference back to its subscribers beyond the
callbacks registered here.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Union
import threading
import logging
from enum import Enum

# Create a logger for the event system
logger = logging.getLogger("klondike.events")


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class KlondikeEventType(Enum):
    """
    Event types emitted by a game session.
    """

    # Game lifecycle
    GAME_CONFIGURED = "game_configured"
    GAME_WON = "game_won"
    GAME_STUCK = "game_stuck"

    # Commands
    CARDS_DRAWN = "cards_drawn"
    STOCK_RECYCLED = "stock_recycled"
    CARDS_MOVED = "cards_moved"
    MOVE_REJECTED = "move_rejected"
    UNDO_APPLIED = "undo_applied"

    # Fired once after every committed mutation
    STATE_CHANGED = "state_changed"

    # Synchronization
    SNAPSHOT_ADOPTED = "snapshot_adopted"
    SNAPSHOT_HELD = "snapshot_held"
    SNAPSHOT_IGNORED = "snapshot_ignored"
    SNAPSHOT_REJECTED = "snapshot_rejected"
    SYNC_FAILED = "sync_failed"


class EventEmitter:
    """
    Event emitter with priority-ordered handlers.

    Features:
    - Supports event subscription with priorities
    - Allows once-only subscriptions
    - Supports subscribing to all events with event type filtering in handler
    - Thread-safe subscription management
    """

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners = defaultdict(list)
        self._global_listeners = []
        self._listener_lock = threading.RLock()

    def on(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs, signature: fn(event_data)
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        event_type = self._key(event_type)
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            self._insert(self._listeners[event_type], handler)

        def unsubscribe():
            with self._listener_lock:
                self._remove(self._listeners[event_type], handler)

        return unsubscribe

    def once(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type for a single occurrence.

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        unsubscribe_ref = []

        def one_time_handler(event_data):
            try:
                callback(event_data)
            finally:
                # Unsubscribe even if the callback raised
                if unsubscribe_ref:
                    unsubscribe_ref[0]()

        unsubscribe_ref.append(self.on(event_type, one_time_handler, priority))
        return unsubscribe_ref[0]

    def on_any(
        self, callback: Callable, priority: EventPriority = EventPriority.NORMAL
    ) -> Callable:
        """
        Subscribe to all events.

        Args:
            callback: Function to call for any event, signature: fn((event_type, event_data))
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            self._insert(self._global_listeners, handler)

        def unsubscribe():
            with self._listener_lock:
                self._remove(self._global_listeners, handler)

        return unsubscribe

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        """
        Emit an event to all registered listeners.

        Handler failures are logged and never reach the emitting command.

        Args:
            event_type: The type of event to emit
            data: The data to include with the event
        """
        event_type = self._key(event_type)
        handlers_to_call = []

        with self._listener_lock:
            for handler in self._listeners.get(event_type, []):
                handlers_to_call.append((handler["callback"], data))
            for handler in self._global_listeners:
                handlers_to_call.append((handler["callback"], (event_type, data)))

        # Call handlers outside of the lock to avoid deadlocks
        for callback, args in handlers_to_call:
            try:
                callback(args)
            except Exception as e:
                logger.error(
                    f"Error in event handler for {event_type}: {e}", exc_info=True
                )

    def listener_count(self, event_type: Optional[Union[str, Enum]] = None) -> int:
        with self._listener_lock:
            if event_type is None:
                return sum(len(h) for h in self._listeners.values()) + len(
                    self._global_listeners
                )
            return len(self._listeners.get(self._key(event_type), []))

    def remove_all_listeners(
        self, event_type: Optional[Union[str, Enum]] = None
    ) -> None:
        """
        Remove all listeners for a specific event type or all events.

        Args:
            event_type: Optional event type. If None, removes all listeners for all events.
        """
        with self._listener_lock:
            if event_type is None:
                self._listeners.clear()
                self._global_listeners.clear()
            else:
                self._listeners[self._key(event_type)].clear()

    @staticmethod
    def _key(event_type: Union[str, Enum]) -> str:
        if isinstance(event_type, Enum):
            return event_type.name
        return event_type

    @staticmethod
    def _insert(handlers, handler) -> None:
        # Higher priorities first, FIFO within a priority
        for i, existing in enumerate(handlers):
            if existing["priority"] < handler["priority"]:
                handlers.insert(i, handler)
                return
        handlers.append(handler)

    @staticmethod
    def _remove(handlers, handler) -> None:
        for i, existing in enumerate(handlers):
            if existing is handler:
                handlers.pop(i)
                return
