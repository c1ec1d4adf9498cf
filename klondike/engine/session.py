"""
Game session: the owner of one replica of a Klondike game.

A `GameSession` holds the current immutable `GameState` and is the only
thing that replaces it. Every mutating command is admitted through the
session's `ActionQueue`; queries read the last committed state and can be
issued at any time. After each commit the session emits change events and,
when connected to a remote store, pushes the new snapshot.
"""

from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional
import asyncio
import json
import logging
import uuid

from klondike.adapters.base import RemoteStoreAdapter, Snapshot
from klondike.common.card import Card, Rank, Suit
from klondike.common.deck import seed_to_state
from klondike.config import GameConfig
from klondike.errors import IntegrityViolationError, InvalidConfigurationError
from klondike.events import EventEmitter, KlondikeEventType
from klondike.engine.queue import ActionQueue, PendingActionTracker
from klondike.state.analysis import is_dead, is_stuck, is_won
from klondike.state.models import DrawMode, GameState, PileRef, StockAction
from klondike.state.transitions import MoveResult, StateTransitionEngine
from klondike.sync.reconciler import SnapshotAction, SyncReconciler, evaluate_snapshot
from klondike.verification import IntegrityReport, validate_integrity

logger = logging.getLogger(__name__)


class GameSession:
    """
    One local replica of a Klondike game.

    Command methods (`configure_game`, `tap_stock`, `move`, `undo`, ...)
    admit the command immediately and return an `asyncio.Task`; await it for
    the result. They must be called from a running event loop.

    Example:
        ```python
        session = GameSession({"draw_mode": "one"})
        await session.configure_game("blue02orange")
        action = await session.tap_stock()
        result = await session.move_tableau_to_tableau(0, 3)
        ```
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        store: Optional[RemoteStoreAdapter] = None,
        events: Optional[EventEmitter] = None,
        replica_id: Optional[str] = None,
    ):
        """
        Initialize a session with no game configured.

        Args:
            config: Configuration options merged over `DEFAULT_CONFIG`
            store: Remote store shared with other replicas, if any
            events: Event emitter to publish on; a private one by default
            replica_id: Name of this replica in logs and events

        Raises:
            InvalidConfigurationError: If the configuration is invalid
        """
        self.config = GameConfig.from_dict(config)
        self.events = events or EventEmitter()
        self.replica_id = replica_id or str(uuid.uuid4())[:8]
        self.tracker = PendingActionTracker()
        self.queue = ActionQueue(self.tracker)
        self.store = store

        self._state: Optional[GameState] = None
        self._history: List[GameState] = []
        self._won_announced = False
        self._stuck_announced = False
        self.rejected_snapshots = 0
        self.adopted_snapshots = 0
        self.failed_pushes = 0

        self.reconciler = SyncReconciler(self, store) if store is not None else None

    # Queries

    @property
    def state(self) -> GameState:
        """
        The last committed state.

        Raises:
            RuntimeError: If no game has been configured or adopted yet
        """
        if self._state is None:
            raise RuntimeError("No game configured; call configure_game first")
        return self._state

    @property
    def is_configured(self) -> bool:
        return self._state is not None

    @property
    def revision(self) -> int:
        return self.state.revision

    @property
    def pending_action_count(self) -> int:
        return self.tracker.count

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def validate_integrity(self) -> IntegrityReport:
        return validate_integrity(self.state)

    def is_won(self) -> bool:
        return is_won(self.state)

    def is_stuck(self) -> bool:
        return is_stuck(self.state)

    def is_dead(self) -> bool:
        """Whether no productive move remains, stock taps included."""
        return is_dead(self.state)

    def can_accept(self, pile_ref, cards) -> bool:
        """Whether a pile would accept the given card or run right now."""
        if isinstance(cards, Card):
            cards = (cards,)
        return self.state.pile(pile_ref).can_accept(tuple(cards))

    def to_json(self) -> str:
        return self.state.to_json()

    def debug_state(self) -> Dict[str, Any]:
        """Opaque diagnostic dump; the shape is not part of any contract."""
        state = self._state
        active = self.queue.active
        dump: Dict[str, Any] = {
            "replica_id": self.replica_id,
            "configured": state is not None,
            "pending_actions": [
                {"kind": token.kind, "id": token.id, "issued_at": token.issued_at}
                for token in self.tracker.pending
            ],
            "has_pending_action": self.tracker.count > 0,
            "is_locked": self.queue.is_locked,
            "active_action": active.kind if active else None,
            "history_depth": len(self._history),
            "rejected_snapshots": self.rejected_snapshots,
            "adopted_snapshots": self.adopted_snapshots,
            "failed_pushes": self.failed_pushes,
            "held_snapshot": bool(self.reconciler and self.reconciler.held_snapshot),
            "config": self.config.to_dict(),
        }
        if state is not None:
            dump.update(
                {
                    "game_id": state.game_id,
                    "seed": state.seed,
                    "revision": state.revision,
                    "draw_mode": state.draw_mode.value,
                    "stock_count": state.stock.size,
                    "waste_count": state.waste.size,
                    "tableau_counts": [column.size for column in state.tableau],
                    "foundation_counts": [pile.size for pile in state.foundations],
                    "integrity": self.validate_integrity().to_dict(),
                    "is_won": is_won(state),
                    "is_stuck": is_stuck(state),
                    "is_dead": is_dead(state),
                }
            )
        return dump

    async def wait_for_idle(self, timeout: Optional[float] = None) -> None:
        """Suspend until no command is pending."""
        await self.tracker.wait_for_idle(timeout)

    async def wait_for_sync(self, timeout: Optional[float] = None) -> None:
        """
        Suspend until this replica is quiescent: no pending command, no
        undelivered write in the store, no held or unevaluated snapshot.
        """

        async def settle():
            while True:
                if self.store is not None:
                    await self.store.flush()
                if self.reconciler is not None:
                    await self.reconciler.settle()
                await self.tracker.wait_for_idle()
                if (
                    self.tracker.count == 0
                    and (self.store is None or self.store.pending_deliveries == 0)
                    and (self.reconciler is None or not self.reconciler.busy)
                ):
                    return

        if timeout is None:
            await settle()
        else:
            await asyncio.wait_for(settle(), timeout)

    # Commands

    def configure_game(
        self,
        seed: str,
        draw_mode=None,
        initial_draw: Optional[bool] = None,
        game_id: Optional[str] = None,
    ) -> "asyncio.Task[GameState]":
        """
        Shuffle and deal a new game, replacing any current one.

        The seed and draw mode are validated before the command is admitted,
        so a bad configuration raises here and installs nothing.

        Args:
            seed: Shuffle seed
            draw_mode: "one" or "three"; the configured default when omitted
            initial_draw: Overrides the configured initial-draw policy
            game_id: Identifier of the shared game document; new when omitted

        Raises:
            InvalidConfigurationError: On an unknown draw mode or malformed seed
        """
        mode = DrawMode.parse(self.config.draw_mode if draw_mode is None else draw_mode)
        seed_to_state(seed)
        if initial_draw is None:
            initial_draw = self.config.initial_draw
        elif not isinstance(initial_draw, bool):
            raise InvalidConfigurationError("initial_draw must be a boolean")

        async def command():
            state = StateTransitionEngine.deal(
                seed, mode, initial_draw, game_id or str(uuid.uuid4())
            )
            self._install(state, record_history=False)
            self._history.clear()
            self._won_announced = False
            self._stuck_announced = False
            if self.reconciler is not None:
                self.reconciler.discard_held()
            logger.info(
                "Configured game %s (seed=%r, draw_mode=%s, initial_draw=%s)",
                state.game_id,
                seed,
                mode.value,
                initial_draw,
            )
            self.events.emit(
                KlondikeEventType.GAME_CONFIGURED,
                {
                    "game_id": state.game_id,
                    "seed": seed,
                    "draw_mode": mode.value,
                    "initial_draw": initial_draw,
                    "stock_count": state.stock.size,
                    "waste_count": state.waste.size,
                },
            )
            await self._after_commit("configure")
            return state

        return self.queue.submit("configure", command)

    def tap_stock(self) -> "asyncio.Task[StockAction]":
        """
        Draw from the stock, recycling the waste when the stock is empty.

        Returns:
            Task resolving to `StockAction.DRAW`, `RECYCLE` or `NONE`
        """

        async def command():
            current = self.state
            new_state, action, drawn = StateTransitionEngine.draw(current)
            if action is StockAction.NONE:
                logger.debug("Stock and waste are empty; nothing to draw")
                return action
            self._commit(new_state)
            if action is StockAction.RECYCLE:
                self.events.emit(
                    KlondikeEventType.STOCK_RECYCLED,
                    {
                        "recycled": current.waste.size,
                        "revision": new_state.revision,
                    },
                )
            self.events.emit(
                KlondikeEventType.CARDS_DRAWN,
                {
                    "cards": [card.to_dict() for card in drawn],
                    "stock_count": new_state.stock.size,
                    "waste_count": new_state.waste.size,
                    "revision": self.state.revision,
                },
            )
            await self._after_commit("draw")
            return action

        return self.queue.submit("draw", command)

    def move(self, source, dest, count: int = 1) -> "asyncio.Task[MoveResult]":
        """
        Move cards between piles.

        An illegal move is not an error: the task resolves to a rejected
        `MoveResult` and the state is unchanged.

        Args:
            source: Pile reference the cards leave (see `PileRef.parse`)
            dest: Pile reference the cards land on
            count: Number of cards taken from the top of `source`
        """

        async def command():
            new_state, result = StateTransitionEngine.move(
                self.state, source, dest, count
            )
            if not result.accepted:
                logger.debug(
                    "Rejected move %s -> %s x%s: %s", source, dest, count, result.reason
                )
                self.events.emit(KlondikeEventType.MOVE_REJECTED, result.to_dict())
                return result
            self._commit(new_state)
            self.events.emit(
                KlondikeEventType.CARDS_MOVED,
                dict(result.to_dict(), revision=self.state.revision),
            )
            await self._after_commit("move")
            return result

        return self.queue.submit("move", command)

    def move_tableau_to_tableau(
        self, from_index: int, to_index: int, count: int = 1
    ) -> "asyncio.Task[MoveResult]":
        """
        Move the top `count` cards of one tableau column onto another.

        Out-of-range column indexes are rejected like any other illegal move.
        """
        return self.move(("tableau", from_index), ("tableau", to_index), count)

    def undo(self) -> "asyncio.Task[bool]":
        """
        Restore the pile contents from before the last committed command.

        The revision still moves forward. Resolves to False when there is
        nothing to undo.
        """

        async def command():
            if not self._history:
                return False
            previous = self._history.pop()
            current = self.state
            self._install(
                replace(previous, revision=current.revision + 1), record_history=False
            )
            self.events.emit(
                KlondikeEventType.UNDO_APPLIED,
                {"revision": self.state.revision, "restored": previous.revision},
            )
            await self._after_commit("undo")
            return True

        return self.queue.submit("undo", command)

    def clear_tableau_column(self, index: int) -> "asyncio.Task[GameState]":
        """
        Scenario helper: empty one tableau column. Its cards move to the bottom
        of the stock, so the deck stays complete.
        """
        PileRef.tableau(index)

        async def command():
            self._commit(StateTransitionEngine.clear_tableau_column(self.state, index))
            await self._after_commit("scenario")
            return self.state

        return self.queue.submit("scenario", command)

    def add_card_to_tableau(
        self, index: int, suit, rank
    ) -> "asyncio.Task[GameState]":
        """
        Scenario helper: move the named card, from wherever it is, face up onto
        a tableau column. Placement rules are not checked.
        """
        PileRef.tableau(index)
        suit = Suit.parse(suit)
        rank = Rank.parse(rank)

        async def command():
            self._commit(
                StateTransitionEngine.place_card_on_tableau(self.state, index, suit, rank)
            )
            await self._after_commit("scenario")
            return self.state

        return self.queue.submit("scenario", command)

    def adopt_snapshot(self, snapshot: Snapshot) -> "asyncio.Task[bool]":
        """
        Evaluate a remote snapshot and install it when the sync policy says
        so. A corrupt snapshot is rejected and reported, never raised.

        Returns:
            Task resolving to True when the snapshot was adopted
        """

        async def command():
            return await self._adopt(snapshot)

        return self.queue.submit("adopt", command)

    async def sync_from_remote(self) -> bool:
        """
        Fetch the shared document and adopt it under the usual policy.

        Returns:
            True when a snapshot was adopted
        """
        if self.store is None:
            return False
        async with self.tracker.track("fetch"):
            snapshot = await self.store.fetch_snapshot()
        if snapshot is None:
            return False
        return await self.adopt_snapshot(snapshot)

    def restore(self, json_str: str) -> "asyncio.Task[bool]":
        """
        Install a state serialized with `to_json`, through the same checks as
        a remote snapshot. Text that does not parse is rejected the same way
        as a corrupt snapshot and the current game is kept.
        """

        async def command():
            try:
                snapshot = json.loads(json_str)
            except (TypeError, ValueError) as e:
                self._reject_snapshot(f"Unparsable snapshot: {e}")
                return False
            return await self._adopt(snapshot)

        return self.queue.submit("restore", command)

    def subscribe(self, callback: Callable) -> Callable:
        """
        Register a change listener, called with the event data of every
        `STATE_CHANGED` event.

        Returns:
            Unsubscribe function
        """
        return self.events.on(KlondikeEventType.STATE_CHANGED, callback)

    async def close(self) -> None:
        await self.wait_for_idle()
        if self.reconciler is not None:
            self.reconciler.close()

    # Internals; only called from inside a queued command

    async def _adopt(self, snapshot: Snapshot) -> bool:
        decision = evaluate_snapshot(self._state, snapshot)
        if decision.action is SnapshotAction.REJECT:
            self._reject_snapshot(decision.reason, decision.report)
            return False
        if decision.action is SnapshotAction.IGNORE:
            logger.debug("Ignored remote snapshot: %s", decision.reason)
            self.events.emit(
                KlondikeEventType.SNAPSHOT_IGNORED, {"reason": decision.reason}
            )
            return False

        adopted = decision.state
        keep_history = (
            self._state is not None and adopted.game_id == self._state.game_id
        )
        self._install(adopted, record_history=keep_history)
        if not keep_history:
            self._history.clear()
            self._won_announced = False
            self._stuck_announced = False
        self.adopted_snapshots += 1
        logger.info(
            "Adopted remote snapshot revision %d on replica %s (%s)",
            adopted.revision,
            self.replica_id,
            decision.reason,
        )
        self.events.emit(
            KlondikeEventType.SNAPSHOT_ADOPTED,
            {
                "game_id": adopted.game_id,
                "revision": adopted.revision,
                "reason": decision.reason,
            },
        )
        # Adopted state came from the store; it is not pushed back
        await self._after_commit("adopt", push=False)
        return True

    def _reject_snapshot(
        self, reason: str, report: Optional[IntegrityReport] = None
    ) -> None:
        self.rejected_snapshots += 1
        logger.error(
            "Rejected remote snapshot on replica %s: %s", self.replica_id, reason
        )
        self.events.emit(
            KlondikeEventType.SNAPSHOT_REJECTED,
            {"reason": reason, "report": report.to_dict() if report else None},
        )

    def _commit(self, new_state: GameState) -> None:
        self._install(replace(new_state, revision=self.state.revision + 1))

    def _install(self, new_state: GameState, record_history: bool = True) -> None:
        if self.config.audit_commits:
            report = validate_integrity(new_state)
            if not report.valid:
                logger.error(
                    "Refusing to commit revision %d: %s",
                    new_state.revision,
                    report.summary(),
                )
                raise IntegrityViolationError(
                    f"Commit would break the deck: {report.summary()}", report
                )
        if record_history and self._state is not None and self.config.history_limit:
            self._history.append(self._state)
            del self._history[: -self.config.history_limit]
        self._state = new_state

    async def _after_commit(self, kind: str, push: bool = True) -> None:
        state = self.state
        logger.debug("Committed %s at revision %d", kind, state.revision)
        self.events.emit(
            KlondikeEventType.STATE_CHANGED,
            {
                "kind": kind,
                "game_id": state.game_id,
                "revision": state.revision,
                "replica_id": self.replica_id,
                "pending": self.tracker.count,
            },
        )
        self._announce_terminal(state)
        if push and self.store is not None and self.config.push_on_commit:
            await self._push(state)

    def _announce_terminal(self, state: GameState) -> None:
        if is_won(state):
            if not self._won_announced:
                self._won_announced = True
                self.events.emit(KlondikeEventType.GAME_WON, {"game_id": state.game_id})
            return
        self._won_announced = False
        stuck = is_stuck(state)
        if stuck and not self._stuck_announced:
            self.events.emit(
                KlondikeEventType.GAME_STUCK,
                {"game_id": state.game_id, "revision": state.revision},
            )
        self._stuck_announced = stuck

    async def _push(self, state: GameState) -> None:
        try:
            acknowledged = await self.store.push_snapshot(state.to_dict())
            reason = "refused by store"
        except Exception as e:
            acknowledged = False
            reason = str(e)
        if not acknowledged:
            logger.warning("Push of revision %d failed: %s", state.revision, reason)
            self.failed_pushes += 1
            self.events.emit(
                KlondikeEventType.SYNC_FAILED,
                {
                    "revision": state.revision,
                    "replica_id": self.replica_id,
                    "reason": reason,
                },
            )
