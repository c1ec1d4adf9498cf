"""
Plain-identifier command and query surface over a game session.

`TestHooks` is what a UI or an automated harness drives: it takes suits,
ranks and piles as plain strings or numbers and returns plain dicts, lists
and strings, so callers never need the engine's types. It supports both
asynchronous use and, through the `*_sync` wrappers, synchronous use.

Example:
    ```python
    hooks = TestHooks()
    await hooks.configure_game("blue02orange", "three")
    action = await hooks.tap_stock()          # "draw"
    columns = hooks.get_tableau_state()

    # Sync usage
    hooks = TestHooks()
    hooks.configure_game_sync("blue02orange", "one")
    hooks.tap_stock_sync()
    ```
"""

import asyncio
import threading
from typing import Any, Dict, List, Optional

from klondike.adapters.base import RemoteStoreAdapter
from klondike.common.card import Card, Rank, Suit
from klondike.engine.session import GameSession
from klondike.state.models import GameState, PileRef


def card_view(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    if card is None:
        return None
    return card.to_dict()


class TestHooks:
    """
    Command and query surface for UI and test-harness collaborators.

    Attributes:
        session: The game session driven by these hooks
    """

    # Not a pytest test class despite the name
    __test__ = False

    def __init__(
        self,
        session: Optional[GameSession] = None,
        config: Optional[Dict[str, Any]] = None,
        store: Optional[RemoteStoreAdapter] = None,
    ):
        """
        Args:
            session: Session to drive; a new one is created when omitted
            config: Configuration for a new session
            store: Remote store for a new session
        """
        self.session = session or GameSession(config, store)
        self._loop = None
        self._async_lock = threading.Lock()

    # Commands

    async def configure_game(self, seed: str, draw_mode: Optional[str] = None) -> Dict[str, Any]:
        await self.session.configure_game(seed, draw_mode)
        return self.get_debug_state()

    async def tap_stock(self) -> str:
        """Returns "draw", "recycle", or "none" when stock and waste are empty."""
        action = await self.session.tap_stock()
        return action.value

    async def move_tableau_to_tableau(
        self, from_index: int, to_index: int, count: int = 1
    ) -> Dict[str, Any]:
        result = await self.session.move_tableau_to_tableau(from_index, to_index, count)
        return result.to_dict()

    async def move(self, source: str, dest: str, count: int = 1) -> Dict[str, Any]:
        result = await self.session.move(source, dest, count)
        return result.to_dict()

    async def undo(self) -> bool:
        return await self.session.undo()

    async def add_card_to_tableau(self, index: int, suit: str, rank: str) -> None:
        await self.session.add_card_to_tableau(index, suit, rank)

    async def clear_tableau_column(self, index: int) -> None:
        await self.session.clear_tableau_column(index)

    async def wait_for_idle(self, timeout: Optional[float] = None) -> None:
        await self.session.wait_for_idle(timeout)

    # Queries

    def get_stock_count(self) -> int:
        return self.session.state.stock.size

    def get_waste_count(self) -> int:
        return self.session.state.waste.size

    def get_total_card_count(self) -> int:
        return self.session.state.card_count

    def get_stock_snapshot(self) -> List[str]:
        """Stock card identities, bottom first, as "rank-of-suit" labels."""
        return [self._label(card) for card in self.session.state.stock.cards]

    def get_waste_snapshot(self) -> List[str]:
        return [self._label(card) for card in self.session.state.waste.cards]

    def get_tableau_state(self) -> List[Dict[str, Any]]:
        """One entry per column, always seven, in index order."""
        return [
            {
                "index": column.index,
                "card_count": column.size,
                "is_empty": column.is_empty,
                "top_card": card_view(column.top),
                "cards": [card.to_dict() for card in column.cards],
            }
            for column in self.session.state.tableau
        ]

    def get_foundation_state(self) -> List[Dict[str, Any]]:
        return [
            {
                "index": pile.index,
                "suit": pile.suit.value if pile.suit else None,
                "card_count": pile.size,
                "top_card": card_view(pile.top),
            }
            for pile in self.session.state.foundations
        ]

    def get_top_card(self, pile_ref: str) -> Optional[Dict[str, Any]]:
        return card_view(self.session.state.pile(pile_ref).top)

    def is_tableau_empty(self, index: int) -> bool:
        return self.session.state.tableau[PileRef.tableau(index).index].is_empty

    def get_pending_action_count(self) -> int:
        return self.session.pending_action_count

    def get_debug_state(self) -> Dict[str, Any]:
        return self.session.debug_state()

    def can_accept_card(self, pile_ref: str, suit: str, rank: str) -> bool:
        """
        Whether a pile would accept a face-up card of the given suit and rank
        placed on it now.
        """
        card = Card(Suit.parse(suit), Rank.parse(rank), face_up=True)
        return self.session.can_accept(pile_ref, card)

    def validate_card_integrity(self) -> Dict[str, Any]:
        return self.session.validate_integrity().to_dict()

    def is_won(self) -> bool:
        return self.session.is_won()

    def is_stuck(self) -> bool:
        return self.session.is_stuck()

    def is_dead(self) -> bool:
        return self.session.is_dead()

    # Serialization

    def to_json(self) -> str:
        return self.session.to_json()

    @staticmethod
    def from_json(json_str: str) -> GameState:
        return GameState.from_json(json_str)

    # Synchronous API wrappers

    def configure_game_sync(self, seed: str, draw_mode: Optional[str] = None) -> Dict[str, Any]:
        return self._run_async(self.configure_game(seed, draw_mode))

    def tap_stock_sync(self) -> str:
        return self._run_async(self.tap_stock())

    def move_tableau_to_tableau_sync(
        self, from_index: int, to_index: int, count: int = 1
    ) -> Dict[str, Any]:
        return self._run_async(self.move_tableau_to_tableau(from_index, to_index, count))

    def undo_sync(self) -> bool:
        return self._run_async(self.undo())

    def wait_for_idle_sync(self, timeout: Optional[float] = None) -> None:
        return self._run_async(self.wait_for_idle(timeout))

    def close_sync(self) -> None:
        """Close the private event loop used by the sync wrappers."""
        with self._async_lock:
            if self._loop is not None and not self._loop.is_closed():
                self._loop.close()
            self._loop = None

    def _run_async(self, coro):
        """
        Run a coroutine from a synchronous context on this object's own loop.

        The session binds its queue to the first loop that uses it, so every
        sync call reuses the same loop.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            coro.close()
            raise RuntimeError(
                "Attempting to use synchronous method inside a running event loop. "
                "Use the async version of this method instead."
            )

        with self._async_lock:
            if self._loop is None or self._loop.is_closed():
                self._loop = asyncio.new_event_loop()
            return self._loop.run_until_complete(coro)

    @staticmethod
    def _label(card: Card) -> str:
        return f"{card.rank.key}-of-{card.suit.value}"
