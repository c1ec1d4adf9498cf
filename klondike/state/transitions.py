"""
State transition functions for Klondike.

This module provides pure functions for moving between game states without
modifying the original state objects. Transitions never bump the revision;
the session does that when it commits a result.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from klondike import rules
from klondike.common.card import Card, Rank, Suit
from klondike.common.deck import Deck
from klondike.state.models import (
    TABLEAU_COLUMNS,
    DrawMode,
    FoundationPile,
    GameState,
    PileKind,
    PileRef,
    StockAction,
    StockPile,
    TableauPile,
    WastePile,
)


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of a move request. A rejected move carries the reason and leaves
    the state untouched.

    Attributes:
        accepted: Whether the move was applied
        source: Pile the cards came from
        dest: Pile the cards went to
        cards: The moved cards, bottom first
        revealed: Tableau card flipped face up by the move, if any
        reason: Why the move was rejected
    """

    accepted: bool
    source: Optional[PileRef] = None
    dest: Optional[PileRef] = None
    cards: Tuple[Card, ...] = ()
    revealed: Optional[Card] = None
    reason: Optional[str] = None

    @property
    def outcome(self) -> str:
        return "moved" if self.accepted else "rejected"

    def __bool__(self) -> bool:
        return self.accepted

    def to_dict(self):
        return {
            "outcome": self.outcome,
            "source": str(self.source) if self.source else None,
            "dest": str(self.dest) if self.dest else None,
            "cards": [card.to_dict() for card in self.cards],
            "revealed": self.revealed.to_dict() if self.revealed else None,
            "reason": self.reason,
        }

    @classmethod
    def rejected(cls, reason: str, source=None, dest=None) -> "MoveResult":
        return cls(False, source=source, dest=dest, reason=reason)


class StateTransitionEngine:
    """
    Pure functions for state transitions in Klondike.

    Each method takes a state and returns a new state, without modifying the
    original.
    """

    @staticmethod
    def deal(
        seed: str,
        draw_mode=DrawMode.THREE,
        initial_draw: bool = True,
        game_id: Optional[str] = None,
    ) -> GameState:
        """
        Shuffle and deal a new game.

        Column i receives i + 1 cards with only the last one face up; the 24
        remaining cards form the face-down stock. With `initial_draw`, one
        draw step follows the deal.

        Args:
            seed: Shuffle seed
            draw_mode: Draw mode or its key
            initial_draw: Whether to draw one hand right after the deal
            game_id: Identifier of the shared game document

        Returns:
            The dealt state at revision 0

        Raises:
            InvalidConfigurationError: If the seed or draw mode is invalid
        """
        mode = DrawMode.parse(draw_mode)
        deck = Deck.shuffled(seed)

        # Each row is dealt from the end of the shuffled order, left to right
        columns: List[List[Card]] = [[] for _ in range(TABLEAU_COLUMNS)]
        for row in range(TABLEAU_COLUMNS):
            dealt = deck.deal(TABLEAU_COLUMNS - row)
            for col, card in zip(range(row, TABLEAU_COLUMNS), dealt):
                columns[col].append(card.flipped(row == col))

        state = GameState(
            stock=StockPile(tuple(card.flipped(False) for card in deck.cards)),
            waste=WastePile(),
            tableau=tuple(
                TableauPile(tuple(cards), i) for i, cards in enumerate(columns)
            ),
            foundations=tuple(FoundationPile(index=i) for i in range(4)),
            draw_mode=mode,
            seed=seed,
            revision=0,
            **({"game_id": game_id} if game_id else {}),
        )
        if initial_draw:
            state, _, _ = StateTransitionEngine.draw(state)
        return state

    @staticmethod
    def draw(state: GameState) -> Tuple[GameState, StockAction, Tuple[Card, ...]]:
        """
        Tap the stock.

        With cards in the stock, up to `draw_mode.count` cards are taken off
        the stock top one at a time and turned onto the waste, so the packet
        lands flipped. With an empty stock and a non-empty waste, the waste is
        turned back into the stock and one hand is drawn at once. With both
        empty nothing happens.

        Returns:
            Tuple of (new state, outcome, cards now added to the waste)
        """
        if not state.stock.is_empty:
            new_state, drawn = StateTransitionEngine._draw_hand(state)
            return new_state, StockAction.DRAW, drawn
        if not state.waste.is_empty:
            recycled = StateTransitionEngine.recycle(state)
            new_state, drawn = StateTransitionEngine._draw_hand(recycled)
            return new_state, StockAction.RECYCLE, drawn
        return state, StockAction.NONE, ()

    @staticmethod
    def recycle(state: GameState) -> GameState:
        """
        Turn the whole waste back into the stock, face down.

        Reversing the waste restores the stock exactly as it was before the
        pass, so the next pass draws the same groups in the same order.
        """
        stock = tuple(card.flipped(False) for card in reversed(state.waste.cards))
        return replace(
            state,
            stock=StockPile(state.stock.cards + stock),
            waste=WastePile(),
        )

    @staticmethod
    def _draw_hand(state: GameState) -> Tuple[GameState, Tuple[Card, ...]]:
        """
        Turn one hand off the stock top, a card at a time.

        The card nearest the stock top ends up under the packet rather than on
        the waste top: turning cards singly is the only order under which a
        recycled stock deals the same groups card for card.
        """
        count = min(state.draw_mode.count, state.stock.size)
        stock = list(state.stock.cards)
        drawn = tuple(stock.pop().flipped(True) for _ in range(count))
        return (
            replace(
                state,
                stock=StockPile(tuple(stock)),
                waste=WastePile(state.waste.cards + drawn),
            ),
            drawn,
        )

    @staticmethod
    def move(
        state: GameState, source, dest, count: int = 1
    ) -> Tuple[GameState, MoveResult]:
        """
        Move `count` cards from the top of `source` onto `dest`.

        Moving out of the stock, or onto the stock or waste, is never legal.
        Waste and foundation sources give up one card at a time. When the
        move exposes a face-down tableau card, it is turned face up.

        Returns:
            Tuple of (new state, result); the original state on rejection
        """
        try:
            source = PileRef.parse(source)
            dest = PileRef.parse(dest)
        except ValueError as e:
            return state, MoveResult.rejected(str(e))

        def reject(reason: str):
            return state, MoveResult.rejected(reason, source, dest)

        if source == dest:
            return reject("source and destination are the same pile")
        if source.kind is PileKind.STOCK:
            return reject("cards leave the stock only by drawing")
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            return reject(f"invalid card count {count!r}")

        from_pile = state.pile(source)
        to_pile = state.pile(dest)

        if count > from_pile.size:
            return reject(f"{source} holds only {from_pile.size} cards")
        if source.kind is not PileKind.TABLEAU and count != 1:
            return reject(f"only one card at a time leaves the {source.kind.value}")

        start = rules.movable_run_start(from_pile.cards, count)
        if start is None:
            return reject("moved cards are not a face-up descending run")

        moving = from_pile.cards[start:]
        if not to_pile.can_accept(moving):
            return reject(f"{dest} does not accept {moving[0]}")

        remaining = list(from_pile.cards[:start])
        revealed = None
        if (
            source.kind is PileKind.TABLEAU
            and remaining
            and not remaining[-1].face_up
        ):
            revealed = remaining[-1].flipped(True)
            remaining[-1] = revealed

        new_state = state.with_pile(from_pile.with_cards(remaining))
        new_state = new_state.with_pile(to_pile.with_cards(to_pile.cards + moving))
        return new_state, MoveResult(
            True, source=source, dest=dest, cards=moving, revealed=revealed
        )

    @staticmethod
    def clear_tableau_column(state: GameState, index: int) -> GameState:
        """
        Empty a tableau column for scenario construction.

        The column's cards go to the bottom of the stock face down, keeping
        every card on the board.
        """
        column = state.tableau[PileRef.tableau(index).index]
        if column.is_empty:
            return state
        buried = tuple(card.flipped(False) for card in column.cards)
        new_state = state.with_pile(column.with_cards(()))
        return replace(new_state, stock=StockPile(buried + state.stock.cards))

    @staticmethod
    def place_card_on_tableau(
        state: GameState, index: int, suit: Suit, rank: Rank
    ) -> GameState:
        """
        Relocate one card onto a tableau column, face up, for scenario
        construction. The card is taken from whichever pile holds it, so the
        deck never gains a duplicate. No legality check is made.
        """
        target = PileRef.tableau(index)
        card = Card(suit, rank)
        located = state.locate(card)
        if located is None:
            raise ValueError(f"{card} is not on the board")
        ref, position = located
        holder = state.pile(ref)
        cards = list(holder.cards)
        del cards[position]
        new_state = state.with_pile(holder.with_cards(cards))
        column = new_state.pile(target)
        return new_state.with_pile(column.with_cards(column.cards + (card.flipped(True),)))
