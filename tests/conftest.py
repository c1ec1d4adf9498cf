"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by the test suite: a card
shorthand parser, a board builder for hand-made positions, sessions and an
in-memory store.
"""

import pytest

from klondike.adapters import InMemoryDocumentStore
from klondike.common.card import Card, Rank, Suit
from klondike.common.deck import Deck
from klondike.engine import GameSession
from klondike.state.models import (
    DrawMode,
    FoundationPile,
    GameState,
    StockPile,
    TableauPile,
    WastePile,
)

_RANKS = {
    "A": Rank.ACE,
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
}
_SUITS = {"C": Suit.CLUBS, "D": Suit.DIAMONDS, "H": Suit.HEARTS, "S": Suit.SPADES}


def parse_card(code: str, face_up: bool = True) -> Card:
    """Parse shorthand such as "KS", "10H" or "AD"."""
    return Card(_SUITS[code[-1]], _RANKS[code[:-1]], face_up)


def build_state(
    tableau=None,
    waste=(),
    stock=None,
    foundations=None,
    fill_column=None,
    draw_mode=DrawMode.THREE,
    revision=0,
    game_id="test-game",
) -> GameState:
    """
    Build a complete 52-card position.

    Every card not listed goes face down to the bottom of the stock, or
    underneath `fill_column` when one is given.
    """
    columns = {i: list(cards) for i, cards in (tableau or {}).items()}
    foundations = {i: list(cards) for i, cards in (foundations or {}).items()}
    stock = [card.flipped(False) for card in (stock or [])]

    used = set(stock) | set(waste)
    for cards in list(columns.values()) + list(foundations.values()):
        used.update(cards)
    rest = [card for card in Deck.canonical_cards() if card not in used]

    if fill_column is None:
        stock = rest + stock
    else:
        columns[fill_column] = rest + columns.get(fill_column, [])

    return GameState(
        stock=StockPile(tuple(stock)),
        waste=WastePile(tuple(waste)),
        tableau=tuple(TableauPile(tuple(columns.get(i, ())), i) for i in range(7)),
        foundations=tuple(
            FoundationPile(tuple(foundations.get(i, ())), i) for i in range(4)
        ),
        draw_mode=draw_mode,
        seed="hand-built",
        revision=revision,
        game_id=game_id,
    )


@pytest.fixture
def card():
    """Card shorthand parser."""
    return parse_card


@pytest.fixture
def make_state():
    """Builder for hand-made positions."""
    return build_state


@pytest.fixture
def session():
    """A session with the default configuration and no remote store."""
    return GameSession(replica_id="local")


@pytest.fixture
def store():
    """A fresh in-memory document store."""
    return InMemoryDocumentStore()
