import pytest

from klondike.common.card import Card, Rank, Suit
from klondike.common.deck import Deck
from klondike.state.transitions import StateTransitionEngine


def test_deck_initialization():
    deck = Deck()
    assert isinstance(deck.cards, list)
    assert len(deck.cards) == 52
    assert len(set(deck.cards)) == 52


def test_deck_initialization_with_custom_cards():
    cards = [
        Card(Suit.HEARTS, Rank.TWO),
        Card(Suit.DIAMONDS, Rank.ACE),
        Card(Suit.CLUBS, Rank.JACK),
    ]
    deck = Deck(cards)
    assert deck.cards == cards


def test_canonical_order():
    cards = Deck.canonical_cards()
    assert cards[0] == Card(Suit.CLUBS, Rank.ACE)
    assert cards[12] == Card(Suit.CLUBS, Rank.KING)
    assert cards[-1] == Card(Suit.SPADES, Rank.KING)
    assert all(not card.face_up for card in cards)


def test_canonical_cards_is_a_fresh_list():
    cards = Deck.canonical_cards()
    cards.clear()
    assert len(Deck.canonical_cards()) == 52


def test_canonical_identities():
    identities = Deck.canonical_identities()
    assert len(identities) == 52
    assert identities[0] == ("clubs", "ace")
    assert ("hearts", "queen") in identities


def test_deck_deal():
    deck = Deck()
    size = len(deck.cards)
    dealt = deck.deal(3)
    assert dealt == [
        Card(Suit.SPADES, Rank.KING),
        Card(Suit.SPADES, Rank.QUEEN),
        Card(Suit.SPADES, Rank.JACK),
    ]
    assert len(deck.cards) == size - 3


def test_deck_deal_too_many():
    deck = Deck(Deck.canonical_cards()[:2])
    with pytest.raises(IndexError):
        deck.deal(3)
    assert len(deck.cards) == 2


def test_deal_takes_rows_from_the_shuffled_deck():
    seed = "blue02orange"
    order = Deck.shuffled(seed).cards
    state = StateTransitionEngine.deal(seed, initial_draw=False)

    # The first row comes off the end of the deck, one card per column
    assert [column.cards[0] for column in state.tableau] == [
        card.flipped(col == 0) for col, card in enumerate(reversed(order[-7:]))
    ]
    # The deck left over after the deal becomes the stock, bottom first
    assert list(state.stock.cards) == order[:24]
