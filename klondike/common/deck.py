"""
This module contains the Deck class and the deterministic shuffler.

The shuffle is a pure function of the seed string: the seed is digested with
SHA-256 (so it does not depend on `PYTHONHASHSEED` or the interpreter run),
the digest seeds a private generator, and a Fisher-Yates pass over the
canonical card order uses that generator only.

>>> deck = Deck.shuffled("blue02orange")
>>> len(deck.cards)
52
>>> deck.cards == Deck.shuffled("blue02orange").cards
True
"""

import hashlib
import random
from typing import List, Optional, Tuple

from klondike.common.card import Card, Rank, Suit
from klondike.errors import InvalidConfigurationError

SUIT_ORDER = [Suit.CLUBS, Suit.DIAMONDS, Suit.HEARTS, Suit.SPADES]


def seed_to_state(seed: str) -> int:
    """
    Derive the numeric generator state for a seed string.

    :param seed: The game seed
    :return: A 64-bit integer that is stable across runs and processes
    :raises InvalidConfigurationError: If the seed is not a non-blank string
    """
    if not isinstance(seed, str):
        raise InvalidConfigurationError(
            f"Seed must be a string, got {type(seed).__name__}"
        )
    if not seed.strip():
        raise InvalidConfigurationError("Seed must not be empty")
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def shuffle(seed: str) -> List[Card]:
    """
    Return the 52-card permutation for a seed, every card face down.

    :param seed: The game seed
    :return: A new list holding each of the 52 cards exactly once
    """
    rng = random.Random(seed_to_state(seed))
    cards = Deck.canonical_cards()
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randrange(i + 1)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


class Deck:
    """
    A class representing a deck of cards.
    """

    # Precompute the canonical deck
    _default_deck = [Card(suit, rank) for suit in SUIT_ORDER for rank in Rank]

    def __init__(self, cards: Optional[List[Card]] = None):
        """
        Initialize a Deck instance.

        :param cards: A list of Card instances to populate the deck (optional).
                      If not provided, the canonical ordered deck is used.
        """
        if cards is None:
            self.cards: List[Card] = self.canonical_cards()
        else:
            self.cards = list(cards)

    @classmethod
    def canonical_cards(cls) -> List[Card]:
        """
        The 52 cards in suit-then-rank order.

        :return: A fresh list, safe for the caller to mutate
        """
        return list(cls._default_deck)

    @staticmethod
    def canonical_identities() -> List[Tuple[str, str]]:
        """The 52 `(suit, rank)` identities in canonical order."""
        return [(suit.value, rank.key) for suit in SUIT_ORDER for rank in Rank]

    @classmethod
    def shuffled(cls, seed: str) -> "Deck":
        """
        Build a deck ordered by the deterministic shuffle of `seed`.
        """
        return cls(shuffle(seed))

    def deal(self, num_cards=1) -> List[Card]:
        """
        Pop n cards from the end of the deck.

        :return: The dealt cards, in the order they were popped.
        :raises IndexError: If the deck holds fewer than `num_cards` cards.
        """
        if num_cards > len(self.cards):
            raise IndexError(
                f"Cannot deal {num_cards} cards from a deck of {len(self.cards)}"
            )
        return [self.cards.pop() for _ in range(num_cards)]
