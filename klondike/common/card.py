"""
This module defines the `Suit`, `Rank`, `Color` and `Card` classes, which are
used to represent the playing cards of a Klondike game.

- `Suit`: An enum representing the four suits of a standard deck: clubs,
diamonds, hearts and spades. Each suit knows its color.

- `Rank`: An enum representing the thirteen ranks, ace (1) through king (13).

- `Card`: A playing card. The identity of a card is its `(suit, rank)` pair,
which never changes. Whether the card is face up is the only mutable aspect
of a card and is changed by producing a flipped copy, so a card that lives in
an immutable pile is never changed in place.

>>> card = Card(Suit.HEARTS, Rank.KING)
>>> print(card)
K of ♥
>>> card.face_up
False
>>> card.flipped(True) == card
True
"""

from enum import Enum, unique
from typing import Tuple


@unique
class Color(Enum):
    """Card colors used for alternating tableau runs."""

    RED = "red"
    BLACK = "black"


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @property
    def color(self) -> Color:
        """The color of the suit, red for hearts and diamonds."""
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return Color.RED
        return Color.BLACK

    @classmethod
    def parse(cls, value) -> "Suit":
        """
        Resolve a suit from a `Suit`, its value ("hearts") or its name ("HEARTS").

        :raises ValueError: If the value names no suit.
        """
        if isinstance(value, Suit):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for suit in cls:
                if suit.value == key:
                    return suit
        raise ValueError(f"Invalid suit: {value!r}")

    def __str__(self) -> str:
        return self.symbol


_SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}


@unique
class Rank(Enum):
    """
    Enum for ranks in a card deck, valued by their Klondike order.
    """

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def key(self) -> str:
        """The lower-case identifier used in snapshots ("ace", "king")."""
        return self.name.lower()

    @property
    def rank_str(self):
        """A short string representation of the rank."""
        if self in (Rank.ACE, Rank.JACK, Rank.QUEEN, Rank.KING):
            return self.name[0]
        return str(self.value)

    @classmethod
    def parse(cls, value) -> "Rank":
        """
        Resolve a rank from a `Rank`, its key ("queen"), its name or its number.

        :raises ValueError: If the value names no rank.
        """
        if isinstance(value, Rank):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid rank: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ValueError(f"Invalid rank: {value!r}") from None
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise ValueError(f"Invalid rank: {value!r}")

    def __str__(self) -> str:
        return self.rank_str


class Card:
    """
    Class representing a playing card.

    Two cards are equal when they share suit and rank; the face-up flag is
    not part of a card's identity.

    >>> Card(Suit.SPADES, Rank.ACE, face_up=True)
    Card(Suit.SPADES, Rank.ACE, face_up=True)
    """

    __slots__ = ("_suit", "_rank", "_face_up")

    def __init__(self, suit: Suit, rank: Rank, face_up: bool = False):
        """
        Initialize a Card instance.

        :param suit: Suit of the card (one of the Suit enums)
        :param rank: Rank of the card (one of the Rank enums)
        :param face_up: Whether the card is showing its face
        """
        if not isinstance(suit, Suit):
            raise TypeError(f"Invalid suit: {suit}")
        if not isinstance(rank, Rank):
            raise TypeError(f"Invalid rank: {rank}")
        self._suit = suit
        self._rank = rank
        self._face_up = bool(face_up)

    @property
    def suit(self) -> Suit:
        return self._suit

    @property
    def rank(self) -> Rank:
        return self._rank

    @property
    def face_up(self) -> bool:
        return self._face_up

    @property
    def color(self) -> Color:
        return self._suit.color

    @property
    def identity(self) -> Tuple[str, str]:
        """The `(suit, rank)` identity as plain strings."""
        return (self._suit.value, self._rank.key)

    def flipped(self, face_up: bool) -> "Card":
        """
        Return this card with the given face-up flag.

        :param face_up: The desired face-up flag
        :return: self when the flag already matches, else a copy
        """
        if self._face_up == face_up:
            return self
        return Card(self._suit, self._rank, face_up)

    def to_dict(self):
        return {
            "suit": self._suit.value,
            "rank": self._rank.key,
            "face_up": self._face_up,
        }

    @classmethod
    def from_dict(cls, data) -> "Card":
        """
        Build a card from its serialized form.

        :raises ValueError: If the suit or rank is unknown.
        """
        return cls(
            Suit.parse(data["suit"]),
            Rank.parse(data["rank"]),
            bool(data.get("face_up", False)),
        )

    def __eq__(self, other):
        """
        Checks if this card is equal to another card.

        :param other: The other card to compare to.
        :return: True if the cards have the same rank and suit, False otherwise.
        """
        if isinstance(other, Card):
            return self._rank == other._rank and self._suit == other._suit
        return NotImplemented

    def __hash__(self):
        return hash((self._suit, self._rank))

    def __repr__(self) -> str:
        return (
            f"Card(Suit.{self._suit.name}, Rank.{self._rank.name}, "
            f"face_up={self._face_up})"
        )

    def __str__(self) -> str:
        return f"{self._rank.rank_str} of {self._suit}"
