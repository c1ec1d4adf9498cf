"""
Immutable state models for the Klondike engine.

This module provides frozen dataclasses for the piles and the aggregate game
state. They are designed to be used with the pure transition functions in
`klondike.state.transitions`, which return new state instances rather than
modifying existing ones. A session swaps its state reference exactly once per
committed command, so readers never observe a half-applied mutation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple
import json
import uuid

from klondike import rules
from klondike.common.card import Card, Suit
from klondike.errors import InvalidConfigurationError

TABLEAU_COLUMNS = 7
FOUNDATION_COUNT = 4


class DrawMode(Enum):
    """How many cards a single draw moves from Stock to Waste."""

    ONE = "one"
    THREE = "three"

    @property
    def count(self) -> int:
        return 1 if self is DrawMode.ONE else 3

    @classmethod
    def parse(cls, value) -> "DrawMode":
        """
        Resolve a draw mode from a `DrawMode`, a key ("one", "three") or a count.

        :raises InvalidConfigurationError: If the value names no draw mode
        """
        if isinstance(value, DrawMode):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for mode in cls:
                if mode.value == key:
                    return mode
        if isinstance(value, int) and not isinstance(value, bool):
            for mode in cls:
                if mode.count == value:
                    return mode
        raise InvalidConfigurationError(
            f"Unknown draw mode {value!r}; expected one of "
            f"{[mode.value for mode in cls]}"
        )


class StockAction(Enum):
    """Outcome of tapping the stock."""

    DRAW = "draw"
    RECYCLE = "recycle"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


class PileKind(Enum):
    STOCK = "stock"
    WASTE = "waste"
    TABLEAU = "tableau"
    FOUNDATION = "foundation"


@dataclass(frozen=True)
class PileRef:
    """
    Address of a single pile. Stock and Waste always use index 0.

    >>> PileRef.parse("tableau:3")
    PileRef(kind=<PileKind.TABLEAU: 'tableau'>, index=3)
    """

    kind: PileKind
    index: int = 0

    def __post_init__(self):
        limit = {
            PileKind.STOCK: 1,
            PileKind.WASTE: 1,
            PileKind.TABLEAU: TABLEAU_COLUMNS,
            PileKind.FOUNDATION: FOUNDATION_COUNT,
        }[self.kind]
        if not isinstance(self.index, int) or not 0 <= self.index < limit:
            raise ValueError(f"No {self.kind.value} pile at index {self.index!r}")

    @classmethod
    def parse(cls, value) -> "PileRef":
        """
        Resolve a reference from a `PileRef`, a `(kind, index)` pair or a
        string such as "waste", "tableau:3" or "foundation:0".

        :raises ValueError: If the reference is malformed or out of range
        """
        if isinstance(value, PileRef):
            return value
        if isinstance(value, (tuple, list)) and len(value) == 2:
            kind, index = value
        elif isinstance(value, str):
            kind, _, index = value.strip().lower().partition(":")
            index = index or "0"
        else:
            raise ValueError(f"Invalid pile reference: {value!r}")
        try:
            return cls(PileKind(kind.lower() if isinstance(kind, str) else kind), int(index))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid pile reference: {value!r}") from e

    @classmethod
    def stock(cls) -> "PileRef":
        return cls(PileKind.STOCK)

    @classmethod
    def waste(cls) -> "PileRef":
        return cls(PileKind.WASTE)

    @classmethod
    def tableau(cls, index: int) -> "PileRef":
        return cls(PileKind.TABLEAU, index)

    @classmethod
    def foundation(cls, index: int) -> "PileRef":
        return cls(PileKind.FOUNDATION, index)

    def __str__(self) -> str:
        if self.kind in (PileKind.STOCK, PileKind.WASTE):
            return self.kind.value
        return f"{self.kind.value}:{self.index}"


@dataclass(frozen=True)
class Pile(ABC):
    """
    An ordered, immutable sequence of cards. Index 0 is the bottom card, the
    last card is the top. Each pile kind decides what it accepts.
    """

    cards: Tuple[Card, ...] = ()
    index: int = 0

    kind: ClassVar[PileKind]

    @abstractmethod
    def can_accept(self, cards: Sequence[Card]) -> bool:
        """Whether the incoming card or run may be placed on this pile."""

    @property
    def ref(self) -> PileRef:
        return PileRef(self.kind, self.index)

    @property
    def top(self) -> Optional[Card]:
        return self.cards[-1] if self.cards else None

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def with_cards(self, cards: Sequence[Card]) -> "Pile":
        return replace(self, cards=tuple(cards))

    def to_list(self) -> List[Dict[str, Any]]:
        return [card.to_dict() for card in self.cards]


@dataclass(frozen=True)
class StockPile(Pile):
    """Face-down draw source; only draw and recycle change it."""

    kind: ClassVar[PileKind] = PileKind.STOCK

    def can_accept(self, cards: Sequence[Card]) -> bool:
        return False


@dataclass(frozen=True)
class WastePile(Pile):
    """Face-up cards drawn from the stock, most recent on top."""

    kind: ClassVar[PileKind] = PileKind.WASTE

    def can_accept(self, cards: Sequence[Card]) -> bool:
        return False


@dataclass(frozen=True)
class TableauPile(Pile):
    """
    One of the seven cascades. An empty column stays on the board at its
    index and accepts only a King-led run.
    """

    kind: ClassVar[PileKind] = PileKind.TABLEAU

    def can_accept(self, cards: Sequence[Card]) -> bool:
        return rules.tableau_accepts(self.cards, cards)

    @property
    def face_up_count(self) -> int:
        return sum(1 for card in self.cards if card.face_up)


@dataclass(frozen=True)
class FoundationPile(Pile):
    """Per-suit build pile, ace to king. The suit is fixed by the first ace."""

    kind: ClassVar[PileKind] = PileKind.FOUNDATION

    @property
    def suit(self) -> Optional[Suit]:
        return self.cards[0].suit if self.cards else None

    @property
    def is_complete(self) -> bool:
        return len(self.cards) == 13

    def can_accept(self, cards: Sequence[Card]) -> bool:
        return rules.foundation_accepts(self.cards, cards)


@dataclass(frozen=True)
class GameState:
    """
    Immutable representation of a Klondike game.

    Attributes:
        stock: Face-down draw pile
        waste: Face-up pile receiving drawn cards
        tableau: The seven cascades, always seven entries in index order
        foundations: The four build piles, always four entries in index order
        draw_mode: Cards moved per draw
        seed: Seed the deal was shuffled from
        revision: Incremented on every committed mutation
        game_id: Identifier of the shared game document
    """

    stock: StockPile = field(default_factory=StockPile)
    waste: WastePile = field(default_factory=WastePile)
    tableau: Tuple[TableauPile, ...] = field(
        default_factory=lambda: tuple(TableauPile(index=i) for i in range(TABLEAU_COLUMNS))
    )
    foundations: Tuple[FoundationPile, ...] = field(
        default_factory=lambda: tuple(
            FoundationPile(index=i) for i in range(FOUNDATION_COUNT)
        )
    )
    draw_mode: DrawMode = DrawMode.THREE
    seed: str = ""
    revision: int = 0
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if len(self.tableau) != TABLEAU_COLUMNS:
            raise ValueError(f"Expected {TABLEAU_COLUMNS} tableau columns")
        if len(self.foundations) != FOUNDATION_COUNT:
            raise ValueError(f"Expected {FOUNDATION_COUNT} foundations")

    def pile(self, ref) -> Pile:
        """Look up a pile by reference (see `PileRef.parse`)."""
        ref = PileRef.parse(ref)
        if ref.kind is PileKind.STOCK:
            return self.stock
        if ref.kind is PileKind.WASTE:
            return self.waste
        if ref.kind is PileKind.TABLEAU:
            return self.tableau[ref.index]
        return self.foundations[ref.index]

    def with_pile(self, pile: Pile) -> "GameState":
        """Return a state with `pile` replacing the pile at its reference."""
        if isinstance(pile, StockPile):
            return replace(self, stock=pile)
        if isinstance(pile, WastePile):
            return replace(self, waste=pile)
        if isinstance(pile, TableauPile):
            columns = list(self.tableau)
            columns[pile.index] = pile
            return replace(self, tableau=tuple(columns))
        foundations = list(self.foundations)
        foundations[pile.index] = pile
        return replace(self, foundations=tuple(foundations))

    def piles(self) -> Iterator[Pile]:
        """All thirteen piles: stock, waste, tableau 0..6, foundations 0..3."""
        yield self.stock
        yield self.waste
        yield from self.tableau
        yield from self.foundations

    def all_cards(self) -> List[Card]:
        return [card for pile in self.piles() for card in pile.cards]

    def locate(self, card: Card) -> Optional[Tuple[PileRef, int]]:
        """Find the pile and position holding a card identity."""
        for pile in self.piles():
            for position, candidate in enumerate(pile.cards):
                if candidate == card:
                    return pile.ref, position
        return None

    @property
    def card_count(self) -> int:
        return sum(pile.size for pile in self.piles())

    def layout(self) -> Dict[str, Any]:
        """Pile contents and draw mode; the part of a snapshot that is game content."""
        return {
            "draw_mode": self.draw_mode.value,
            "stock": self.stock.to_list(),
            "waste": self.waste.to_list(),
            "tableau": [column.to_list() for column in self.tableau],
            "foundations": [foundation.to_list() for foundation in self.foundations],
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the game state to a dictionary suitable for serialization.

        Every tableau column is written at its index, an empty column as an
        empty list, so column positions survive a round trip.
        """
        data = {
            "game_id": self.game_id,
            "seed": self.seed,
            "revision": self.revision,
        }
        data.update(self.layout())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Rebuild a game state from `to_dict` output.

        :raises ValueError: If a pile list is missing or malformed, or a card
            names an unknown suit or rank
        :raises KeyError: If a required key is absent
        """
        tableau = data["tableau"]
        foundations = data["foundations"]
        if not isinstance(tableau, list) or len(tableau) != TABLEAU_COLUMNS:
            raise ValueError(f"Snapshot must hold {TABLEAU_COLUMNS} tableau columns")
        if not isinstance(foundations, list) or len(foundations) != FOUNDATION_COUNT:
            raise ValueError(f"Snapshot must hold {FOUNDATION_COUNT} foundations")

        def cards(entries) -> Tuple[Card, ...]:
            if not isinstance(entries, list):
                raise ValueError(f"Pile must be a list, got {type(entries).__name__}")
            return tuple(Card.from_dict(entry) for entry in entries)

        return cls(
            stock=StockPile(cards(data["stock"])),
            waste=WastePile(cards(data["waste"])),
            tableau=tuple(
                TableauPile(cards(column), i) for i, column in enumerate(tableau)
            ),
            foundations=tuple(
                FoundationPile(cards(pile), i) for i, pile in enumerate(foundations)
            ),
            draw_mode=DrawMode.parse(data["draw_mode"]),
            seed=str(data.get("seed", "")),
            revision=int(data.get("revision", 0)),
            game_id=str(data.get("game_id") or uuid.uuid4()),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        return cls.from_dict(json.loads(json_str))
