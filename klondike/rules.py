"""
Move validation for Klondike.

Every function in this module is a pure predicate over cards and card
sequences; none of them touches a game state. Pile classes delegate their
`can_accept` capability here, and the transition engine consults the same
functions before moving anything.
"""

from typing import Optional, Sequence

from klondike.common.card import Card, Rank


def is_opposite_color(a: Card, b: Card) -> bool:
    return a.color != b.color


def can_stack(top: Card, card: Card) -> bool:
    """
    Whether `card` may be placed on `top` inside a tableau run.

    :param top: The card already in the column (must be face up)
    :param card: The incoming card
    :return: True if `card` is one rank below `top` and of the opposite color
    """
    return (
        top.face_up
        and card.rank.value == top.rank.value - 1
        and is_opposite_color(top, card)
    )


def is_valid_run(cards: Sequence[Card]) -> bool:
    """
    Whether the cards form a movable run: all face up, strictly descending by
    one rank, alternating colors. A single face-up card is a run; an empty
    sequence is not.
    """
    if not cards:
        return False
    if not all(card.face_up for card in cards):
        return False
    return all(can_stack(upper, lower) for upper, lower in zip(cards, cards[1:]))


def tableau_accepts(column: Sequence[Card], incoming: Sequence[Card]) -> bool:
    """
    Whether a tableau column accepts an incoming card or run.

    An empty column accepts only a run led by a King, of any suit. A non-empty
    column accepts a run whose leading card stacks on the column's top card.
    """
    if not is_valid_run(incoming):
        return False
    leading = incoming[0]
    if not column:
        return leading.rank == Rank.KING
    return can_stack(column[-1], leading)


def foundation_accepts(
    foundation: Sequence[Card], incoming: Sequence[Card], suit=None
) -> bool:
    """
    Whether a foundation accepts an incoming card.

    Foundations take exactly one card at a time. An empty foundation takes an
    ace; its suit is then fixed by that ace unless `suit` pins it up front.
    A non-empty foundation takes the next rank of its suit.
    """
    if len(incoming) != 1:
        return False
    card = incoming[0]
    if not card.face_up:
        return False
    if not foundation:
        return card.rank == Rank.ACE and (suit is None or card.suit == suit)
    top = foundation[-1]
    return card.suit == top.suit and card.rank.value == top.rank.value + 1


def movable_run_start(column: Sequence[Card], count: int) -> Optional[int]:
    """
    Index where a run of `count` cards would start in `column`.

    :return: The start index, or None if the top `count` cards are not a run
    """
    if count < 1 or count > len(column):
        return None
    start = len(column) - count
    if not is_valid_run(column[start:]):
        return None
    return start
