import pytest
from klondike.common.card import Card, Color, Rank, Suit


def test_card_initialization():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert card.suit == Suit.HEARTS
    assert card.rank == Rank.EIGHT
    assert card.face_up is False


def test_card_repr():
    card = Card(Suit.HEARTS, Rank.EIGHT, face_up=True)
    assert repr(card) == "Card(Suit.HEARTS, Rank.EIGHT, face_up=True)"


def test_card_str():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert str(card) == "8 of ♥"
    assert str(Card(Suit.SPADES, Rank.KING)) == "K of ♠"


def test_invalid_suit():
    with pytest.raises(TypeError):
        Card("Z", Rank.EIGHT)


def test_invalid_rank():
    with pytest.raises(TypeError):
        Card(Suit.HEARTS, "invalid")


def test_card_color():
    assert Card(Suit.HEARTS, Rank.TWO).color == Color.RED
    assert Card(Suit.DIAMONDS, Rank.TWO).color == Color.RED
    assert Card(Suit.CLUBS, Rank.TWO).color == Color.BLACK
    assert Card(Suit.SPADES, Rank.TWO).color == Color.BLACK


def test_face_up_is_not_part_of_identity():
    down = Card(Suit.CLUBS, Rank.QUEEN)
    up = down.flipped(True)
    assert up == down
    assert hash(up) == hash(down)
    assert up.face_up and not down.face_up
    assert len({up, down}) == 1


def test_flipped_returns_same_card_when_unchanged():
    card = Card(Suit.CLUBS, Rank.QUEEN, face_up=True)
    assert card.flipped(True) is card


def test_card_is_read_only():
    card = Card(Suit.CLUBS, Rank.QUEEN)
    with pytest.raises(AttributeError):
        card.suit = Suit.HEARTS


def test_card_dict_form():
    card = Card(Suit.SPADES, Rank.TEN, face_up=True)
    assert card.to_dict() == {"suit": "spades", "rank": "ten", "face_up": True}
    restored = Card.from_dict(card.to_dict())
    assert restored == card and restored.face_up


def test_card_from_dict_rejects_unknown_suit():
    with pytest.raises(ValueError):
        Card.from_dict({"suit": "stars", "rank": "ace"})


@pytest.mark.parametrize(
    "value,expected",
    [("queen", Rank.QUEEN), ("KING", Rank.KING), (1, Rank.ACE), (Rank.TEN, Rank.TEN)],
)
def test_rank_parse(value, expected):
    assert Rank.parse(value) == expected


@pytest.mark.parametrize("value", ["jokers", 0, 14, True, None])
def test_rank_parse_rejects(value):
    with pytest.raises(ValueError):
        Rank.parse(value)


def test_suit_parse():
    assert Suit.parse("Hearts") == Suit.HEARTS
    assert Suit.parse(Suit.CLUBS) == Suit.CLUBS
    with pytest.raises(ValueError):
        Suit.parse("cups")
