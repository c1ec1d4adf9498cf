"""
Tests for the Klondike move predicates.
"""

import pytest

from klondike import rules


def test_can_stack_alternating_descending(card):
    assert rules.can_stack(card("KS"), card("QH"))
    assert rules.can_stack(card("8D"), card("7C"))


def test_can_stack_rejects_same_color(card):
    assert not rules.can_stack(card("KS"), card("QC"))
    assert not rules.can_stack(card("8D"), card("7H"))


def test_can_stack_rejects_wrong_rank(card):
    assert not rules.can_stack(card("KS"), card("JH"))
    assert not rules.can_stack(card("7D"), card("8C"))


def test_can_stack_requires_face_up_top(card):
    assert not rules.can_stack(card("KS", face_up=False), card("QH"))


def test_is_valid_run(card):
    assert rules.is_valid_run([card("KS"), card("QH"), card("JC")])
    assert rules.is_valid_run([card("5D")])
    assert not rules.is_valid_run([])
    assert not rules.is_valid_run([card("KS"), card("QS")])
    assert not rules.is_valid_run([card("KS"), card("QH", face_up=False)])


def test_empty_tableau_accepts_only_kings(card):
    assert rules.tableau_accepts([], [card("KD")])
    assert rules.tableau_accepts([], [card("KC"), card("QD")])
    assert not rules.tableau_accepts([], [card("QD")])
    assert not rules.tableau_accepts([], [card("AS")])


def test_tableau_accepts_on_top_card(card):
    column = [card("4H", face_up=False), card("9H")]
    assert rules.tableau_accepts(column, [card("8S")])
    assert rules.tableau_accepts(column, [card("8C"), card("7D")])
    assert not rules.tableau_accepts(column, [card("8D")])
    assert not rules.tableau_accepts(column, [card("7S")])


def test_tableau_rejects_face_down_run(card):
    assert not rules.tableau_accepts([card("9H")], [card("8S", face_up=False)])


def test_empty_foundation_takes_any_ace(card):
    assert rules.foundation_accepts([], [card("AH")])
    assert rules.foundation_accepts([], [card("AS")])
    assert not rules.foundation_accepts([], [card("2H")])


def test_foundation_suit_pin(card):
    from klondike.common.card import Suit

    assert rules.foundation_accepts([], [card("AH")], suit=Suit.HEARTS)
    assert not rules.foundation_accepts([], [card("AS")], suit=Suit.HEARTS)


def test_foundation_builds_up_in_suit(card):
    foundation = [card("AH"), card("2H")]
    assert rules.foundation_accepts(foundation, [card("3H")])
    assert not rules.foundation_accepts(foundation, [card("3D")])
    assert not rules.foundation_accepts(foundation, [card("4H")])


def test_foundation_takes_one_card(card):
    assert not rules.foundation_accepts([card("AH")], [card("2H"), card("3H")])


def test_foundation_rejects_face_down(card):
    assert not rules.foundation_accepts([], [card("AH", face_up=False)])


@pytest.mark.parametrize("count,expected", [(1, 3), (2, 2), (3, None), (0, None), (5, None)])
def test_movable_run_start(card, count, expected):
    column = [card("2C", face_up=False), card("9S"), card("JH"), card("10S")]
    # 9S/JH is not a run, so at most two cards move
    assert rules.movable_run_start(column, count) == expected
