"""
Tests for the full-deck integrity auditor.
"""

from dataclasses import replace

from klondike.common.deck import Deck
from klondike.state.models import StockPile, WastePile
from klondike.state.transitions import StateTransitionEngine
from klondike.verification import (
    CANONICAL_IDENTITIES,
    audit_identities,
    audit_snapshot,
    validate_integrity,
)


def test_canonical_deck_is_valid():
    report = audit_identities(Deck.canonical_identities())
    assert report.valid
    assert report.total == 52
    assert report.unique == 52
    assert not report.duplicates and not report.missing and not report.extra
    assert len(CANONICAL_IDENTITIES) == 52


def test_dealt_state_is_valid():
    report = validate_integrity(StateTransitionEngine.deal("blue02orange"))
    assert report
    assert report.total == 52


def test_duplicate_and_missing_card():
    state = StateTransitionEngine.deal("blue02orange", initial_draw=False)
    stock = list(state.stock.cards)
    lost = stock[0]
    stock[0] = state.tableau[0].top
    broken = replace(state, stock=StockPile(tuple(stock)))

    report = validate_integrity(broken)

    assert not report.valid
    assert report.total == 52
    assert report.unique == 51
    top = state.tableau[0].top
    assert report.duplicates == [f"{top.rank.key} of {top.suit.value}"]
    assert report.missing == [f"{lost.rank.key} of {lost.suit.value}"]


def test_lost_card():
    state = StateTransitionEngine.deal("blue02orange", initial_draw=False)
    broken = replace(state, stock=StockPile(state.stock.cards[1:]))
    report = validate_integrity(broken)
    assert not report.valid
    assert report.total == 51
    assert len(report.missing) == 1


def test_extra_card(card):
    state = StateTransitionEngine.deal("blue02orange", initial_draw=False)
    broken = replace(state, waste=WastePile((card("AS"),)))
    report = validate_integrity(broken)
    assert not report.valid
    assert report.total == 53
    assert report.duplicates == ["ace of spades"]


def test_validation_does_not_mutate():
    state = StateTransitionEngine.deal("blue02orange")
    before = state.layout()
    validate_integrity(state)
    assert state.layout() == before


def test_snapshot_audit_reports_foreign_cards():
    data = StateTransitionEngine.deal("blue02orange").to_dict()
    data["stock"][0] = {"suit": "stars", "rank": "ace", "face_up": False}
    data["stock"][1] = "not a card"
    report = audit_snapshot(data)
    assert not report.valid
    assert "ace of stars" in report.extra
    assert len(report.extra) == 2
    assert len(report.missing) == 2


def test_snapshot_audit_of_valid_snapshot():
    data = StateTransitionEngine.deal("crimson51kite").to_dict()
    assert audit_snapshot(data).valid


def test_report_dict():
    report = audit_identities([("clubs", "ace")])
    data = report.to_dict()
    assert data["valid"] is False
    assert data["total"] == 1
    assert len(data["missing"]) == 51
    assert "missing" in report.summary()
