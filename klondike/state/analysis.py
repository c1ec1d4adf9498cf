"""
Terminal-condition analysis for Klondike states.

`is_won`, `is_stuck` and `is_dead` are queries: they never change the state
they are given.
"""

from typing import List, Set, Tuple

from klondike.common.card import Card
from klondike.state.models import GameState, PileKind, PileRef, StockAction
from klondike.state.transitions import StateTransitionEngine

Move = Tuple[PileRef, PileRef, int]


def is_won(state: GameState) -> bool:
    """All four foundations hold a complete suit."""
    return all(foundation.is_complete for foundation in state.foundations)


def _placements(state: GameState, card: Card) -> List[PileRef]:
    targets = [
        foundation.ref
        for foundation in state.foundations
        if foundation.can_accept((card,))
    ]
    targets.extend(
        column.ref for column in state.tableau if column.can_accept((card,))
    )
    return targets


def legal_moves(state: GameState, include_foundation_sources: bool = False) -> List[Move]:
    """
    Enumerate legal moves as `(source, dest, count)` triples.

    Stock draws are not listed. Moves off a foundation are omitted unless
    requested, since they never advance a game on their own.
    """
    moves: List[Move] = []

    if state.waste.top is not None:
        for dest in _placements(state, state.waste.top):
            moves.append((state.waste.ref, dest, 1))

    for column in state.tableau:
        cards = column.cards
        for start in range(len(cards)):
            run = cards[start:]
            if not run[0].face_up:
                continue
            for other in state.tableau:
                if other.index != column.index and other.can_accept(run):
                    moves.append((column.ref, other.ref, len(run)))
        if column.top is not None and column.top.face_up:
            for foundation in state.foundations:
                if foundation.can_accept((column.top,)):
                    moves.append((column.ref, foundation.ref, 1))

    if include_foundation_sources:
        for foundation in state.foundations:
            if foundation.top is None:
                continue
            for column in state.tableau:
                if column.can_accept((foundation.top,)):
                    moves.append((foundation.ref, column.ref, 1))

    return moves


def _is_productive(state: GameState, move: Move) -> bool:
    source, dest, count = move
    if not (source.kind is PileKind.TABLEAU and dest.kind is PileKind.TABLEAU):
        return True
    column = state.pile(source).cards
    start = len(column) - count
    if start == 0:
        # Shifting a King-led column onto another empty column changes nothing
        return not state.pile(dest).is_empty
    below = column[start - 1]
    if not below.face_up:
        return True
    # A lateral shift only helps if it frees the card underneath for a foundation
    return any(f.can_accept((below,)) for f in state.foundations)


def reachable_waste_cards(state: GameState) -> List[Card]:
    """
    Waste tops a player can reach by tapping the stock through one full
    recycle, with no other moves in between. Includes the current top.
    """
    seen: Set[Card] = set()
    reachable: List[Card] = []
    if state.waste.top is not None:
        seen.add(state.waste.top)
        reachable.append(state.waste.top)

    scratch = state
    recycles = 0
    limit = 2 * (state.stock.size + state.waste.size) + 2
    for _ in range(limit):
        scratch, action, _ = StateTransitionEngine.draw(scratch)
        if action is StockAction.NONE:
            break
        if action is StockAction.RECYCLE:
            recycles += 1
            if recycles > 1:
                break
        top = scratch.waste.top
        if top is not None and top not in seen:
            seen.add(top)
            reachable.append(top)
    return reachable


def is_stuck(state: GameState) -> bool:
    """
    Whether no legal move exists anywhere: the stock is empty, the waste top
    is unplayable and every tableau and foundation transfer is illegal.
    A won game is not stuck.
    """
    if is_won(state):
        return False
    if not state.stock.is_empty:
        return False
    return not legal_moves(state, include_foundation_sources=True)


def is_dead(state: GameState) -> bool:
    """
    Whether no productive move remains, even though taps or lateral shifts
    may still be legal: no tableau or waste transfer that changes the
    position, and no card reachable through the stock that can be played.

    A dead game with cards left in the stock is not stuck.
    """
    if is_won(state):
        return False
    if any(_is_productive(state, move) for move in legal_moves(state)):
        return False
    return not any(_placements(state, card) for card in reachable_waste_cards(state))
