"""
Full-deck integrity auditing.

The auditor checks that the board holds exactly the 52 canonical cards: no
duplicates, nothing missing, nothing foreign. It works on card identities, so
it can audit a live `GameState` as well as a raw serialized snapshot that may
contain identities no `Card` could represent.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from klondike.common.deck import Deck

Identity = Tuple[str, str]

CANONICAL_IDENTITIES = frozenset(Deck.canonical_identities())
DECK_SIZE = len(CANONICAL_IDENTITIES)


@dataclass(frozen=True)
class IntegrityReport:
    """
    Result of an integrity audit.

    Attributes:
        valid: True when the board holds each canonical card exactly once
        total: Number of cards found across all piles
        unique: Number of distinct identities found
        duplicates: Identities found more than once
        missing: Canonical identities not found
        extra: Identities found that are not part of the canonical deck
    """

    valid: bool
    total: int
    unique: int
    duplicates: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        return (
            f"total={self.total} unique={self.unique} "
            f"duplicates={self.duplicates} missing={self.missing} extra={self.extra}"
        )

    def __bool__(self) -> bool:
        return self.valid


def _label(identity: Identity) -> str:
    suit, rank = identity
    return f"{rank} of {suit}"


def audit_identities(identities: Iterable[Identity]) -> IntegrityReport:
    """
    Audit a flat sequence of `(suit, rank)` identities.

    Args:
        identities: Every card identity on the board, from all piles combined

    Returns:
        The integrity report; labels in each list are sorted
    """
    counts = Counter(identities)
    total = sum(counts.values())
    duplicates = sorted(_label(i) for i, n in counts.items() if n > 1)
    missing = sorted(_label(i) for i in CANONICAL_IDENTITIES if i not in counts)
    extra = sorted(_label(i) for i in counts if i not in CANONICAL_IDENTITIES)
    valid = (
        total == DECK_SIZE
        and len(counts) == DECK_SIZE
        and not duplicates
        and not missing
        and not extra
    )
    return IntegrityReport(
        valid=valid,
        total=total,
        unique=len(counts),
        duplicates=duplicates,
        missing=missing,
        extra=extra,
    )


def validate_integrity(state) -> IntegrityReport:
    """
    Audit a game state. Never mutates the state.
    """
    return audit_identities(card.identity for card in state.all_cards())


def _snapshot_identities(data: Dict[str, Any]) -> List[Identity]:
    piles = [data.get("stock"), data.get("waste")]
    piles.extend(data.get("tableau") or [])
    piles.extend(data.get("foundations") or [])
    identities = []
    for pile in piles:
        for entry in pile or []:
            if isinstance(entry, dict):
                identities.append(
                    (str(entry.get("suit")).lower(), str(entry.get("rank")).lower())
                )
            else:
                identities.append(("?", repr(entry)))
    return identities


def audit_snapshot(data: Dict[str, Any]) -> IntegrityReport:
    """
    Audit a serialized snapshot (the `GameState.to_dict` shape) before it is
    turned back into a state. Entries with an unknown suit or rank, or that
    are not card objects at all, are reported as extra.
    """
    return audit_identities(_snapshot_identities(data))
