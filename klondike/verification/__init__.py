"""
Integrity verification for the Klondike engine.
"""

from klondike.verification.integrity import (
    CANONICAL_IDENTITIES,
    IntegrityReport,
    audit_identities,
    audit_snapshot,
    validate_integrity,
)

__all__ = [
    "CANONICAL_IDENTITIES",
    "IntegrityReport",
    "audit_identities",
    "audit_snapshot",
    "validate_integrity",
]
