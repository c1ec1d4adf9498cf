"""
Synchronization between a local session and a remote game document.
"""

from klondike.sync.reconciler import (
    SnapshotAction,
    SnapshotDecision,
    SyncReconciler,
    evaluate_snapshot,
    parse_snapshot,
)

__all__ = [
    "SnapshotAction",
    "SnapshotDecision",
    "SyncReconciler",
    "evaluate_snapshot",
    "parse_snapshot",
]
