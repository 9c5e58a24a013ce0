"""Sync modules: reconciliation and cycle orchestration."""

from .reconciler import (
    ConflictPolicy,
    ServerWinsPolicy,
    LocalWinsPolicy,
    InteractivePolicy,
    MergeResult,
    Reconciler,
    create_policy,
)
from .orchestrator import SyncState, SyncCycleReport, SyncOrchestrator

__all__ = [
    "ConflictPolicy",
    "ServerWinsPolicy",
    "LocalWinsPolicy",
    "InteractivePolicy",
    "MergeResult",
    "Reconciler",
    "create_policy",
    "SyncState",
    "SyncCycleReport",
    "SyncOrchestrator",
]
