"""Reconciliation of local accounts against the remote authority."""

from academy.modules.reconciliation.engine import ReconciliationEngine
from academy.modules.reconciliation.schemas import SyncOutcome, SyncResult


__all__ = [
    "ReconciliationEngine",
    "SyncOutcome",
    "SyncResult",
]
