"""Reconciliation outcomes."""

import enum

from pydantic import BaseModel, Field


class SyncOutcome(str, enum.Enum):
    APPLIED = "APPLIED"
    UNCHANGED = "UNCHANGED"
    NOT_REGISTERED = "NOT_REGISTERED"
    UNREACHABLE = "UNREACHABLE"
    SKIPPED = "SKIPPED"
    STALE_SESSION = "STALE_SESSION"


SYNCED_OUTCOMES = frozenset(
    {SyncOutcome.APPLIED, SyncOutcome.UNCHANGED, SyncOutcome.NOT_REGISTERED}
)


class SyncResult(BaseModel):
    """What one reconciliation did.

    Attributes:
        identity: Owner that was reconciled
        outcome: How the run ended
        changes: Account fields that were corrected
    """

    identity: str
    outcome: SyncOutcome
    changes: list[str] = Field(default_factory=list)

    @property
    def synced(self) -> bool:
        """True when the remote was consulted and the store reflects it."""
        return self.outcome in SYNCED_OUTCOMES
