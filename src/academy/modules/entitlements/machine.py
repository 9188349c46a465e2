"""Entitlement state machine.

The subscription state of an OWNER is derived from its account record plus
whether a PENDING approval request exists. Transitions are validated here
and expressed as field patches for the account store, so every caller
(administrator, activation code, reconciliation) mutates accounts the same
way.

    FREE      -> PENDING, ACTIVE
    PENDING   -> ACTIVE, FREE
    ACTIVE    -> PAUSED, CANCELLED
    PAUSED    -> ACTIVE, CANCELLED
    EXPIRED   -> PENDING, ACTIVE, CANCELLED
    CANCELLED -> FREE

Quotas are not read here: callers pass the limits of their runtime
configuration into the field patches.
"""

import enum
from datetime import datetime
from typing import Any

from dateutil.relativedelta import relativedelta

from academy.core.constants import LIFETIME_TERM
from academy.core.database import utcnow
from academy.core.errors import InvalidTransitionError
from academy.modules.accounts.models import Plan, PlanType, TenantAccount
from academy.modules.remote.base import RemoteStatus


class EntitlementState(str, enum.Enum):
    FREE = "FREE"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS: dict[EntitlementState, frozenset[EntitlementState]] = {
    EntitlementState.FREE: frozenset({EntitlementState.PENDING, EntitlementState.ACTIVE}),
    EntitlementState.PENDING: frozenset({EntitlementState.ACTIVE, EntitlementState.FREE}),
    EntitlementState.ACTIVE: frozenset(
        {EntitlementState.PAUSED, EntitlementState.CANCELLED}
    ),
    EntitlementState.PAUSED: frozenset(
        {EntitlementState.ACTIVE, EntitlementState.CANCELLED}
    ),
    EntitlementState.EXPIRED: frozenset(
        {EntitlementState.PENDING, EntitlementState.ACTIVE, EntitlementState.CANCELLED}
    ),
    EntitlementState.CANCELLED: frozenset({EntitlementState.FREE}),
}


def is_term_over(account: TenantAccount, now: datetime | None = None) -> bool:
    """True for a FIXED_TERM subscription whose end date has passed."""
    if account.plan != Plan.SUBSCRIBED or account.plan_type != PlanType.FIXED_TERM:
        return False
    return account.end_date is None or account.end_date <= (now or utcnow())


def derive_state(
    account: TenantAccount,
    has_pending_request: bool,
    now: datetime | None = None,
) -> EntitlementState:
    """Current state of an account.

    CANCELLED is transient: a revoke lands on FREE in the same write, so it
    is never derived from a stored record. An expired term with a renewal
    request waiting is PENDING.
    """
    if is_term_over(account, now):
        if has_pending_request:
            return EntitlementState.PENDING
        return EntitlementState.EXPIRED
    if account.plan == Plan.SUBSCRIBED:
        return EntitlementState.ACTIVE if account.subscription_active else EntitlementState.PAUSED
    if has_pending_request:
        return EntitlementState.PENDING
    return EntitlementState.FREE


def can_transition(current: EntitlementState, target: EntitlementState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: EntitlementState, target: EntitlementState) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is legal."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


# ============================================================
# Field patches
# ============================================================


def free_defaults(student_quota: int) -> dict[str, Any]:
    """Fields of a FREE account with no subscription."""
    return {
        "plan": Plan.FREE,
        "subscription_active": False,
        "plan_type": PlanType.NONE,
        "start_date": None,
        "end_date": None,
        "student_quota": student_quota,
    }


def activation_fields(
    now: datetime, months: int = LIFETIME_TERM, *, student_quota: int
) -> dict[str, Any]:
    """Fields of a freshly activated subscription.

    Args:
        now: Activation time, becomes the start date
        months: Requested term; ``LIFETIME_TERM`` means no end date
        student_quota: Quota of a subscribed institute
    """
    if months == LIFETIME_TERM:
        plan_type, end_date = PlanType.LIFETIME, None
    else:
        plan_type, end_date = PlanType.FIXED_TERM, now + relativedelta(months=months)
    return {
        "plan": Plan.SUBSCRIBED,
        "subscription_active": True,
        "plan_type": plan_type,
        "start_date": now,
        "end_date": end_date,
        "student_quota": student_quota,
    }


def pause_fields(paused: bool) -> dict[str, Any]:
    """Only ``subscription_active`` flips; plan, term and quota are kept."""
    return {"subscription_active": not paused}


def remote_corrections(
    account: TenantAccount,
    status: RemoteStatus,
    now: datetime,
    *,
    student_quota: int,
) -> dict[str, Any]:
    """Corrections implied by the remote flags, as a minimal field diff.

    Corrections only move towards the remote decision: acceptance activates
    a FREE account, and the pause flag mirrors onto ``subscription_active``
    of a subscribed one. A remote ``accepted=false`` never downgrades, and
    a standing acceptance never renews an expired term.
    """
    if account.plan == Plan.FREE:
        if not status.accepted:
            return {}
        target = activation_fields(now, student_quota=student_quota)
        if status.paused:
            target.update(pause_fields(True))
        return target

    wanted_active = not status.paused
    if account.subscription_active != wanted_active:
        return pause_fields(status.paused)
    return {}
