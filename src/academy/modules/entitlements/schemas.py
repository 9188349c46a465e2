"""Schemas for the plan screen and activation flows."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from academy.core.constants import LIFETIME_TERM, MAX_TERM_MONTHS
from academy.modules.accounts.models import Plan, PlanType, Role
from academy.modules.accounts.schemas import ApprovalRequestResponse
from academy.modules.entitlements.machine import EntitlementState
from academy.modules.reconciliation.schemas import SyncResult


class PlanView(BaseModel):
    """Plan of the partition the principal works in.

    For a TEACHER every field describes the linked OWNER's plan.
    """

    owner_identity: str
    display_name: str
    viewer_role: Role
    state: EntitlementState
    plan: Plan
    plan_type: PlanType
    subscription_active: bool
    entitled: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    student_quota: int
    student_count: int
    pending_request: ApprovalRequestResponse | None = None
    syncing: bool = False


class ActivationRequestCreate(BaseModel):
    """Request a paid plan. ``months`` of 0 asks for lifetime access."""

    months: int = Field(LIFETIME_TERM, ge=0, le=MAX_TERM_MONTHS)


class ActivationRequestResult(BaseModel):
    request: ApprovalRequestResponse
    created: bool
    whatsapp_url: str | None = None


class ActivationCodeApply(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Activation code must not be empty")
        return v


class SyncResponse(BaseModel):
    result: SyncResult
    synced: bool
    plan: PlanView
