"""Schemas for the administrator dashboard."""

import enum

from pydantic import BaseModel, Field

from academy.modules.accounts.schemas import AccountResponse, ApprovalRequestResponse
from academy.modules.entitlements.machine import EntitlementState


class AccountTab(str, enum.Enum):
    ALL = "ALL"
    SUBSCRIBERS = "SUBSCRIBERS"


class AdminStats(BaseModel):
    institutes: int
    teachers: int
    active_subscriptions: int
    pending_requests: int
    total_students: int


class AccountSummary(BaseModel):
    """One row of the accounts tab."""

    account: AccountResponse
    state: EntitlementState


class AccountDetail(BaseModel):
    """Institute profile as seen by the administrator."""

    account: AccountResponse
    state: EntitlementState
    entitled: bool
    student_count: int
    teachers: list[AccountResponse] = Field(default_factory=list)
    requests: list[ApprovalRequestResponse] = Field(default_factory=list)
