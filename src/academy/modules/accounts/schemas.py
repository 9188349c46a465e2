"""Pydantic schemas for accounts, profiles and approval requests."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from academy.core.constants import (
    MAX_ADDRESS_LENGTH,
    MAX_NAME_LENGTH,
    MOBILE_NUMBER_PATTERN,
)
from academy.modules.accounts.models import Plan, PlanType, RequestStatus, Role


# ============================================================
# Field validation
# ============================================================


def validate_mobile(value: str) -> str:
    """Strip whitespace and require exactly 10 digits."""
    value = value.strip()
    if not re.match(MOBILE_NUMBER_PATTERN, value):
        raise ValueError("Please enter valid 10-digit mobile number")
    return value


def validate_display_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name must not be empty")
    return value


# ============================================================
# Account Schemas
# ============================================================


class AccountResponse(BaseModel):
    """A tenant account as stored locally."""

    identity: str
    display_name: str
    email: str | None = None
    address: str | None = None
    role: Role
    plan: Plan
    subscription_active: bool
    plan_type: PlanType
    start_date: datetime | None = None
    end_date: datetime | None = None
    student_quota: int
    access_code: str | None = None
    linked_owner: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    display_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=MAX_ADDRESS_LENGTH)

    @field_validator("display_name")
    @classmethod
    def display_name_not_blank(cls, v: str | None) -> str | None:
        return None if v is None else validate_display_name(v)


# ============================================================
# Approval Request Schemas
# ============================================================


class ApprovalRequestResponse(BaseModel):
    id: int
    owner_identity: str
    display_name: str
    months_requested: int
    is_lifetime: bool
    status: RequestStatus
    created_at: datetime
    decided_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
