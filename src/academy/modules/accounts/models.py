"""Tenant account and approval request models."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.constants import (
    LIFETIME_TERM,
    MAX_ACCESS_CODE_LENGTH,
    MAX_ADDRESS_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MOBILE_NUMBER_LENGTH,
)
from academy.core.database.base import Base, TimestampMixin, UTCDateTime, utcnow


class Role(str, enum.Enum):
    """Kind of principal an account represents."""

    OWNER = "OWNER"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class Plan(str, enum.Enum):
    FREE = "FREE"
    SUBSCRIBED = "SUBSCRIBED"


class PlanType(str, enum.Enum):
    """Term of a subscription. Only FIXED_TERM carries an end date."""

    NONE = "none"
    FIXED_TERM = "fixed_term"
    LIFETIME = "lifetime"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


def _enum(enum_cls: type[enum.Enum]) -> Enum:
    return Enum(enum_cls, native_enum=False, length=16, validate_strings=True)


class TenantAccount(Base, TimestampMixin):
    """One institute (OWNER) or a teacher attached to one.

    The identity is a self-asserted 10-digit phone number and never changes.
    A TEACHER's own plan and quota are inert: every plan and quota check
    resolves through ``linked_owner``.

    Attributes:
        identity: Phone number, record key
        display_name: Institute name (OWNER) or teacher name
        role: OWNER or TEACHER (ADMIN is never stored)
        plan: FREE or SUBSCRIBED
        subscription_active: False while the subscription is paused
        plan_type: NONE, FIXED_TERM or LIFETIME
        student_quota: Ceiling on students in the partition
        access_code: Code teachers redeem to join this OWNER
        linked_owner: TEACHER only, the OWNER whose partition is used
    """

    __tablename__ = "accounts"

    identity: Mapped[str] = mapped_column(
        String(MOBILE_NUMBER_LENGTH),
        primary_key=True,
    )
    display_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    email: Mapped[str | None] = mapped_column(String(MAX_EMAIL_LENGTH), nullable=True)
    address: Mapped[str | None] = mapped_column(
        String(MAX_ADDRESS_LENGTH), nullable=True
    )
    role: Mapped[Role] = mapped_column(_enum(Role), nullable=False, index=True)

    # Entitlement
    plan: Mapped[Plan] = mapped_column(_enum(Plan), nullable=False, default=Plan.FREE)
    subscription_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    plan_type: Mapped[PlanType] = mapped_column(
        _enum(PlanType), nullable=False, default=PlanType.NONE
    )
    start_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    student_quota: Mapped[int] = mapped_column(Integer, nullable=False)

    # Role linking
    access_code: Mapped[str | None] = mapped_column(
        String(MAX_ACCESS_CODE_LENGTH), nullable=True, index=True
    )
    linked_owner: Mapped[str | None] = mapped_column(
        String(MOBILE_NUMBER_LENGTH), nullable=True, index=True
    )

    @classmethod
    def new_owner(
        cls, identity: str, display_name: str, student_quota: int
    ) -> "TenantAccount":
        """Fresh FREE OWNER record, as created at first login."""
        return cls(
            identity=identity,
            display_name=display_name,
            email=None,
            address=None,
            role=Role.OWNER,
            plan=Plan.FREE,
            subscription_active=False,
            plan_type=PlanType.NONE,
            start_date=None,
            end_date=None,
            student_quota=student_quota,
            access_code=None,
            linked_owner=None,
        )

    @classmethod
    def new_teacher(
        cls,
        identity: str,
        display_name: str,
        owner_identity: str,
        student_quota: int,
    ) -> "TenantAccount":
        """TEACHER record attached to ``owner_identity``'s partition."""
        account = cls.new_owner(identity, display_name, student_quota)
        account.role = Role.TEACHER
        account.linked_owner = owner_identity
        return account

    @property
    def partition_owner(self) -> str | None:
        """Identity whose partition this account reads and writes."""
        if self.role == Role.OWNER:
            return self.identity
        if self.role == Role.TEACHER:
            return self.linked_owner
        return None

    def is_entitled(self, now: datetime | None = None) -> bool:
        """Whether paid features are usable right now."""
        if self.plan != Plan.SUBSCRIBED or not self.subscription_active:
            return False
        if self.plan_type == PlanType.LIFETIME:
            return True
        if self.plan_type == PlanType.FIXED_TERM and self.end_date is not None:
            return self.end_date > (now or utcnow())
        return False

    def __repr__(self) -> str:
        return f"<TenantAccount {self.identity} {self.role.value} {self.plan.value}>"


class ApprovalRequest(Base):
    """A request for a paid plan, decided by the administrator.

    At most one PENDING request exists per owner; terminal requests are
    never updated again.
    """

    __tablename__ = "approval_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_identity: Mapped[str] = mapped_column(
        String(MOBILE_NUMBER_LENGTH), nullable=False, index=True
    )
    display_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    months_requested: Mapped[int] = mapped_column(
        Integer, nullable=False, default=LIFETIME_TERM
    )
    status: Mapped[RequestStatus] = mapped_column(
        _enum(RequestStatus), nullable=False, default=RequestStatus.PENDING, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    decided_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def is_lifetime(self) -> bool:
        return self.months_requested == LIFETIME_TERM

    @property
    def is_terminal(self) -> bool:
        return self.status != RequestStatus.PENDING
