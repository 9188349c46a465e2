"""Partitioned records owned by an OWNER: students, attendance, receipts."""

import enum
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import JSON, Date, Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.constants import (
    MAX_ADDRESS_LENGTH,
    MAX_NAME_LENGTH,
    MAX_RECEIPT_NO_LENGTH,
    MOBILE_NUMBER_LENGTH,
)
from academy.core.database.base import (
    Base,
    OwnerScopedMixin,
    TimestampMixin,
    UTCDateTime,
    utcnow,
)


class Medium(str, enum.Enum):
    MARATHI = "Marathi"
    SEMI_ENGLISH = "Semi-English"
    ENGLISH = "English"


class PaymentMode(str, enum.Enum):
    CASH = "Cash"
    ONLINE = "Online"


def _new_id() -> str:
    return uuid4().hex


class Student(Base, OwnerScopedMixin, TimestampMixin):
    """A student in an owner's partition. Fees are whole rupees."""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    roll_no: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    class_grade: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    medium: Mapped[Medium] = mapped_column(
        Enum(Medium, native_enum=False, length=16), nullable=False
    )
    mobile: Mapped[str] = mapped_column(String(MOBILE_NUMBER_LENGTH), nullable=False)
    address: Mapped[str] = mapped_column(
        String(MAX_ADDRESS_LENGTH), nullable=False, default=""
    )
    fees_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fees_paid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def fees_due(self) -> int:
        return self.fees_total - self.fees_paid


class AttendanceRecord(Base, OwnerScopedMixin):
    """Attendance of one class on one day. Re-marking replaces the row."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("owner_identity", "class_grade", "day", name="uq_attendance_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    class_grade: Mapped[str] = mapped_column(String(16), nullable=False)
    present_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    absent_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    submitted_by: Mapped[str] = mapped_column(String(MOBILE_NUMBER_LENGTH), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )


class ReceiptLog(Base, OwnerScopedMixin):
    """A fee payment receipt. Student name is a snapshot."""

    __tablename__ = "receipts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    student_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    receipt_no: Mapped[str] = mapped_column(String(MAX_RECEIPT_NO_LENGTH), nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(
        Enum(PaymentMode, native_enum=False, length=16), nullable=False
    )
    paid_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
