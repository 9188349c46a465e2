"""Schemas for students, fee receipts and attendance."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from academy.core.constants import MAX_ADDRESS_LENGTH, MAX_NAME_LENGTH
from academy.modules.accounts.schemas import validate_display_name, validate_mobile
from academy.modules.records.models import Medium, PaymentMode


# ============================================================
# Student Schemas
# ============================================================


class StudentCreate(BaseModel):
    """A new student. Fees are whole rupees."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    roll_no: str = Field("", max_length=32)
    class_grade: str = Field(..., min_length=1, max_length=16)
    medium: Medium = Medium.MARATHI
    mobile: str
    address: str = Field("", max_length=MAX_ADDRESS_LENGTH)
    fees_total: int = Field(0, ge=0)
    fees_paid: int = Field(0, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return validate_display_name(v)

    @field_validator("mobile")
    @classmethod
    def mobile_format(cls, v: str) -> str:
        return validate_mobile(v)

    @field_validator("class_grade", "roll_no", "address")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def paid_within_total(self) -> "StudentCreate":
        if self.fees_paid > self.fees_total:
            raise ValueError("Fees paid cannot exceed total fees")
        return self


class StudentResponse(BaseModel):
    id: str
    owner_identity: str
    name: str
    roll_no: str
    class_grade: str
    medium: Medium
    mobile: str
    address: str
    fees_total: int
    fees_paid: int
    fees_due: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentBulkDelete(BaseModel):
    student_ids: list[str] = Field(..., min_length=1)


class StudentDeleteResult(BaseModel):
    deleted: int


# ============================================================
# Fee Schemas
# ============================================================


class PaymentCreate(BaseModel):
    student_id: str
    amount: int
    payment_mode: PaymentMode = PaymentMode.CASH


class ReceiptResponse(BaseModel):
    id: int
    owner_identity: str
    student_id: str
    student_name: str
    amount: int
    receipt_no: str
    payment_mode: PaymentMode
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentResult(BaseModel):
    receipt: ReceiptResponse
    student: StudentResponse
    whatsapp_url: str | None = None


# ============================================================
# Attendance Schemas
# ============================================================


class AttendanceMark(BaseModel):
    day: date
    class_grade: str = Field(..., min_length=1, max_length=16)
    present_ids: list[str] = Field(default_factory=list)
    absent_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def disjoint(self) -> "AttendanceMark":
        if set(self.present_ids) & set(self.absent_ids):
            raise ValueError("A student cannot be both present and absent")
        return self


class AttendanceResponse(BaseModel):
    id: int
    owner_identity: str
    day: date
    class_grade: str
    present_ids: list[str]
    absent_ids: list[str]
    submitted_by: str
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceResult(BaseModel):
    record: AttendanceResponse
    replaced: bool
    whatsapp_url: str | None = None
