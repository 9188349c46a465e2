"""Services for the partitioned collections.

All reads and writes go to the partition of the acting principal: the
owner's own identity, or ``linked_owner`` for a TEACHER. Quota and pause
checks therefore always look at the owner's plan.
"""

import time
from collections.abc import Sequence
from datetime import date
from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.constants import RECEIPT_PREFIX, RECEIPT_SUFFIX_DIGITS
from academy.core.database import utcnow
from academy.core.errors import (
    ForbiddenError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from academy.core.notifications import absentees_message, fee_receipt_message
from academy.core.session import Principal
from academy.modules.accounts.models import Plan, PlanType, TenantAccount
from academy.modules.accounts.repos import AccountStore
from academy.modules.records.models import AttendanceRecord, ReceiptLog, Student
from academy.modules.records.repos import AttendanceStore, ReceiptStore, StudentStore
from academy.modules.records.schemas import (
    AttendanceMark,
    AttendanceResponse,
    AttendanceResult,
    PaymentCreate,
    PaymentResult,
    ReceiptResponse,
    StudentCreate,
    StudentResponse,
)


logger = structlog.get_logger()


def generate_receipt_no() -> str:
    """``REC`` plus the last six digits of the epoch-millisecond clock."""
    millis = str(int(time.time() * 1000))
    return f"{RECEIPT_PREFIX}{millis[-RECEIPT_SUFFIX_DIGITS:]}"


class PartitionService:
    """Base for services working inside one owner's partition."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.accounts = AccountStore(db)
        self.students = StudentStore(db)
        self.runtime = runtime

    def partition_of(self, principal: Principal) -> str:
        if principal.partition_owner is None:
            raise ForbiddenError(
                "No institute data for this account", error_code="partition_required"
            )
        return principal.partition_owner

    async def owner_of(self, principal: Principal) -> TenantAccount:
        identity = self.partition_of(principal)
        owner = await self.accounts.get(identity)
        if owner is None:
            raise NotFoundError(
                "Institute not found", resource="account", resource_id=identity
            )
        return owner

    async def student_in_partition(self, principal: Principal, student_id: str) -> Student:
        student = await self.students.get(student_id)
        if student is None or student.owner_identity != self.partition_of(principal):
            raise NotFoundError(
                "Student not found", resource="student", resource_id=student_id
            )
        return student


class StudentService(PartitionService):
    """Adds, lists and removes students."""

    async def add_student(self, principal: Principal, data: StudentCreate) -> Student:
        """Add a student, enforcing the owner's quota.

        Raises:
            ForbiddenError: If the quota is reached or the subscription is
                paused or expired
        """
        owner = await self.owner_of(principal)
        if owner.plan == Plan.SUBSCRIBED and not owner.subscription_active:
            raise ForbiddenError(
                "Subscription is paused. Please contact the administrator.",
                error_code="subscription_paused",
            )
        if owner.plan_type == PlanType.FIXED_TERM and not owner.is_entitled():
            raise ForbiddenError(
                "Subscription has expired. Please Upgrade.",
                error_code="subscription_expired",
            )

        count = await self.students.count_for(owner.identity)
        if count >= owner.student_quota:
            logger.info(
                "student_limit_reached", owner=owner.identity, quota=owner.student_quota
            )
            raise QuotaExceededError(owner.student_quota, count)

        student = await self.students.put(
            Student(owner_identity=owner.identity, **data.model_dump())
        )
        logger.info("student_added", owner=owner.identity, student_id=student.id)
        return student

    async def list_students(
        self,
        principal: Principal,
        class_grade: str | None = None,
        search: str | None = None,
    ) -> Sequence[Student]:
        return await self.students.list_for(
            self.partition_of(principal), class_grade, search
        )

    async def remove_student(self, principal: Principal, student_id: str) -> None:
        student = await self.student_in_partition(principal, student_id)
        await self.students.delete(student.id)
        logger.info("student_removed", owner=student.owner_identity, student_id=student.id)

    async def remove_students(self, principal: Principal, student_ids: Sequence[str]) -> int:
        """Bulk removal; ids outside the partition are ignored."""
        owner = self.partition_of(principal)
        deleted = await self.students.delete_many(owner, student_ids)
        logger.info("students_removed", owner=owner, count=deleted)
        return deleted


class FeeService(PartitionService):
    """Records fee payments and keeps the receipt log."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        super().__init__(db, runtime)
        self.receipts = ReceiptStore(db)

    async def record_payment(self, principal: Principal, data: PaymentCreate) -> PaymentResult:
        """Record a payment against a student's pending balance.

        Raises:
            ValidationError: If the amount is not positive or exceeds the
                pending balance
        """
        owner = await self.owner_of(principal)
        student = await self.student_in_partition(principal, data.student_id)

        if data.amount <= 0:
            raise ValidationError(
                "Please enter a valid amount",
                errors=[{"field": "amount", "message": "Must be greater than zero"}],
            )
        if data.amount > student.fees_due:
            raise ValidationError(
                f"Amount cannot exceed pending balance of Rs.{student.fees_due}",
                errors=[{"field": "amount", "message": "Exceeds pending balance"}],
            )

        receipt = await self.receipts.put(
            ReceiptLog(
                owner_identity=owner.identity,
                student_id=student.id,
                student_name=student.name,
                amount=data.amount,
                receipt_no=generate_receipt_no(),
                payment_mode=data.payment_mode,
                paid_at=utcnow(),
            )
        )
        student = await self.students.patch(  # type: ignore[assignment]
            student.id, {"fees_paid": student.fees_paid + data.amount}
        )
        logger.info(
            "fee_payment_recorded",
            owner=owner.identity,
            student_id=student.id,
            receipt_no=receipt.receipt_no,
        )

        url = self.runtime.notifier.handoff(
            student.mobile,
            fee_receipt_message(
                student.name,
                data.amount,
                student.fees_total,
                student.fees_paid,
                owner.display_name,
            ),
            event="fee_receipt",
        )
        return PaymentResult(
            receipt=ReceiptResponse.model_validate(receipt),
            student=StudentResponse.model_validate(student),
            whatsapp_url=url,
        )

    async def receipt_history(
        self, principal: Principal, student_id: str | None = None
    ) -> Sequence[ReceiptLog]:
        return await self.receipts.history(self.partition_of(principal), student_id)


class AttendanceService(PartitionService):
    """Marks class attendance. Re-marking a class on the same day replaces it."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        super().__init__(db, runtime)
        self.attendance = AttendanceStore(db)

    async def mark(self, principal: Principal, data: AttendanceMark) -> AttendanceResult:
        owner = await self.owner_of(principal)
        roster = {
            s.id: s for s in await self.students.list_for(owner.identity, data.class_grade)
        }
        unknown = sorted(set(data.present_ids + data.absent_ids) - roster.keys())
        if unknown:
            raise ValidationError(
                "Unknown students for this class",
                errors=[{"field": "student_ids", "message": ", ".join(unknown)}],
            )

        fields = {
            "present_ids": list(data.present_ids),
            "absent_ids": list(data.absent_ids),
            "submitted_by": principal.identity,
            "submitted_at": utcnow(),
        }
        existing = await self.attendance.find(owner.identity, data.class_grade, data.day)
        if existing is not None:
            record = await self.attendance.patch(existing.id, fields)
        else:
            record = await self.attendance.put(
                AttendanceRecord(
                    owner_identity=owner.identity,
                    day=data.day,
                    class_grade=data.class_grade,
                    **fields,
                )
            )
        logger.info(
            "attendance_marked",
            owner=owner.identity,
            class_grade=data.class_grade,
            day=data.day.isoformat(),
            replaced=existing is not None,
        )

        url = self.runtime.notifier.handoff(
            owner.identity,
            absentees_message(
                data.day.isoformat(),
                [roster[i].name for i in data.absent_ids],
                owner.display_name,
            ),
            event="attendance_absentees",
        )
        return AttendanceResult(
            record=AttendanceResponse.model_validate(record),
            replaced=existing is not None,
            whatsapp_url=url,
        )

    async def list_attendance(
        self, principal: Principal, day: date | None = None
    ) -> Sequence[AttendanceRecord]:
        return await self.attendance.list_for(self.partition_of(principal), day)


# Type aliases for dependency injection
StudentSvc = Annotated[StudentService, Depends()]
FeeSvc = Annotated[FeeService, Depends()]
AttendanceSvc = Annotated[AttendanceService, Depends()]
