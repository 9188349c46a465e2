"""Tests for students, fee receipts and attendance."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.errors import ForbiddenError, NotFoundError, ValidationError
from academy.core.session import Principal
from academy.modules.accounts.models import TenantAccount
from academy.modules.accounts.repos import AccountStore
from academy.modules.entitlements.services import EntitlementService
from academy.modules.records.models import PaymentMode
from academy.modules.records.schemas import AttendanceMark, PaymentCreate
from academy.modules.records.services import (
    AttendanceService,
    FeeService,
    StudentService,
    generate_receipt_no,
)
from academy.runtime import Runtime
from tests.conftest import OWNER_MOBILE, TEACHER_MOBILE
from tests.factories import StudentCreateFactory


@pytest.fixture
def students(db: AsyncSession, runtime: Runtime) -> StudentService:
    return StudentService(db, runtime)


@pytest.fixture
def fees(db: AsyncSession, runtime: Runtime) -> FeeService:
    return FeeService(db, runtime)


@pytest.fixture
def attendance(db: AsyncSession, runtime: Runtime) -> AttendanceService:
    return AttendanceService(db, runtime)


@pytest.fixture
async def teacher_principal(db: AsyncSession, owner: TenantAccount) -> Principal:
    teacher = await AccountStore(db).put(
        TenantAccount.new_teacher(TEACHER_MOBILE, "Ravi", OWNER_MOBILE, 6)
    )
    return Principal.from_account(teacher)


class TestStudents:
    async def test_free_quota_is_enforced(
        self, students: StudentService, owner_principal: Principal
    ):
        for _ in range(6):
            await students.add_student(owner_principal, StudentCreateFactory.build())

        with pytest.raises(ForbiddenError) as exc_info:
            await students.add_student(owner_principal, StudentCreateFactory.build())

        assert exc_info.value.error_code == "student_limit_reached"
        assert exc_info.value.message == "Student limit reached (Max 6). Please Upgrade."

    async def test_teacher_adds_into_owner_partition(
        self, students: StudentService, teacher_principal: Principal
    ):
        student = await students.add_student(teacher_principal, StudentCreateFactory.build())

        assert student.owner_identity == OWNER_MOBILE

    async def test_teacher_shares_owner_quota(
        self,
        students: StudentService,
        owner_principal: Principal,
        teacher_principal: Principal,
    ):
        for _ in range(6):
            await students.add_student(owner_principal, StudentCreateFactory.build())

        with pytest.raises(ForbiddenError):
            await students.add_student(teacher_principal, StudentCreateFactory.build())

    async def test_subscription_lifts_quota(
        self,
        students: StudentService,
        owner_principal: Principal,
        db: AsyncSession,
        runtime: Runtime,
    ):
        await EntitlementService(db, runtime).apply_activation_code(
            owner_principal, "SMLIFETIME"
        )

        for _ in range(7):
            await students.add_student(owner_principal, StudentCreateFactory.build())

        assert len(await students.list_students(owner_principal)) == 7

    async def test_paused_subscription_blocks_additions(
        self,
        students: StudentService,
        owner_principal: Principal,
        db: AsyncSession,
        runtime: Runtime,
    ):
        entitlements = EntitlementService(db, runtime)
        await entitlements.apply_activation_code(owner_principal, "SMLIFETIME")
        await entitlements.toggle_pause(OWNER_MOBILE)

        with pytest.raises(ForbiddenError) as exc_info:
            await students.add_student(owner_principal, StudentCreateFactory.build())
        assert exc_info.value.error_code == "subscription_paused"

    async def test_list_filters_by_class_and_search(
        self, students: StudentService, owner_principal: Principal
    ):
        await students.add_student(
            owner_principal, StudentCreateFactory.build(name="Asha Patil", class_grade="9")
        )
        await students.add_student(
            owner_principal, StudentCreateFactory.build(name="Rohan More", class_grade="10")
        )

        assert [s.name for s in await students.list_students(owner_principal, "9")] == [
            "Asha Patil"
        ]
        found = await students.list_students(owner_principal, search="rohan")
        assert [s.name for s in found] == ["Rohan More"]

    async def test_remove_other_partition_student(
        self, students: StudentService, owner_principal: Principal, db: AsyncSession
    ):
        other = Principal.from_account(
            await AccountStore(db).put(TenantAccount.new_owner("8000000001", "Other", 6))
        )
        student = await students.add_student(other, StudentCreateFactory.build())

        with pytest.raises(NotFoundError):
            await students.remove_student(owner_principal, student.id)

    async def test_bulk_remove(self, students: StudentService, owner_principal: Principal):
        ids = [
            (await students.add_student(owner_principal, StudentCreateFactory.build())).id
            for _ in range(3)
        ]

        assert await students.remove_students(owner_principal, ids[:2] + ["missing"]) == 2
        assert {s.id for s in await students.list_students(owner_principal)} == {ids[2]}


class TestFees:
    def test_receipt_number_shape(self):
        receipt_no = generate_receipt_no()

        assert receipt_no.startswith("REC")
        assert len(receipt_no) == 9
        assert receipt_no[3:].isdigit()

    async def test_record_payment(
        self,
        students: StudentService,
        fees: FeeService,
        owner_principal: Principal,
        handoffs: list[str],
    ):
        student = await students.add_student(
            owner_principal, StudentCreateFactory.build(fees_total=5000, fees_paid=1000)
        )

        result = await fees.record_payment(
            owner_principal,
            PaymentCreate(student_id=student.id, amount=1500, payment_mode=PaymentMode.ONLINE),
        )

        assert result.student.fees_paid == 2500
        assert result.student.fees_due == 2500
        assert result.receipt.amount == 1500
        assert result.receipt.payment_mode == PaymentMode.ONLINE
        assert result.receipt.student_name == student.name
        assert f"phone=91{student.mobile}" in handoffs[-1]
        history = await fees.receipt_history(owner_principal)
        assert [r.receipt_no for r in history] == [result.receipt.receipt_no]

    @pytest.mark.parametrize("amount", [0, -10, 4001])
    async def test_invalid_amount(
        self,
        students: StudentService,
        fees: FeeService,
        owner_principal: Principal,
        amount: int,
    ):
        student = await students.add_student(
            owner_principal, StudentCreateFactory.build(fees_total=5000, fees_paid=1000)
        )

        with pytest.raises(ValidationError):
            await fees.record_payment(
                owner_principal, PaymentCreate(student_id=student.id, amount=amount)
            )


class TestAttendance:
    async def test_mark_then_replace(
        self,
        students: StudentService,
        attendance: AttendanceService,
        owner_principal: Principal,
        teacher_principal: Principal,
    ):
        a = await students.add_student(owner_principal, StudentCreateFactory.build(name="Asha"))
        b = await students.add_student(owner_principal, StudentCreateFactory.build(name="Rohan"))
        day = date(2026, 6, 15)

        first = await attendance.mark(
            owner_principal,
            AttendanceMark(day=day, class_grade="10", present_ids=[a.id], absent_ids=[b.id]),
        )
        second = await attendance.mark(
            teacher_principal,
            AttendanceMark(day=day, class_grade="10", present_ids=[a.id, b.id]),
        )

        assert not first.replaced
        assert second.replaced
        assert second.record.id == first.record.id
        assert second.record.absent_ids == []
        assert second.record.submitted_by == TEACHER_MOBILE
        records = await attendance.list_attendance(owner_principal, day)
        assert len(records) == 1

    async def test_absentees_message(
        self,
        students: StudentService,
        attendance: AttendanceService,
        owner_principal: Principal,
        handoffs: list[str],
    ):
        a = await students.add_student(owner_principal, StudentCreateFactory.build(name="Asha"))

        await attendance.mark(
            owner_principal,
            AttendanceMark(day=date(2026, 6, 15), class_grade="10", absent_ids=[a.id]),
        )

        assert "Asha" in handoffs[-1]

    async def test_unknown_student_rejected(
        self, attendance: AttendanceService, owner_principal: Principal
    ):
        with pytest.raises(ValidationError):
            await attendance.mark(
                owner_principal,
                AttendanceMark(day=date(2026, 6, 15), class_grade="10", present_ids=["nope"]),
            )

    def test_present_and_absent_must_be_disjoint(self):
        with pytest.raises(ValueError):
            AttendanceMark(
                day=date(2026, 6, 15), class_grade="10", present_ids=["x"], absent_ids=["x"]
            )
