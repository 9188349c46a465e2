"""Student, fee receipt and attendance routes.

Every route works on the partition of the logged-in principal, so a
teacher sees exactly the data of the owner they joined.
"""

from datetime import date

from fastapi import APIRouter, Query, status

from academy.api.dependencies import PartitionPrincipal
from academy.modules.records.schemas import (
    AttendanceMark,
    AttendanceResponse,
    AttendanceResult,
    PaymentCreate,
    PaymentResult,
    ReceiptResponse,
    StudentBulkDelete,
    StudentCreate,
    StudentDeleteResult,
    StudentResponse,
)
from academy.modules.records.services import AttendanceSvc, FeeSvc, StudentSvc


router = APIRouter(tags=["records"])


# ============================================================
# Students
# ============================================================


@router.get(
    "/students",
    response_model=list[StudentResponse],
    summary="List students",
)
async def list_students(
    principal: PartitionPrincipal,
    service: StudentSvc,
    class_grade: str | None = Query(None, description="Only this class"),
    search: str | None = Query(None, description="Name, roll number or phone prefix"),
) -> list[StudentResponse]:
    students = await service.list_students(principal, class_grade, search)
    return [StudentResponse.model_validate(s) for s in students]


@router.post(
    "/students",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a student",
    description="Rejected once the institute's student quota is reached.",
)
async def add_student(
    data: StudentCreate, principal: PartitionPrincipal, service: StudentSvc
) -> StudentResponse:
    student = await service.add_student(principal, data)
    return StudentResponse.model_validate(student)


@router.delete(
    "/students/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a student",
)
async def remove_student(
    student_id: str, principal: PartitionPrincipal, service: StudentSvc
) -> None:
    await service.remove_student(principal, student_id)


@router.post(
    "/students/bulk-delete",
    response_model=StudentDeleteResult,
    summary="Remove several students",
)
async def remove_students(
    data: StudentBulkDelete, principal: PartitionPrincipal, service: StudentSvc
) -> StudentDeleteResult:
    deleted = await service.remove_students(principal, data.student_ids)
    return StudentDeleteResult(deleted=deleted)


# ============================================================
# Fees
# ============================================================


@router.get(
    "/receipts",
    response_model=list[ReceiptResponse],
    summary="Receipt history",
)
async def list_receipts(
    principal: PartitionPrincipal,
    service: FeeSvc,
    student_id: str | None = Query(None),
) -> list[ReceiptResponse]:
    receipts = await service.receipt_history(principal, student_id)
    return [ReceiptResponse.model_validate(r) for r in receipts]


@router.post(
    "/receipts",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record a fee payment",
)
async def record_payment(
    data: PaymentCreate, principal: PartitionPrincipal, service: FeeSvc
) -> PaymentResult:
    return await service.record_payment(principal, data)


# ============================================================
# Attendance
# ============================================================


@router.get(
    "/attendance",
    response_model=list[AttendanceResponse],
    summary="Attendance records",
)
async def list_attendance(
    principal: PartitionPrincipal,
    service: AttendanceSvc,
    day: date | None = Query(None),
) -> list[AttendanceResponse]:
    records = await service.list_attendance(principal, day)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.post(
    "/attendance",
    response_model=AttendanceResult,
    summary="Mark attendance",
    description="Marking a class again on the same day replaces the earlier record.",
)
async def mark_attendance(
    data: AttendanceMark, principal: PartitionPrincipal, service: AttendanceSvc
) -> AttendanceResult:
    return await service.mark(principal, data)
