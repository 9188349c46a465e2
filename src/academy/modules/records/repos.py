"""Stores for the partitioned collections."""

from collections.abc import Sequence
from datetime import date

from sqlalchemy import delete, or_, select

from academy.core.database import KeyedStore, store_operation
from academy.modules.records.models import AttendanceRecord, ReceiptLog, Student


class StudentStore(KeyedStore[Student]):
    model = Student
    key = "id"

    async def count_for(self, owner_identity: str) -> int:
        return await self.count_where("owner_identity", owner_identity)

    @store_operation
    async def list_for(
        self,
        owner_identity: str,
        class_grade: str | None = None,
        search: str | None = None,
    ) -> Sequence[Student]:
        """Students of a partition ordered by class, then name."""
        stmt = select(Student).where(Student.owner_identity == owner_identity)
        if class_grade:
            stmt = stmt.where(Student.class_grade == class_grade)
        if search:
            term = search.strip()
            stmt = stmt.where(
                or_(
                    Student.name.ilike(f"%{term}%"),
                    Student.roll_no == term,
                    Student.mobile.startswith(term),
                )
            )
        result = await self.session.execute(
            stmt.order_by(Student.class_grade, Student.name, Student.id)
        )
        return result.scalars().all()

    @store_operation
    async def delete_many(self, owner_identity: str, student_ids: Sequence[str]) -> int:
        """Delete the listed students of one partition in one statement."""
        if not student_ids:
            return 0
        result = await self.session.execute(
            delete(Student)
            .where(
                Student.owner_identity == owner_identity,
                Student.id.in_(list(student_ids)),
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount or 0


class AttendanceStore(KeyedStore[AttendanceRecord]):
    model = AttendanceRecord
    key = "id"

    @store_operation
    async def find(
        self, owner_identity: str, class_grade: str, day: date
    ) -> AttendanceRecord | None:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.owner_identity == owner_identity,
                AttendanceRecord.class_grade == class_grade,
                AttendanceRecord.day == day,
            )
        )
        return result.scalars().first()

    @store_operation
    async def list_for(
        self, owner_identity: str, day: date | None = None
    ) -> Sequence[AttendanceRecord]:
        stmt = select(AttendanceRecord).where(
            AttendanceRecord.owner_identity == owner_identity
        )
        if day is not None:
            stmt = stmt.where(AttendanceRecord.day == day)
        result = await self.session.execute(
            stmt.order_by(AttendanceRecord.day.desc(), AttendanceRecord.class_grade)
        )
        return result.scalars().all()


class ReceiptStore(KeyedStore[ReceiptLog]):
    model = ReceiptLog
    key = "id"

    @store_operation
    async def history(
        self, owner_identity: str, student_id: str | None = None
    ) -> Sequence[ReceiptLog]:
        """Receipts of a partition, newest first."""
        stmt = select(ReceiptLog).where(ReceiptLog.owner_identity == owner_identity)
        if student_id is not None:
            stmt = stmt.where(ReceiptLog.student_id == student_id)
        result = await self.session.execute(
            stmt.order_by(ReceiptLog.paid_at.desc(), ReceiptLog.id.desc())
        )
        return result.scalars().all()
