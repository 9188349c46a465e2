"""Account deletion cascade and startup cleanup of legacy demo data."""

import structlog
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.constants import DEMO_ACCOUNT_ID, DEMO_ACCOUNT_NAME
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.records.repos import AttendanceStore, ReceiptStore, StudentStore


logger = structlog.get_logger()


class CascadeReport(BaseModel):
    """Rows removed per collection by an account deletion."""

    identity: str
    students: int = 0
    attendance: int = 0
    receipts: int = 0
    teachers: int = 0
    requests: int = 0
    account: bool = False


async def delete_account_cascade(db: AsyncSession, identity: str) -> CascadeReport:
    """Delete an account and everything that references its partition.

    Each collection is cleared by one statement, so a collection is removed
    entirely or not at all. The caller's transaction decides whether the
    whole cascade commits.
    """
    report = CascadeReport(identity=identity)
    report.students = await StudentStore(db).delete_where("owner_identity", identity)
    report.attendance = await AttendanceStore(db).delete_where("owner_identity", identity)
    report.receipts = await ReceiptStore(db).delete_where("owner_identity", identity)
    report.teachers = await AccountStore(db).delete_where("linked_owner", identity)
    report.requests = await ApprovalRequestStore(db).delete_where(
        "owner_identity", identity
    )
    report.account = await AccountStore(db).delete(identity)

    logger.info("account_deleted", **report.model_dump())
    return report


async def purge_demo_data(db: AsyncSession) -> bool:
    """Remove the legacy demo institute if an older install left it behind."""
    account = await AccountStore(db).get(DEMO_ACCOUNT_ID)
    if account is None or account.display_name != DEMO_ACCOUNT_NAME:
        return False
    await AccountStore(db).delete(DEMO_ACCOUNT_ID)
    removed = await StudentStore(db).delete_where("owner_identity", DEMO_ACCOUNT_ID)
    logger.info("demo_data_purged", students=removed)
    return True
