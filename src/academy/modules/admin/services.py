"""Administrator dashboard service.

Decisions on requests and subscriptions are delegated to the entitlement
service so the state machine stays the single writer of plan fields.
"""

from collections.abc import Sequence
from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.errors import NotFoundError, ValidationError
from academy.modules.accounts.models import (
    ApprovalRequest,
    Plan,
    RequestStatus,
    Role,
    TenantAccount,
)
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.accounts.schemas import AccountResponse, ApprovalRequestResponse
from academy.modules.admin.cascade import CascadeReport, delete_account_cascade
from academy.modules.admin.schemas import (
    AccountDetail,
    AccountSummary,
    AccountTab,
    AdminStats,
)
from academy.modules.entitlements.services import EntitlementService
from academy.modules.reconciliation.schemas import SyncResult
from academy.modules.records.repos import StudentStore


logger = structlog.get_logger()


class AdminService:
    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.db = db
        self.accounts = AccountStore(db)
        self.requests = ApprovalRequestStore(db)
        self.students = StudentStore(db)
        self.entitlements = EntitlementService(db, runtime)
        self.runtime = runtime

    async def stats(self) -> AdminStats:
        return AdminStats(
            institutes=await self.accounts.count_where("role", Role.OWNER),
            teachers=await self.accounts.count_where("role", Role.TEACHER),
            active_subscriptions=await self.accounts.count_active_subscriptions(),
            pending_requests=await self.requests.count_where(
                "status", RequestStatus.PENDING
            ),
            total_students=await self.students.count(),
        )

    async def list_requests(
        self, status: RequestStatus | None = None
    ) -> Sequence[ApprovalRequest]:
        return await self.requests.list_requests(status)

    async def list_accounts(
        self, tab: AccountTab = AccountTab.ALL, search: str | None = None
    ) -> list[AccountSummary]:
        plan = Plan.SUBSCRIBED if tab == AccountTab.SUBSCRIBERS else None
        accounts = await self.accounts.list_accounts(plan=plan, search=search)
        return [
            AccountSummary(
                account=AccountResponse.model_validate(account),
                state=await self.entitlements.state_of(account),
            )
            for account in accounts
        ]

    async def _account(self, identity: str) -> TenantAccount:
        account = await self.accounts.get(identity)
        if account is None:
            raise NotFoundError(
                "Account not found", resource="account", resource_id=identity
            )
        return account

    async def account_detail(self, identity: str) -> AccountDetail:
        account = await self._account(identity)
        return AccountDetail(
            account=AccountResponse.model_validate(account),
            state=await self.entitlements.state_of(account),
            entitled=account.is_entitled(),
            student_count=await self.students.count_for(identity),
            teachers=[
                AccountResponse.model_validate(t)
                for t in await self.accounts.teachers_of(identity)
            ],
            requests=[
                ApprovalRequestResponse.model_validate(r)
                for r in await self.requests.list_requests(owner_identity=identity)
            ],
        )

    # ============================================================
    # Decisions
    # ============================================================

    async def accept_request(self, request_id: int) -> TenantAccount:
        return await self.entitlements.accept_request(request_id)

    async def decline_request(self, request_id: int) -> ApprovalRequest:
        return await self.entitlements.decline_request(request_id)

    async def toggle_pause(self, identity: str) -> TenantAccount:
        return await self.entitlements.toggle_pause(identity)

    async def cancel(self, identity: str) -> TenantAccount:
        return await self.entitlements.cancel(identity)

    async def sync_account(self, identity: str) -> SyncResult:
        """Reconcile any owner, independently of who is logged in."""
        return await self.runtime.reconciler.reconcile(identity, bind_to_session=False)

    async def delete_account(self, identity: str, confirm: str) -> CascadeReport:
        """Hard-delete an account and its whole partition.

        Raises:
            ValidationError: If ``confirm`` does not repeat the identity
            NotFoundError: If the account does not exist
        """
        if confirm.strip() != identity:
            raise ValidationError(
                "Type the phone number to confirm deletion",
                error_code="confirmation_required",
            )
        await self._account(identity)
        await self.runtime.reconciler.cancel(identity)
        return await delete_account_cascade(self.db, identity)


# Type alias for dependency injection
AdminSvc = Annotated[AdminService, Depends()]
