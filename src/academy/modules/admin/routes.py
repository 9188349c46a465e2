"""Administrator routes."""

from fastapi import APIRouter, Query

from academy.api.dependencies import AdminPrincipal
from academy.modules.accounts.models import RequestStatus
from academy.modules.accounts.schemas import AccountResponse, ApprovalRequestResponse
from academy.modules.admin.cascade import CascadeReport
from academy.modules.admin.schemas import (
    AccountDetail,
    AccountSummary,
    AccountTab,
    AdminStats,
)
from academy.modules.admin.services import AdminSvc
from academy.modules.reconciliation.schemas import SyncResult


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStats, summary="Dashboard counters")
async def get_stats(_: AdminPrincipal, service: AdminSvc) -> AdminStats:
    return await service.stats()


# ============================================================
# Requests
# ============================================================


@router.get(
    "/requests",
    response_model=list[ApprovalRequestResponse],
    summary="Approval requests",
    description="Pending requests first, then newest first.",
)
async def list_requests(
    _: AdminPrincipal,
    service: AdminSvc,
    status: RequestStatus | None = Query(None),
) -> list[ApprovalRequestResponse]:
    requests = await service.list_requests(status)
    return [ApprovalRequestResponse.model_validate(r) for r in requests]


@router.post(
    "/requests/{request_id}/accept",
    response_model=AccountResponse,
    summary="Accept a request",
)
async def accept_request(
    request_id: int, _: AdminPrincipal, service: AdminSvc
) -> AccountResponse:
    account = await service.accept_request(request_id)
    return AccountResponse.model_validate(account)


@router.post(
    "/requests/{request_id}/decline",
    response_model=ApprovalRequestResponse,
    summary="Decline a request",
)
async def decline_request(
    request_id: int, _: AdminPrincipal, service: AdminSvc
) -> ApprovalRequestResponse:
    request = await service.decline_request(request_id)
    return ApprovalRequestResponse.model_validate(request)


# ============================================================
# Accounts
# ============================================================


@router.get(
    "/accounts",
    response_model=list[AccountSummary],
    summary="Institutes",
)
async def list_accounts(
    _: AdminPrincipal,
    service: AdminSvc,
    tab: AccountTab = Query(AccountTab.ALL),
    search: str | None = Query(None, description="Name or phone prefix"),
) -> list[AccountSummary]:
    return await service.list_accounts(tab, search)


@router.get(
    "/accounts/{identity}",
    response_model=AccountDetail,
    summary="Institute profile",
)
async def get_account(identity: str, _: AdminPrincipal, service: AdminSvc) -> AccountDetail:
    return await service.account_detail(identity)


@router.post(
    "/accounts/{identity}/pause",
    response_model=AccountResponse,
    summary="Pause or resume a subscription",
)
async def toggle_pause(
    identity: str, _: AdminPrincipal, service: AdminSvc
) -> AccountResponse:
    account = await service.toggle_pause(identity)
    return AccountResponse.model_validate(account)


@router.post(
    "/accounts/{identity}/cancel",
    response_model=AccountResponse,
    summary="Cancel a subscription",
)
async def cancel_subscription(
    identity: str, _: AdminPrincipal, service: AdminSvc
) -> AccountResponse:
    account = await service.cancel(identity)
    return AccountResponse.model_validate(account)


@router.post(
    "/accounts/{identity}/sync",
    response_model=SyncResult,
    summary="Reconcile an institute",
)
async def sync_account(identity: str, _: AdminPrincipal, service: AdminSvc) -> SyncResult:
    return await service.sync_account(identity)


@router.delete(
    "/accounts/{identity}",
    response_model=CascadeReport,
    summary="Delete an institute",
    description=(
        "Removes the account, its students, attendance, receipts, linked "
        "teachers and requests. ``confirm`` must repeat the phone number."
    ),
)
async def delete_account(
    identity: str,
    _: AdminPrincipal,
    service: AdminSvc,
    confirm: str = Query(..., description="Repeat the phone number"),
) -> CascadeReport:
    return await service.delete_account(identity, confirm)
