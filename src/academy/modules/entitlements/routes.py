"""Plan API routes: view, sync, request activation, activation code."""

from fastapi import APIRouter, status

from academy.api.dependencies import OwnerPrincipal, PartitionPrincipal, RuntimeDep
from academy.modules.accounts.models import Role
from academy.modules.accounts.schemas import AccountResponse
from academy.modules.entitlements.schemas import (
    ActivationCodeApply,
    ActivationRequestCreate,
    ActivationRequestResult,
    PlanView,
    SyncResponse,
)
from academy.modules.entitlements.services import EntitlementSvc


router = APIRouter(prefix="/plan", tags=["plan"])


@router.get(
    "",
    response_model=PlanView,
    summary="My plan",
    description=(
        "Plan of the principal's institute as stored locally. For owners a "
        "background sync with the remote authority is started; ``syncing`` "
        "tells whether one is outstanding."
    ),
)
async def get_plan(
    principal: PartitionPrincipal, service: EntitlementSvc, runtime: RuntimeDep
) -> PlanView:
    if principal.role == Role.OWNER:
        runtime.reconciler.schedule(principal.identity)
    return await service.get_view(principal)


@router.post(
    "/sync",
    response_model=SyncResponse,
    summary="Sync now",
    description="Reconcile with the remote authority and wait for the outcome.",
)
async def sync_plan(
    principal: OwnerPrincipal, service: EntitlementSvc
) -> SyncResponse:
    result = await service.sync(principal)
    return SyncResponse(
        result=result, synced=result.synced, plan=await service.get_view(principal)
    )


@router.post(
    "/request",
    response_model=ActivationRequestResult,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request activation",
)
async def request_activation(
    data: ActivationRequestCreate, principal: OwnerPrincipal, service: EntitlementSvc
) -> ActivationRequestResult:
    return await service.request_activation(principal, data.months)


@router.post(
    "/activate",
    response_model=AccountResponse,
    summary="Apply activation code",
)
async def apply_activation_code(
    data: ActivationCodeApply, principal: OwnerPrincipal, service: EntitlementSvc
) -> AccountResponse:
    account = await service.apply_activation_code(principal, data.code)
    return AccountResponse.model_validate(account)
