"""Profile API routes."""

from fastapi import APIRouter

from academy.api.dependencies import CurrentPrincipal
from academy.modules.accounts.schemas import AccountResponse, ProfileUpdate
from academy.modules.accounts.services import ProfileSvc


router = APIRouter(prefix="/profile", tags=["profile"])


@router.get(
    "",
    response_model=AccountResponse,
    summary="Get my profile",
)
async def get_profile(
    principal: CurrentPrincipal, service: ProfileSvc
) -> AccountResponse:
    account = await service.get_profile(principal)
    return AccountResponse.model_validate(account)


@router.patch(
    "",
    response_model=AccountResponse,
    summary="Edit my profile",
    description="Update display name, email or address of the logged-in account.",
)
async def update_profile(
    data: ProfileUpdate, principal: CurrentPrincipal, service: ProfileSvc
) -> AccountResponse:
    account = await service.update_profile(principal, data)
    return AccountResponse.model_validate(account)
