"""Login / logout API routes."""

from fastapi import APIRouter, Response, status

from academy.api.dependencies import CurrentPrincipal, DBSession, RuntimeDep
from academy.core.session import Principal
from academy.modules.identity.schemas import LoginRequest, SessionResponse
from academy.modules.identity.services import IdentitySvc
from academy.runtime import Runtime


router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(principal: Principal, runtime: Runtime) -> SessionResponse:
    return SessionResponse(
        identity=principal.identity,
        display_name=principal.display_name,
        role=principal.role,
        partition_owner=principal.partition_owner,
        syncing=runtime.reconciler.is_syncing(principal.identity),
    )


@router.post(
    "/login",
    response_model=SessionResponse,
    summary="Log in",
    description=(
        "Log in with institute name and mobile number. A first login creates "
        "a FREE institute; owners are then synced with the remote authority "
        "in the background."
    ),
)
async def login(
    data: LoginRequest, service: IdentitySvc, db: DBSession, runtime: RuntimeDep
) -> SessionResponse:
    principal = await service.login(data.name, data.mobile)
    # The background sync reads the account from its own session
    await db.commit()
    service.after_login(principal)
    return _session_response(principal, runtime)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
)
async def logout(service: IdentitySvc) -> Response:
    await service.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/me",
    response_model=SessionResponse,
    summary="Current principal",
)
async def me(principal: CurrentPrincipal, runtime: RuntimeDep) -> SessionResponse:
    return _session_response(principal, runtime)
