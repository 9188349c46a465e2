"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db
from academy.core.errors import ForbiddenError, UnauthorizedError
from academy.core.session import Principal
from academy.modules.accounts.models import Role
from academy.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    """The runtime attached to the app by ``create_app``."""
    return request.app.state.runtime


async def get_current_principal(
    runtime: Annotated[Runtime, Depends(get_runtime)],
) -> Principal:
    """The logged-in principal.

    Raises:
        UnauthorizedError: If nobody is logged in
    """
    principal = runtime.session.principal
    if principal is None:
        raise UnauthorizedError()
    return principal


async def require_admin(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    if principal.role != Role.ADMIN:
        raise ForbiddenError("Administrator only", error_code="admin_required")
    return principal


async def require_owner(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    if principal.role != Role.OWNER:
        raise ForbiddenError("Institute owner only", error_code="owner_required")
    return principal


async def require_partition(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """An OWNER or a linked TEACHER, i.e. a principal with a partition."""
    if principal.partition_owner is None:
        raise ForbiddenError(
            "No institute data for this account", error_code="partition_required"
        )
    return principal


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
RuntimeDep = Annotated[Runtime, Depends(get_runtime)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
AdminPrincipal = Annotated[Principal, Depends(require_admin)]
OwnerPrincipal = Annotated[Principal, Depends(require_owner)]
PartitionPrincipal = Annotated[Principal, Depends(require_partition)]
