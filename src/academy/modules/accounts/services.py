"""Profile service: view and edit the logged-in account."""

from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.errors import ForbiddenError, NotFoundError, ValidationError
from academy.core.session import Principal
from academy.modules.accounts.models import TenantAccount
from academy.modules.accounts.repos import AccountStore
from academy.modules.accounts.schemas import ProfileUpdate


logger = structlog.get_logger()


class ProfileService:
    """Reads and edits the account of the current principal."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.accounts = AccountStore(db)
        self.runtime = runtime

    async def get_account(self, identity: str) -> TenantAccount:
        """Get an account by identity.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = await self.accounts.get(identity)
        if account is None:
            raise NotFoundError(
                "Account not found", resource="account", resource_id=identity
            )
        return account

    async def get_profile(self, principal: Principal) -> TenantAccount:
        if principal.is_admin:
            raise ForbiddenError(
                "The administrator has no profile", error_code="admin_has_no_profile"
            )
        return await self.get_account(principal.identity)

    async def update_profile(
        self, principal: Principal, data: ProfileUpdate
    ) -> TenantAccount:
        """Apply a profile edit. Identity, role and plan are not editable here."""
        fields = data.model_dump(exclude_unset=True)
        if "display_name" in fields and fields["display_name"] is None:
            raise ValidationError(
                "Name must not be empty",
                errors=[{"field": "display_name", "message": "Name must not be empty"}],
            )
        account = await self.get_profile(principal)
        if not fields:
            return account

        updated = await self.accounts.patch(account.identity, fields)
        if updated is None:
            raise NotFoundError(
                "Account not found", resource="account", resource_id=account.identity
            )
        self.runtime.session.refresh(Principal.from_account(updated))
        logger.info("profile_updated", identity=updated.identity, fields=sorted(fields))
        return updated


# Type alias for dependency injection
ProfileSvc = Annotated[ProfileService, Depends()]
