"""Identity resolution: login, logout and the current principal."""

import re
from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.constants import MOBILE_NUMBER_PATTERN
from academy.core.errors import ValidationError
from academy.core.session import Principal
from academy.modules.accounts.models import Role, TenantAccount
from academy.modules.accounts.repos import AccountStore


logger = structlog.get_logger()


class IdentityService:
    """Resolves a (name, phone) pair to a principal and starts the session.

    There is no secret involved: the phone number is the identity.
    """

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.db = db
        self.accounts = AccountStore(db)
        self.runtime = runtime

    def _validate(self, name: str, mobile: str) -> tuple[str, str]:
        errors = []
        name = name.strip()
        mobile = mobile.strip()
        if not name:
            errors.append({"field": "name", "message": "Please fill all details"})
        if not re.match(MOBILE_NUMBER_PATTERN, mobile):
            errors.append(
                {"field": "mobile", "message": "Please enter valid 10-digit mobile number"}
            )
        if errors:
            raise ValidationError("Invalid login details", errors=errors)
        return name, mobile

    def _is_admin(self, name: str, mobile: str) -> bool:
        config = self.runtime.config
        return name.lower() == config.admin_name.lower() and mobile == config.admin_mobile

    async def login(self, name: str, mobile: str) -> Principal:
        """Log in, creating a FREE OWNER on first sight of a phone.

        An existing account only gets its display name refreshed: the role
        is never changed and the plan never regresses.

        Raises:
            ValidationError: On a blank name, a malformed phone, or the
                administrator's phone with another name
        """
        name, mobile = self._validate(name, mobile)

        if self._is_admin(name, mobile):
            principal = Principal.admin(self.runtime.config.admin_name)
            await self.runtime.session.begin(principal, self.db)
            logger.info("admin_login")
            return principal

        if mobile == self.runtime.config.admin_mobile:
            raise ValidationError(
                "This mobile number is reserved", error_code="mobile_reserved"
            )

        account = await self.accounts.get(mobile)
        if account is None:
            account = await self.accounts.put(
                TenantAccount.new_owner(
                    mobile, name, self.runtime.config.free_student_limit
                )
            )
            logger.info("account_created", identity=mobile)
        elif account.display_name != name:
            account = await self.accounts.patch(mobile, {"display_name": name})  # type: ignore[assignment]

        principal = Principal.from_account(account)
        await self.runtime.session.begin(principal, self.db)
        return principal

    def after_login(self, principal: Principal) -> bool:
        """Kick off the background sync for OWNERs. Call once committed."""
        if principal.role != Role.OWNER:
            return False
        return self.runtime.reconciler.schedule(principal.identity)

    async def logout(self) -> str | None:
        """End the session; in-flight reconciliation is cancelled."""
        return await self.runtime.session.end(self.db)


# Type alias for dependency injection
IdentitySvc = Annotated[IdentityService, Depends()]
