"""Explicit session context for the single active principal.

A client instance serves one logged-in principal at a time. The identity is
persisted under ``SESSION_KEY`` so a restart resumes the session; nothing is
shared with any server.
"""

import inspect
from collections.abc import Awaitable, Callable

import structlog
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy.core.constants import ADMIN_SESSION_ID, SESSION_KEY
from academy.core.database import KeyedStore, session_scope
from academy.core.session.models import AppState
from academy.modules.accounts.models import Role, TenantAccount
from academy.modules.accounts.repos import AccountStore


logger = structlog.get_logger()

TeardownHook = Callable[[str], Awaitable[None] | None]


class Principal(BaseModel):
    """The acting identity for every request of this client instance.

    ``partition_owner`` is the OWNER identity whose records are read and
    written (the identity itself for OWNERs, ``linked_owner`` for TEACHERs,
    None for the administrator).
    """

    model_config = ConfigDict(frozen=True)

    identity: str
    display_name: str
    role: Role
    partition_owner: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def admin(cls, display_name: str) -> "Principal":
        return cls(
            identity=ADMIN_SESSION_ID,
            display_name=display_name,
            role=Role.ADMIN,
        )

    @classmethod
    def from_account(cls, account: TenantAccount) -> "Principal":
        return cls(
            identity=account.identity,
            display_name=account.display_name,
            role=account.role,
            partition_owner=account.partition_owner,
        )


class AppStateStore(KeyedStore[AppState]):
    model = AppState
    key = "key"


class SessionContext:
    """Holds the current principal and tears it down explicitly.

    Teardown hooks run on ``end()`` with the identity being logged out; the
    reconciliation engine registers one to cancel in-flight work.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        admin_name: str,
    ) -> None:
        self._session_factory = session_factory
        self._admin_name = admin_name
        self._principal: Principal | None = None
        self._teardown_hooks: list[TeardownHook] = []

    @property
    def principal(self) -> Principal | None:
        return self._principal

    def is_current(self, identity: str) -> bool:
        """True if ``identity`` is the logged-in principal."""
        return self._principal is not None and self._principal.identity == identity

    def add_teardown_hook(self, hook: TeardownHook) -> None:
        self._teardown_hooks.append(hook)

    async def begin(self, principal: Principal, db: AsyncSession) -> None:
        """Make ``principal`` current and persist it in the caller's transaction."""
        if self._principal is not None and self._principal.identity != principal.identity:
            await self._teardown(self._principal.identity)
        await AppStateStore(db).put(AppState(key=SESSION_KEY, value=principal.identity))
        self._principal = principal
        logger.info(
            "session_started", identity=principal.identity, role=principal.role.value
        )

    def refresh(self, principal: Principal) -> None:
        """Replace the principal for the same identity (role change on link)."""
        if not self.is_current(principal.identity):
            return
        self._principal = principal
        logger.info(
            "session_refreshed", identity=principal.identity, role=principal.role.value
        )

    async def end(self, db: AsyncSession) -> str | None:
        """Log out: run teardown hooks, clear memory and the persisted key.

        Returns:
            The identity that was logged out, if any
        """
        principal = self._principal
        self._principal = None
        if principal is not None:
            await self._teardown(principal.identity)
        await AppStateStore(db).delete(SESSION_KEY)
        if principal is None:
            return None
        logger.info("session_ended", identity=principal.identity)
        return principal.identity

    async def restore(self) -> Principal | None:
        """Resume the persisted session, if any.

        A persisted identity whose account no longer exists is cleared.
        """
        async with session_scope(self._session_factory) as db:
            state = await AppStateStore(db).get(SESSION_KEY)
            if state is None:
                return None

            if state.value == ADMIN_SESSION_ID:
                self._principal = Principal.admin(self._admin_name)
            else:
                account = await AccountStore(db).get(state.value)
                if account is None:
                    await AppStateStore(db).delete(SESSION_KEY)
                    logger.warning("session_discarded", identity=state.value)
                    return None
                self._principal = Principal.from_account(account)

        logger.info("session_restored", identity=self._principal.identity)
        return self._principal

    async def _teardown(self, identity: str) -> None:
        for hook in self._teardown_hooks:
            result = hook(identity)
            if inspect.isawaitable(result):
                await result
