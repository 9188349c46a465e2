"""Reconciliation of local accounts against the remote authority.

Runs at trigger points (login, opening the plan screen, administrator
action). Pulls the remote flags, diffs them against the local record and
applies one-directional corrections through the entitlement state machine.
Remote failures never escape: they become an UNREACHABLE outcome.
"""

import asyncio
from functools import partial

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy.config import Settings
from academy.core.database import session_scope, utcnow
from academy.core.errors import RemoteAuthorityError
from academy.core.session import SessionContext
from academy.modules.accounts.models import Plan, RequestStatus, Role
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.entitlements.machine import remote_corrections
from academy.modules.reconciliation.schemas import SyncOutcome, SyncResult
from academy.modules.remote.base import RemoteAuthority, RemoteStatus


logger = structlog.get_logger()


class ReconciliationEngine:
    """Detached, coalescing reconciliation runner.

    At most one run per owner is in flight; a trigger arriving while one
    runs is a no-op. A run bound to the session writes nothing once its
    identity is no longer the logged-in one, and logout cancels it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        remote: RemoteAuthority,
        session: SessionContext,
        config: Settings,
    ) -> None:
        self._session_factory = session_factory
        self._remote = remote
        self._session = session
        self._timeout = config.remote_timeout_seconds
        self._student_quota = config.unlimited_student_limit
        self._inflight: dict[str, asyncio.Task[SyncResult]] = {}

    def is_syncing(self, identity: str) -> bool:
        task = self._inflight.get(identity)
        return task is not None and not task.done()

    def schedule(self, identity: str, *, bind_to_session: bool = True) -> bool:
        """Start a detached run. Returns False if one was already in flight."""
        if self.is_syncing(identity):
            logger.debug("reconciliation_coalesced", identity=identity)
            return False
        self._start(identity, bind_to_session)
        return True

    async def reconcile(
        self, identity: str, *, bind_to_session: bool = True
    ) -> SyncResult:
        """Run now and wait for the outcome.

        Local store errors propagate to the caller.
        """
        if self.is_syncing(identity):
            logger.debug("reconciliation_coalesced", identity=identity)
            return SyncResult(identity=identity, outcome=SyncOutcome.SKIPPED)

        task = self._start(identity, bind_to_session)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # The run itself was cancelled by a logout
            return SyncResult(identity=identity, outcome=SyncOutcome.STALE_SESSION)

    async def cancel(self, identity: str) -> None:
        """Cancel the in-flight run for ``identity`` and wait for it to stop."""
        task = self._inflight.get(identity)
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("reconciliation_cancelled", identity=identity)

    async def wait_idle(self) -> None:
        """Wait until no run is in flight."""
        while self._inflight:
            await asyncio.gather(*self._inflight.values(), return_exceptions=True)
            await asyncio.sleep(0)

    async def shutdown(self) -> None:
        """Cancel every in-flight run."""
        for identity in list(self._inflight):
            await self.cancel(identity)

    def _start(self, identity: str, bind_to_session: bool) -> asyncio.Task[SyncResult]:
        task = asyncio.create_task(
            self._run(identity, bind_to_session), name=f"reconcile:{identity}"
        )
        self._inflight[identity] = task
        task.add_done_callback(partial(self._finished, identity))
        return task

    def _finished(self, identity: str, task: asyncio.Task[SyncResult]) -> None:
        if self._inflight.get(identity) is task:
            del self._inflight[identity]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "reconciliation_failed",
                identity=identity,
                error_type=type(exc).__name__,
                error=str(exc),
            )

    async def _call_remote(self, operation: str, *args: str) -> RemoteStatus | None:
        method = getattr(self._remote, operation)
        return await asyncio.wait_for(method(*args), timeout=self._timeout)

    async def _run(self, identity: str, bind_to_session: bool) -> SyncResult:
        log = logger.bind(identity=identity, backend=self._remote.name)

        async with session_scope(self._session_factory) as db:
            account = await AccountStore(db).get(identity)
        if account is None or account.role != Role.OWNER:
            return SyncResult(identity=identity, outcome=SyncOutcome.SKIPPED)

        try:
            status = await self._call_remote("fetch_status", identity)
        except (RemoteAuthorityError, TimeoutError) as e:
            log.warning("remote_authority_unreachable", error=str(e) or type(e).__name__)
            return SyncResult(identity=identity, outcome=SyncOutcome.UNREACHABLE)

        if status is None:
            try:
                await self._call_remote("upsert_profile", identity, account.display_name)
                log.info("remote_profile_registered")
            except (RemoteAuthorityError, TimeoutError) as e:
                log.warning("remote_profile_register_failed", error=str(e))
            return SyncResult(identity=identity, outcome=SyncOutcome.NOT_REGISTERED)

        if bind_to_session and not self._session.is_current(identity):
            log.info("reconciliation_stale")
            return SyncResult(identity=identity, outcome=SyncOutcome.STALE_SESSION)

        async with session_scope(self._session_factory) as db:
            accounts = AccountStore(db)
            account = await accounts.get(identity)
            if account is None or account.role != Role.OWNER:
                return SyncResult(identity=identity, outcome=SyncOutcome.SKIPPED)

            changes = remote_corrections(
                account, status, utcnow(), student_quota=self._student_quota
            )
            if not changes:
                log.debug("reconciliation_unchanged")
                return SyncResult(identity=identity, outcome=SyncOutcome.UNCHANGED)

            await accounts.patch(identity, changes)
            if changes.get("plan") == Plan.SUBSCRIBED:
                requests = ApprovalRequestStore(db)
                pending = await requests.pending_for(identity)
                if pending is not None:
                    await requests.set_status(pending.id, RequestStatus.ACCEPTED)

        log.info("reconciliation_applied", changes=sorted(changes))
        return SyncResult(
            identity=identity, outcome=SyncOutcome.APPLIED, changes=sorted(changes)
        )
