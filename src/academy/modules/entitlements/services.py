"""Entitlement service: requests, decisions, activation codes, pause, revoke.

Every state change goes through ``machine.ensure_transition`` and is
written as a field patch on the account store.
"""

import asyncio
from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.constants import LIFETIME_TERM
from academy.core.database import utcnow
from academy.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RemoteAuthorityError,
)
from academy.core.notifications import (
    activation_accepted_message,
    activation_request_message,
)
from academy.core.session import Principal
from academy.modules.accounts.models import (
    ApprovalRequest,
    RequestStatus,
    Role,
    TenantAccount,
)
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.accounts.schemas import ApprovalRequestResponse
from academy.modules.entitlements.machine import (
    EntitlementState,
    activation_fields,
    derive_state,
    ensure_transition,
    free_defaults,
    pause_fields,
)
from academy.modules.entitlements.schemas import ActivationRequestResult, PlanView
from academy.modules.reconciliation.schemas import SyncResult
from academy.modules.records.repos import StudentStore


logger = structlog.get_logger()


class EntitlementService:
    """Subscription lifecycle of OWNER accounts."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.accounts = AccountStore(db)
        self.requests = ApprovalRequestStore(db)
        self.students = StudentStore(db)
        self.runtime = runtime

    # ============================================================
    # Reads
    # ============================================================

    async def _owner(self, identity: str) -> TenantAccount:
        account = await self.accounts.get(identity)
        if account is None or account.role != Role.OWNER:
            raise NotFoundError(
                "Institute not found", resource="account", resource_id=identity
            )
        return account

    async def state_of(self, account: TenantAccount) -> EntitlementState:
        pending = await self.requests.pending_for(account.identity)
        return derive_state(account, pending is not None)

    async def get_view(self, principal: Principal) -> PlanView:
        """Plan of the principal's partition (the linked owner for TEACHERs)."""
        if principal.partition_owner is None:
            raise ForbiddenError(
                "The administrator has no plan", error_code="partition_required"
            )
        account = await self._owner(principal.partition_owner)
        pending = await self.requests.pending_for(account.identity)
        return PlanView(
            owner_identity=account.identity,
            display_name=account.display_name,
            viewer_role=principal.role,
            state=derive_state(account, pending is not None),
            plan=account.plan,
            plan_type=account.plan_type,
            subscription_active=account.subscription_active,
            entitled=account.is_entitled(),
            start_date=account.start_date,
            end_date=account.end_date,
            student_quota=account.student_quota,
            student_count=await self.students.count_for(account.identity),
            pending_request=(
                ApprovalRequestResponse.model_validate(pending) if pending else None
            ),
            syncing=self.runtime.reconciler.is_syncing(account.identity),
        )

    # ============================================================
    # Owner actions
    # ============================================================

    @property
    def _unlimited(self) -> int:
        return self.runtime.config.unlimited_student_limit

    def _require_owner(self, principal: Principal) -> None:
        if principal.role != Role.OWNER:
            raise ForbiddenError("Institute owner only", error_code="owner_required")

    async def request_activation(
        self, principal: Principal, months: int = LIFETIME_TERM
    ) -> ActivationRequestResult:
        """FREE|EXPIRED -> PENDING. Re-submitting while PENDING is a no-op.

        The remote authority is told first, on a best-effort basis; the
        administrator is then handed a prefilled message.

        Raises:
            ConflictError: If the account is already subscribed
        """
        self._require_owner(principal)
        account = await self._owner(principal.identity)
        pending = await self.requests.pending_for(account.identity)
        state = derive_state(account, pending is not None)

        if pending is not None:
            logger.info("activation_request_exists", identity=account.identity)
            return ActivationRequestResult(
                request=ApprovalRequestResponse.model_validate(pending), created=False
            )
        if state in (EntitlementState.ACTIVE, EntitlementState.PAUSED):
            raise ConflictError(
                "Subscription is already active", error_code="already_subscribed"
            )
        ensure_transition(state, EntitlementState.PENDING)

        await self._submit_remote(account)
        request = await self.requests.add(account.identity, account.display_name, months)
        logger.info(
            "activation_requested",
            identity=account.identity,
            request_id=request.id,
            months=months,
        )

        url = self.runtime.notifier.handoff(
            self.runtime.config.admin_mobile,
            activation_request_message(account.display_name, account.identity),
            event="activation_requested",
        )
        return ActivationRequestResult(
            request=ApprovalRequestResponse.model_validate(request),
            created=True,
            whatsapp_url=url,
        )

    async def _submit_remote(self, account: TenantAccount) -> None:
        remote = self.runtime.remote
        try:
            await asyncio.wait_for(
                remote.submit_request(account.identity, account.display_name),
                timeout=self.runtime.config.remote_timeout_seconds,
            )
        except (RemoteAuthorityError, TimeoutError) as e:
            logger.warning(
                "remote_request_submit_failed",
                identity=account.identity,
                backend=remote.name,
                error=str(e) or type(e).__name__,
            )

    async def apply_activation_code(
        self, principal: Principal, code: str
    ) -> TenantAccount:
        """FREE|PENDING|EXPIRED -> ACTIVE (lifetime) on the manual activation code.

        Raises:
            ForbiddenError: If the code does not match; nothing is written
            ConflictError: If the account is already subscribed
        """
        self._require_owner(principal)
        if code.strip().casefold() != self.runtime.config.activation_code.casefold():
            logger.warning("activation_code_rejected", identity=principal.identity)
            raise ForbiddenError(
                "Invalid activation code", error_code="invalid_activation_code"
            )

        account = await self._owner(principal.identity)
        pending = await self.requests.pending_for(account.identity)
        ensure_transition(
            derive_state(account, pending is not None), EntitlementState.ACTIVE
        )

        updated = await self.accounts.patch(
            account.identity, activation_fields(utcnow(), student_quota=self._unlimited)
        )
        if pending is not None:
            await self.requests.set_status(pending.id, RequestStatus.ACCEPTED)
        logger.info("activation_code_applied", identity=account.identity)
        return updated  # type: ignore[return-value]

    async def sync(self, principal: Principal) -> SyncResult:
        """Reconcile the principal's own account now."""
        self._require_owner(principal)
        return await self.runtime.reconciler.reconcile(principal.identity)

    # ============================================================
    # Administrator decisions
    # ============================================================

    async def accept_request(self, request_id: int) -> TenantAccount:
        """PENDING -> ACTIVE with the requested term."""
        request = await self._request(request_id)
        account = await self._owner(request.owner_identity)
        ensure_transition(derive_state(account, True), EntitlementState.ACTIVE)

        await self.requests.set_status(request.id, RequestStatus.ACCEPTED)
        updated = await self.accounts.patch(
            account.identity,
            activation_fields(
                utcnow(), request.months_requested, student_quota=self._unlimited
            ),
        )
        logger.info(
            "activation_accepted",
            identity=account.identity,
            request_id=request.id,
            lifetime=request.is_lifetime,
        )

        self.runtime.notifier.handoff(
            account.identity,
            activation_accepted_message(account.display_name),
            event="activation_accepted",
        )
        return updated  # type: ignore[return-value]

    async def decline_request(self, request_id: int) -> ApprovalRequest:
        """Close a PENDING request.

        The account itself is not touched: the owner falls back to the state
        it held before asking (FREE, or EXPIRED for a lapsed term).
        """
        request = await self._request(request_id)
        declined = await self.requests.set_status(request.id, RequestStatus.DECLINED)
        logger.info(
            "activation_declined", identity=request.owner_identity, request_id=request.id
        )
        return declined

    async def toggle_pause(self, identity: str) -> TenantAccount:
        """ACTIVE <-> PAUSED. Plan, term and quota are kept."""
        account = await self._owner(identity)
        state = await self.state_of(account)
        target = (
            EntitlementState.ACTIVE
            if state == EntitlementState.PAUSED
            else EntitlementState.PAUSED
        )
        ensure_transition(state, target)

        updated = await self.accounts.patch(
            identity, pause_fields(target == EntitlementState.PAUSED)
        )
        logger.info("subscription_pause_toggled", identity=identity, state=target.value)
        return updated  # type: ignore[return-value]

    async def cancel(self, identity: str) -> TenantAccount:
        """ACTIVE|PAUSED|EXPIRED -> CANCELLED -> FREE with the configured FREE quota."""
        account = await self._owner(identity)
        ensure_transition(await self.state_of(account), EntitlementState.CANCELLED)
        ensure_transition(EntitlementState.CANCELLED, EntitlementState.FREE)

        updated = await self.accounts.patch(
            identity, free_defaults(self.runtime.config.free_student_limit)
        )
        logger.info("subscription_cancelled", identity=identity)
        return updated  # type: ignore[return-value]

    async def _request(self, request_id: int) -> ApprovalRequest:
        request = await self.requests.get(request_id)
        if request is None:
            raise NotFoundError(
                "Request not found", resource="request", resource_id=str(request_id)
            )
        if request.is_terminal:
            raise ConflictError(
                "Request has already been decided",
                error_code="request_already_decided",
                details={"request_id": request_id, "status": request.status.value},
            )
        return request


# Type alias for dependency injection
EntitlementSvc = Annotated[EntitlementService, Depends()]
