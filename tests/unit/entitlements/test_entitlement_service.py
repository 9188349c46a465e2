"""Tests for the entitlement service."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import Settings
from academy.core.database import utcnow
from academy.core.errors import ConflictError, ForbiddenError, NotFoundError
from academy.core.session import Principal
from academy.modules.accounts.models import (
    Plan,
    PlanType,
    RequestStatus,
    TenantAccount,
)
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.entitlements.machine import EntitlementState
from academy.modules.entitlements.services import EntitlementService
from academy.modules.remote import MemoryAuthority
from academy.runtime import Runtime
from tests.conftest import ADMIN_MOBILE, ADMIN_NAME, OWNER_MOBILE, TEACHER_MOBILE


@pytest.fixture
def service(db: AsyncSession, runtime: Runtime) -> EntitlementService:
    return EntitlementService(db, runtime)


class TestRequestActivation:
    async def test_request_creates_pending(
        self,
        service: EntitlementService,
        owner_principal: Principal,
        remote: MemoryAuthority,
        handoffs: list[str],
    ):
        result = await service.request_activation(owner_principal)

        assert result.created
        assert result.request.status == RequestStatus.PENDING
        assert result.request.is_lifetime
        assert remote.rows[OWNER_MOBILE].request_sent is True
        assert handoffs and f"phone=91{ADMIN_MOBILE}" in handoffs[0]
        assert (await service.get_view(owner_principal)).state == EntitlementState.PENDING

    async def test_resubmit_is_noop(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        first = await service.request_activation(owner_principal)
        second = await service.request_activation(owner_principal)

        assert not second.created
        assert second.request.id == first.request.id
        pending = await ApprovalRequestStore(db).list_requests(RequestStatus.PENDING)
        assert len(pending) == 1

    async def test_request_survives_unreachable_remote(
        self,
        service: EntitlementService,
        owner_principal: Principal,
        remote: MemoryAuthority,
    ):
        remote.unreachable = True

        result = await service.request_activation(owner_principal)

        assert result.created

    async def test_subscribed_owner_cannot_request(
        self, service: EntitlementService, owner_principal: Principal
    ):
        await service.apply_activation_code(owner_principal, "SMLIFETIME")

        with pytest.raises(ConflictError) as exc_info:
            await service.request_activation(owner_principal)
        assert exc_info.value.error_code == "already_subscribed"


class TestActivationCode:
    async def test_code_is_case_insensitive(
        self, service: EntitlementService, owner_principal: Principal
    ):
        account = await service.apply_activation_code(owner_principal, " smlifetime ")

        assert account.plan == Plan.SUBSCRIBED
        assert account.plan_type == PlanType.LIFETIME
        assert account.end_date is None
        assert account.is_entitled()

    async def test_wrong_code_writes_nothing(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        with pytest.raises(ForbiddenError) as exc_info:
            await service.apply_activation_code(owner_principal, "WRONG")

        assert exc_info.value.error_code == "invalid_activation_code"
        assert (await AccountStore(db).get(OWNER_MOBILE)).plan == Plan.FREE

    async def test_code_accepts_pending_request(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        request = (await service.request_activation(owner_principal)).request

        await service.apply_activation_code(owner_principal, "SMLIFETIME")

        stored = await ApprovalRequestStore(db).get(request.id)
        assert stored.status == RequestStatus.ACCEPTED


class TestAdministratorDecisions:
    async def test_accept_lifetime(
        self,
        service: EntitlementService,
        owner_principal: Principal,
        handoffs: list[str],
    ):
        request = (await service.request_activation(owner_principal)).request

        account = await service.accept_request(request.id)

        assert account.plan == Plan.SUBSCRIBED
        assert account.subscription_active
        assert account.plan_type == PlanType.LIFETIME
        assert account.student_quota == 99_999
        assert f"phone=91{OWNER_MOBILE}" in handoffs[-1]

    async def test_accept_fixed_term(
        self, service: EntitlementService, owner_principal: Principal
    ):
        request = (await service.request_activation(owner_principal, months=12)).request

        account = await service.accept_request(request.id)

        assert account.plan_type == PlanType.FIXED_TERM
        assert account.end_date is not None
        assert account.end_date > account.start_date

    async def test_decided_request_is_terminal(
        self, service: EntitlementService, owner_principal: Principal
    ):
        request = (await service.request_activation(owner_principal)).request
        await service.decline_request(request.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.accept_request(request.id)
        assert exc_info.value.error_code == "request_already_decided"

    async def test_decline_keeps_account_free(
        self, service: EntitlementService, owner_principal: Principal
    ):
        request = (await service.request_activation(owner_principal)).request

        declined = await service.decline_request(request.id)

        assert declined.status == RequestStatus.DECLINED
        assert declined.decided_at is not None
        assert (await service.get_view(owner_principal)).state == EntitlementState.FREE

    async def test_unknown_request(self, service: EntitlementService):
        with pytest.raises(NotFoundError):
            await service.accept_request(404)

    async def test_pause_and_resume_keep_plan(
        self, service: EntitlementService, owner_principal: Principal
    ):
        await service.apply_activation_code(owner_principal, "SMLIFETIME")

        paused = await service.toggle_pause(OWNER_MOBILE)
        assert paused.plan == Plan.SUBSCRIBED
        assert paused.subscription_active is False
        assert paused.student_quota == 99_999
        assert (await service.get_view(owner_principal)).state == EntitlementState.PAUSED

        resumed = await service.toggle_pause(OWNER_MOBILE)
        assert resumed.subscription_active is True

    async def test_pause_free_account_rejected(
        self, service: EntitlementService, owner: TenantAccount
    ):
        with pytest.raises(ConflictError) as exc_info:
            await service.toggle_pause(OWNER_MOBILE)
        assert exc_info.value.error_code == "invalid_transition"

    async def test_cancel_resets_free_defaults(
        self, service: EntitlementService, owner_principal: Principal
    ):
        await service.apply_activation_code(owner_principal, "SMLIFETIME")
        await service.toggle_pause(OWNER_MOBILE)

        account = await service.cancel(OWNER_MOBILE)

        assert account.plan == Plan.FREE
        assert account.plan_type == PlanType.NONE
        assert account.start_date is None
        assert account.student_quota == 6


class TestPlanView:
    async def test_teacher_sees_owner_plan(
        self,
        service: EntitlementService,
        owner_principal: Principal,
        db: AsyncSession,
    ):
        await service.apply_activation_code(owner_principal, "SMLIFETIME")
        teacher = await AccountStore(db).put(
            TenantAccount.new_teacher(TEACHER_MOBILE, "Ravi", OWNER_MOBILE, 6)
        )

        view = await service.get_view(Principal.from_account(teacher))

        assert view.owner_identity == OWNER_MOBILE
        assert view.plan == Plan.SUBSCRIBED
        assert view.student_quota == 99_999

    async def test_admin_has_no_plan(self, service: EntitlementService):
        with pytest.raises(ForbiddenError):
            await service.get_view(Principal.admin(ADMIN_NAME))


async def expire_term(
    service: EntitlementService, owner_principal: Principal, db: AsyncSession
) -> None:
    """Subscribe for one month, then move the end date into the past."""
    request = (await service.request_activation(owner_principal, months=1)).request
    await service.accept_request(request.id)
    await AccountStore(db).patch(
        OWNER_MOBILE, {"end_date": utcnow() - timedelta(days=1)}
    )


class TestExpiredTerm:
    async def test_lapsed_term_is_expired(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        await expire_term(service, owner_principal, db)

        view = await service.get_view(owner_principal)

        assert view.state == EntitlementState.EXPIRED
        assert view.entitled is False

    async def test_renewal_request_and_accept(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        await expire_term(service, owner_principal, db)

        result = await service.request_activation(owner_principal)
        assert result.created
        assert (await service.get_view(owner_principal)).state == EntitlementState.PENDING

        account = await service.accept_request(result.request.id)

        assert account.plan_type == PlanType.LIFETIME
        assert account.end_date is None
        assert account.is_entitled()
        assert (await service.get_view(owner_principal)).state == EntitlementState.ACTIVE

    async def test_activation_code_renews(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        await expire_term(service, owner_principal, db)

        account = await service.apply_activation_code(owner_principal, "SMLIFETIME")

        assert account.plan_type == PlanType.LIFETIME
        assert account.is_entitled()

    async def test_declined_renewal_stays_expired(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        await expire_term(service, owner_principal, db)
        request = (await service.request_activation(owner_principal)).request

        await service.decline_request(request.id)

        assert (await service.get_view(owner_principal)).state == EntitlementState.EXPIRED

    async def test_expired_can_be_cancelled_not_paused(
        self, service: EntitlementService, owner_principal: Principal, db: AsyncSession
    ):
        await expire_term(service, owner_principal, db)

        with pytest.raises(ConflictError) as exc_info:
            await service.toggle_pause(OWNER_MOBILE)
        assert exc_info.value.error_code == "invalid_transition"

        account = await service.cancel(OWNER_MOBILE)
        assert account.plan == Plan.FREE
        assert account.end_date is None


class TestConfiguredLimits:
    @pytest.fixture
    def test_settings(self, test_settings: Settings) -> Settings:
        return test_settings.model_copy(
            update={
                "free_student_limit": 3,
                "unlimited_student_limit": 500,
                "whatsapp_country_code": "44",
            }
        )

    async def test_activation_and_cancel_use_runtime_quotas(
        self, service: EntitlementService, owner_principal: Principal
    ):
        activated = await service.apply_activation_code(owner_principal, "SMLIFETIME")
        assert activated.student_quota == 500

        cancelled = await service.cancel(OWNER_MOBILE)

        assert cancelled.student_quota == 3

    async def test_handoff_uses_runtime_country_code(
        self,
        service: EntitlementService,
        owner_principal: Principal,
        handoffs: list[str],
    ):
        result = await service.request_activation(owner_principal)

        assert f"phone=44{ADMIN_MOBILE}" in result.whatsapp_url
        assert handoffs == [result.whatsapp_url]
