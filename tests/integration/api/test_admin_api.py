"""Administrator dashboard over HTTP."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from academy.modules.accounts.models import Plan, PlanType, TenantAccount
from academy.modules.accounts.repos import AccountStore
from academy.modules.remote import MemoryAuthority
from academy.runtime import Runtime
from tests.conftest import (
    ADMIN_MOBILE,
    ADMIN_NAME,
    OWNER_MOBILE,
    TEACHER_MOBILE,
    login,
    reload_account,
)
from tests.factories import StudentCreateFactory


pytestmark = pytest.mark.integration


@pytest.fixture
async def admin_client(client: AsyncClient, owner: TenantAccount) -> AsyncClient:
    await login(client, ADMIN_NAME, ADMIN_MOBILE)
    return client


@pytest.fixture
async def subscriber(db: AsyncSession, owner: TenantAccount) -> str:
    accounts = AccountStore(db)
    await accounts.put(TenantAccount.new_owner("8000000001", "Sunrise Classes", 6))
    await accounts.patch(
        "8000000001",
        {
            "plan": Plan.SUBSCRIBED,
            "plan_type": PlanType.LIFETIME,
            "subscription_active": True,
        },
    )
    await accounts.put(TenantAccount.new_teacher(TEACHER_MOBILE, "Ravi", OWNER_MOBILE, 6))
    await db.commit()
    return "8000000001"


class TestAdminDashboard:
    async def test_stats(self, admin_client: AsyncClient, subscriber: str):
        response = await admin_client.get("/api/v1/admin/stats")

        assert response.status_code == 200
        assert response.json() == {
            "institutes": 2,
            "teachers": 1,
            "active_subscriptions": 1,
            "pending_requests": 0,
            "total_students": 0,
        }

    async def test_accounts_tabs(self, admin_client: AsyncClient, subscriber: str):
        everyone = (await admin_client.get("/api/v1/admin/accounts")).json()
        subscribers = (
            await admin_client.get("/api/v1/admin/accounts", params={"tab": "SUBSCRIBERS"})
        ).json()

        assert {a["account"]["identity"] for a in everyone} == {OWNER_MOBILE, subscriber}
        assert [a["account"]["identity"] for a in subscribers] == [subscriber]
        assert subscribers[0]["state"] == "ACTIVE"

    async def test_search(self, admin_client: AsyncClient, subscriber: str):
        response = await admin_client.get(
            "/api/v1/admin/accounts", params={"search": "sunrise"}
        )

        assert [a["account"]["identity"] for a in response.json()] == [subscriber]

    async def test_unknown_account(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/v1/admin/accounts/8111111111")

        assert response.status_code == 404

    async def test_pause_free_account_is_rejected(self, admin_client: AsyncClient):
        response = await admin_client.post(f"/api/v1/admin/accounts/{OWNER_MOBILE}/pause")

        assert response.status_code == 409
        assert response.json()["error_code"] == "invalid_transition"


class TestAdminSync:
    async def test_sync_applies_remote_acceptance(
        self,
        admin_client: AsyncClient,
        remote: MemoryAuthority,
        runtime: Runtime,
    ):
        remote.set_flags(OWNER_MOBILE, accepted=True)

        response = await admin_client.post(f"/api/v1/admin/accounts/{OWNER_MOBILE}/sync")

        assert response.status_code == 200
        assert response.json()["outcome"] == "APPLIED"
        account = await reload_account(runtime, OWNER_MOBILE)
        assert account.plan == Plan.SUBSCRIBED

    async def test_sync_unreachable_keeps_local_state(
        self,
        admin_client: AsyncClient,
        remote: MemoryAuthority,
        runtime: Runtime,
    ):
        remote.unreachable = True

        response = await admin_client.post(f"/api/v1/admin/accounts/{OWNER_MOBILE}/sync")

        assert response.json()["outcome"] == "UNREACHABLE"
        account = await reload_account(runtime, OWNER_MOBILE)
        assert account.plan == Plan.FREE


class TestAdminDelete:
    async def test_delete_requires_matching_confirmation(
        self, admin_client: AsyncClient, runtime: Runtime
    ):
        response = await admin_client.delete(
            f"/api/v1/admin/accounts/{OWNER_MOBILE}", params={"confirm": "delete"}
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "confirmation_required"
        assert await reload_account(runtime, OWNER_MOBILE) is not None

    async def test_delete_cascade(
        self, client: AsyncClient, runtime: Runtime, subscriber: str
    ):
        await login(client, "Wisdom Academy", OWNER_MOBILE)
        await runtime.reconciler.wait_idle()
        for _ in range(2):
            await client.post(
                "/api/v1/students",
                json=StudentCreateFactory.build().model_dump(mode="json"),
            )
        await login(client, ADMIN_NAME, ADMIN_MOBILE)

        response = await client.delete(
            f"/api/v1/admin/accounts/{OWNER_MOBILE}", params={"confirm": OWNER_MOBILE}
        )

        assert response.status_code == 200
        report = response.json()
        assert report["account"] is True
        assert report["students"] == 2
        assert report["teachers"] == 1
        assert await reload_account(runtime, OWNER_MOBILE) is None
        assert await reload_account(runtime, TEACHER_MOBILE) is None
        assert await reload_account(runtime, subscriber) is not None
