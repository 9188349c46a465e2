"""Pytest configuration and shared fixtures.

Every test gets its own SQLite file under ``tmp_path``, a started runtime
bound to an in-memory remote authority, and a recording messaging handoff.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import Settings
from academy.core.database import session_scope
from academy.core.notifications import MessagingHandoff
from academy.core.session import Principal
from academy.main import create_app
from academy.modules.accounts.models import TenantAccount
from academy.modules.accounts.repos import AccountStore
from academy.modules.remote import MemoryAuthority
from academy.runtime import Runtime


OWNER_MOBILE = "9000000001"
OWNER_NAME = "Wisdom Academy"
TEACHER_MOBILE = "9000000002"
TEACHER_NAME = "Ravi Kulkarni"
ADMIN_NAME = "suhaspatilsir"
ADMIN_MOBILE = "9834252755"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'academy.db'}",
        remote_backend="memory",
        remote_timeout_seconds=2.0,
        app_base_url="http://localhost:5173/",
        admin_name=ADMIN_NAME,
        admin_mobile=ADMIN_MOBILE,
    )


@pytest.fixture
def remote() -> MemoryAuthority:
    return MemoryAuthority()


@pytest.fixture
def handoffs() -> list[str]:
    """URLs passed to the messaging launcher, in order."""
    return []


@pytest.fixture
async def runtime(
    test_settings: Settings, remote: MemoryAuthority, handoffs: list[str]
) -> AsyncGenerator[Runtime, None]:
    """A started runtime; closed (and drained) after the test."""
    rt = Runtime(
        config=test_settings,
        remote=remote,
        notifier=MessagingHandoff(launcher=handoffs.append),
    )
    await rt.start()
    yield rt
    await rt.close()


@pytest.fixture
async def db(runtime: Runtime) -> AsyncGenerator[AsyncSession, None]:
    """A unit of work on the runtime's store, committed at teardown.

    Commit explicitly before anything that opens its own session
    (reconciliation, HTTP requests) needs to see the writes.
    """
    async with session_scope(runtime.session_factory) as session:
        yield session


@pytest.fixture
async def app(runtime: Runtime):
    """Test application sharing the test runtime."""
    return create_app(runtime)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Account Fixtures
# ============================================================


@pytest.fixture
async def owner(db: AsyncSession, test_settings: Settings) -> TenantAccount:
    """A committed FREE owner."""
    account = await AccountStore(db).put(
        TenantAccount.new_owner(OWNER_MOBILE, OWNER_NAME, test_settings.free_student_limit)
    )
    await db.commit()
    return account


@pytest.fixture
def owner_principal(owner: TenantAccount) -> Principal:
    return Principal.from_account(owner)


@pytest.fixture
async def logged_in_owner(
    runtime: Runtime, db: AsyncSession, owner_principal: Principal
) -> Principal:
    """The owner as the session principal."""
    await runtime.session.begin(owner_principal, db)
    await db.commit()
    return owner_principal


async def login(client: AsyncClient, name: str, mobile: str) -> dict:
    response = await client.post(
        "/api/v1/auth/login", json={"name": name, "mobile": mobile}
    )
    assert response.status_code == 200, response.text
    return response.json()


async def reload_account(runtime: Runtime, identity: str) -> TenantAccount | None:
    """Read an account through a fresh session (no identity-map caching)."""
    async with session_scope(runtime.session_factory) as session:
        return await AccountStore(session).get(identity)
