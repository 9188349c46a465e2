"""Process-wide runtime: local store, session, remote binding, reconciler.

The API server and the CLI both build one ``Runtime`` per process. It is the
only place that owns long-lived resources, and ``close()`` releases them in
reverse order.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from academy.config import Settings, settings
from academy.core.database import (
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from academy.core.notifications import MessagingHandoff
from academy.core.session import SessionContext
from academy.modules.admin.cascade import purge_demo_data
from academy.modules.reconciliation import ReconciliationEngine
from academy.modules.remote import RemoteAuthority, build_remote_authority


logger = structlog.get_logger()


class Runtime:
    """Bundle of the long-lived collaborators of one client instance.

    Attributes:
        engine: Async engine of the local store
        session_factory: Factory for store sessions
        session: The single active principal's session context
        remote: Active remote authority binding
        reconciler: Reconciliation engine bound to ``session``
        notifier: Messaging handoff for outbound messages
    """

    def __init__(
        self,
        *,
        config: Settings | None = None,
        engine: AsyncEngine | None = None,
        remote: RemoteAuthority | None = None,
        notifier: MessagingHandoff | None = None,
    ) -> None:
        self.config = config or settings
        self.engine = engine or create_engine(
            self.config.database_url, echo=self.config.database_echo
        )
        self.session_factory = create_session_factory(self.engine)
        self.session = SessionContext(
            self.session_factory, admin_name=self.config.admin_name
        )
        self.remote = remote or build_remote_authority(self.config)
        self.notifier = notifier or MessagingHandoff()
        if self.notifier.config is None:
            self.notifier.config = self.config
        self.reconciler = ReconciliationEngine(
            self.session_factory,
            self.remote,
            self.session,
            self.config,
        )
        self.session.add_teardown_hook(self.reconciler.cancel)
        self._started = False

    async def start(self) -> None:
        """Create tables, drop legacy demo data and resume the saved session."""
        if self._started:
            return
        await init_db(self.engine)
        async with session_scope(self.session_factory) as db:
            await purge_demo_data(db)
        await self.session.restore()
        self._started = True
        logger.info("runtime_started", backend=self.remote.name)

    async def close(self) -> None:
        await self.reconciler.shutdown()
        await self.remote.aclose()
        await self.engine.dispose()
        self._started = False
        logger.info("runtime_closed")


@asynccontextmanager
async def open_runtime(**kwargs: Any) -> AsyncGenerator[Runtime, None]:
    """Start a runtime for the duration of a block (CLI commands)."""
    runtime = Runtime(**kwargs)
    await runtime.start()
    try:
        yield runtime
    finally:
        await runtime.close()
