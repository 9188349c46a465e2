"""Database layer - session management, base models, and mixins."""

from academy.core.database.base import (
    Base,
    OwnerScopedMixin,
    TimestampMixin,
    UTCDateTime,
    utcnow,
)
from academy.core.database.session import (
    create_engine,
    create_session_factory,
    get_db,
    init_db,
    session_scope,
)
from academy.core.database.store import KeyedStore, store_operation


__all__ = [
    "Base",
    "KeyedStore",
    "OwnerScopedMixin",
    "TimestampMixin",
    "UTCDateTime",
    "create_engine",
    "create_session_factory",
    "get_db",
    "init_db",
    "session_scope",
    "store_operation",
    "utcnow",
]
