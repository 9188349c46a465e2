"""Keyed record store over an AsyncSession.

Every collection in the local store is a keyed table with the same small
surface: get, full replace, partial patch, equality queries and deletes.
Repositories subclass ``KeyedStore`` and add collection-specific queries.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from functools import wraps
from typing import Any, ClassVar, Generic, ParamSpec, TypeVar

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from academy.core.database.base import Base
from academy.core.errors import LocalStoreError, ValidationError


logger = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=Base)

# Columns a full replace never overwrites
PRESERVED_ON_REPLACE = ("created_at", "updated_at")


def store_operation(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """Surface SQLAlchemy failures as LocalStoreError.

    Store errors are never swallowed; callers see a domain exception with
    the original error chained.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                "local_store_error",
                operation=func.__qualname__,
                error=str(e),
            )
            raise LocalStoreError(
                f"Local store operation failed: {func.__name__}",
                details={"operation": func.__qualname__},
            ) from e

    return wrapper


class KeyedStore(Generic[ModelT]):
    """Generic keyed table for one model.

    Attributes:
        model: Mapped class stored in this collection
        key: Name of the primary key attribute
    """

    model: ClassVar[type[Base]]
    key: ClassVar[str]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _column(self, field: str) -> InstrumentedAttribute[Any]:
        mapper = self.model.__mapper__
        if field not in mapper.column_attrs:
            raise ValidationError(
                f"Unknown field '{field}'",
                error_code="unknown_field",
                details={"collection": self.model.__tablename__},
            )
        return getattr(self.model, field)

    @store_operation
    async def get(self, key: Any) -> ModelT | None:
        """Get a record by key."""
        return await self.session.get(self.model, key)  # type: ignore[return-value]

    @store_operation
    async def put(self, record: ModelT) -> ModelT:
        """Insert or fully replace a record.

        An existing row keeps its creation timestamp; every other column is
        overwritten with the values of ``record``.
        """
        key_value = getattr(record, self.key)
        existing = None
        if key_value is not None:
            existing = await self.session.get(self.model, key_value)

        if existing is None:
            self.session.add(record)
            await self.session.flush()
            return record

        if existing is not record:
            for prop in self.model.__mapper__.column_attrs:
                if prop.key in PRESERVED_ON_REPLACE:
                    continue
                setattr(existing, prop.key, getattr(record, prop.key))
        await self.session.flush()
        return existing  # type: ignore[return-value]

    @store_operation
    async def patch(self, key: Any, fields: Mapping[str, Any]) -> ModelT | None:
        """Merge ``fields`` into an existing record.

        Returns None, without writing, when the record does not exist: a
        patch never resurrects a deleted record.
        """
        for field in fields:
            self._column(field)
        if self.key in fields:
            raise ValidationError(
                f"'{self.key}' is immutable", error_code="immutable_field"
            )

        existing = await self.session.get(self.model, key)
        if existing is None:
            return None

        for field, value in fields.items():
            setattr(existing, field, value)
        await self.session.flush()
        return existing  # type: ignore[return-value]

    @store_operation
    async def query_by_field(self, field: str, value: Any) -> Sequence[ModelT]:
        """All records whose ``field`` equals ``value``."""
        column = self._column(field)
        result = await self.session.execute(
            select(self.model).where(column == value).order_by(self._column(self.key))
        )
        return result.scalars().all()  # type: ignore[return-value]

    @store_operation
    async def first_by_field(self, field: str, value: Any) -> ModelT | None:
        """First record (by key) whose ``field`` equals ``value``."""
        column = self._column(field)
        result = await self.session.execute(
            select(self.model)
            .where(column == value)
            .order_by(self._column(self.key))
            .limit(1)
        )
        return result.scalars().first()  # type: ignore[return-value]

    @store_operation
    async def count_where(self, field: str, value: Any) -> int:
        column = self._column(field)
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(column == value)
        )
        return result.scalar_one()

    @store_operation
    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(self.model)
        )
        return result.scalar_one()

    @store_operation
    async def delete(self, key: Any) -> bool:
        """Delete a record by key. Returns False if it did not exist."""
        existing = await self.session.get(self.model, key)
        if existing is None:
            return False
        await self.session.delete(existing)
        await self.session.flush()
        return True

    @store_operation
    async def delete_where(self, field: str, value: Any) -> int:
        """Delete every record whose ``field`` equals ``value``.

        Runs as a single statement, so one collection is cleared entirely
        or not at all.

        Returns:
            Number of deleted records
        """
        column = self._column(field)
        result = await self.session.execute(
            delete(self.model)
            .where(column == value)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount or 0
