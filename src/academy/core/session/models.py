"""Client-local key/value state (the persisted session lives here)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.database.base import Base, TimestampMixin


class AppState(Base, TimestampMixin):
    """One persisted client setting, keyed by a well-known name."""

    __tablename__ = "app_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
