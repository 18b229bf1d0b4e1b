from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class IntAsString(TypeDecorator):
    """Arbitrary-precision integers (token base units) stored as text."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: int | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> int | None:
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    pass


class VaultEventOrm(Base):
    __tablename__ = "vault_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    asset_id: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[int] = mapped_column(IntAsString, nullable=False)
    usd_value: Mapped[int] = mapped_column(IntAsString, nullable=False)
    feed_id: Mapped[str | None] = mapped_column(String, nullable=True)
