from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from assistant_relay.database.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ThreadBinding(Base):
    """Remembers which remote thread a client-side key last conversed on."""

    __tablename__ = "thread_bindings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(64), index=True)
    bound_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
