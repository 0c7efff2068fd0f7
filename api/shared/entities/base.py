"""Shared base entity for all database models."""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from api.shared.utils import new_id, utc_now


class BaseEntity(DeclarativeBase):
    """Base class for all database entities.

    Ids are UUID strings kept in a portable ``String(36)`` column so the same
    models run on SQLite and PostgreSQL. Timestamps come from the application
    clock, not the server, because rows are ordered by them.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        """String representation of the entity."""
        return f"<{self.__class__.__name__}(id={self.id})>"
