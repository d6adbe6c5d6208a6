"""SQLAlchemy base classes and common mixins.

Defines the declarative base and the creation-timestamp mixin shared by all
authentication tables.
"""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from taskboard_auth.core.tokens import utc_now


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class CreatedAtMixin:
    """Mixin that adds a created_at column.

    The value is set in Python (microsecond precision) so "most recently
    created" ordering is stable even on stores whose CURRENT_TIMESTAMP has
    one-second resolution. The server default covers raw SQL inserts.

    Attributes:
        created_at: Timestamp when the record was created.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
