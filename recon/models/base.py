"""Base model mixins for common patterns."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class UUIDMixin:
    """Mixin for UUID primary key."""

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)


class WorkspaceScopedMixin:
    """Mixin for tenant scoping; every query filters on workspace_id."""

    workspace_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)


class CreatedAtMixin:
    """Mixin for append-only records that are never updated."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin for created_at/updated_at timestamps with UTC timezone."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
