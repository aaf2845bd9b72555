"""Append-only audit trail for reconciliation decisions."""

from typing import Any
from uuid import UUID

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recon.database import Base
from recon.models.base import CreatedAtMixin, UUIDMixin, WorkspaceScopedMixin

MATCH_SUGGESTION_REJECTED = "match_suggestion_rejected"
MATCH_SUGGESTION_ENTITY = "MatchSuggestion"


class AuditLogEntry(UUIDMixin, WorkspaceScopedMixin, CreatedAtMixin, Base):
    """A decision that did not produce a Match, kept for traceability."""

    __tablename__ = "audit_log_entries"

    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
