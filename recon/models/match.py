"""Reconciliation match model."""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Float, ForeignKey, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recon.database import Base
from recon.models.base import CreatedAtMixin, UUIDMixin, WorkspaceScopedMixin

if TYPE_CHECKING:
    from recon.models.transaction import Transaction


class MatchType(str, Enum):
    """How a bank and ledger transaction were linked."""

    EXACT = "exact"
    TIMING = "timing"
    FEE_ADJUSTED = "fee_adjusted"
    PARTIAL = "partial"
    MANUAL = "manual"


MANUAL_MATCH_REASONING = "Manually matched by user"


class Match(UUIDMixin, WorkspaceScopedMixin, CreatedAtMixin, Base):
    """Confirmed linkage between one bank and one ledger transaction.

    Rows are insert-only. The unique constraints on both foreign keys back up
    the already-matched check when two approvals race on the same pair.
    """

    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_matches_confidence_range"),
    )

    bank_transaction_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("transactions.id"),
        nullable=False,
        unique=True,
    )
    ledger_transaction_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("transactions.id"),
        nullable=False,
        unique=True,
    )
    match_type: Mapped[MatchType] = mapped_column(
        SQLEnum(MatchType, name="match_type_enum"),
        nullable=False,
    )
    # Heuristic scores are non-monetary; float is fine here.
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    reasoning: Mapped[str] = mapped_column(Text, nullable=False, default="")

    bank_transaction: Mapped["Transaction"] = relationship(
        "Transaction",
        foreign_keys=[bank_transaction_id],
    )
    ledger_transaction: Mapped["Transaction"] = relationship(
        "Transaction",
        foreign_keys=[ledger_transaction_id],
    )
