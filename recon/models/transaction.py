"""Bank and ledger transaction models."""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, Index, Numeric, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from recon.database import Base
from recon.models.base import TimestampMixin, UUIDMixin, WorkspaceScopedMixin


class TransactionSource(str, Enum):
    """Feed a transaction was ingested from."""

    BANK = "bank"
    LEDGER = "ledger"

    @property
    def opposite(self) -> "TransactionSource":
        return TransactionSource.LEDGER if self is TransactionSource.BANK else TransactionSource.BANK


class TransactionStatus(str, Enum):
    """Reconciliation status; matched iff a Match references the transaction."""

    UNMATCHED = "unmatched"
    MATCHED = "matched"


class Transaction(UUIDMixin, WorkspaceScopedMixin, TimestampMixin, Base):
    """A financial record from either the bank feed or the ledger.

    Ingestion creates these rows; the reconciliation engine only ever flips
    ``status`` from unmatched to matched.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_workspace_source_status", "workspace_id", "source", "status"),
    )

    source: Mapped[TransactionSource] = mapped_column(
        SQLEnum(TransactionSource, name="transaction_source_enum"),
        nullable=False,
    )
    # Signed: negative is an outflow, positive an inflow.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(TransactionStatus, name="transaction_status_enum"),
        nullable=False,
        default=TransactionStatus.UNMATCHED,
    )
    category_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def is_matched(self) -> bool:
        return self.status == TransactionStatus.MATCHED

    def __repr__(self) -> str:
        return (
            f"<Transaction id={self.id} source={self.source} amount={self.amount} "
            f"date={self.txn_date} status={self.status}>"
        )
