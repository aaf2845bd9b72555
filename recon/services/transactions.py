"""Workspace-scoped queries over transactions and matches."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from recon.models import Match, Transaction, TransactionSource, TransactionStatus


@dataclass(frozen=True)
class SourceSummary:
    total: int
    matched: int
    unmatched: int


@dataclass(frozen=True)
class ReconciliationSummary:
    bank: SourceSummary
    ledger: SourceSummary
    match_count: int
    match_rate: float


async def get_transaction(
    db: AsyncSession,
    workspace_id: UUID,
    transaction_id: UUID,
) -> Transaction | None:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .where(Transaction.workspace_id == workspace_id)
    )
    return result.scalar_one_or_none()


async def list_transactions(
    db: AsyncSession,
    workspace_id: UUID,
    source: TransactionSource | None = None,
    status: TransactionStatus | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Transaction], int]:
    base_query = select(Transaction).where(Transaction.workspace_id == workspace_id)
    if source:
        base_query = base_query.where(Transaction.source == source)
    if status:
        base_query = base_query.where(Transaction.status == status)

    count_result = await db.execute(select(func.count()).select_from(base_query.subquery()))
    total = count_result.scalar_one()

    result = await db.execute(
        base_query.order_by(Transaction.txn_date.desc(), Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def list_unmatched(
    db: AsyncSession,
    workspace_id: UUID,
    source: TransactionSource,
) -> list[Transaction]:
    """Candidate pool for one side of the reconciliation."""
    result = await db.execute(
        select(Transaction)
        .where(Transaction.workspace_id == workspace_id)
        .where(Transaction.source == source)
        .where(Transaction.status == TransactionStatus.UNMATCHED)
        .order_by(Transaction.txn_date.desc(), Transaction.created_at.desc())
    )
    return list(result.scalars().all())


async def list_matches(
    db: AsyncSession,
    workspace_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Match], int]:
    count_result = await db.execute(
        select(func.count(Match.id)).where(Match.workspace_id == workspace_id)
    )
    total = count_result.scalar_one()

    result = await db.execute(
        select(Match)
        .where(Match.workspace_id == workspace_id)
        .options(
            selectinload(Match.bank_transaction),
            selectinload(Match.ledger_transaction),
        )
        .order_by(Match.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def get_reconciliation_summary(db: AsyncSession, workspace_id: UUID) -> ReconciliationSummary:
    result = await db.execute(
        select(Transaction.source, Transaction.status, func.count(Transaction.id))
        .where(Transaction.workspace_id == workspace_id)
        .group_by(Transaction.source, Transaction.status)
    )
    counts: dict[tuple[TransactionSource, TransactionStatus], int] = {
        (source, status): count for source, status, count in result.all()
    }

    def _summary(source: TransactionSource) -> SourceSummary:
        matched = counts.get((source, TransactionStatus.MATCHED), 0)
        unmatched = counts.get((source, TransactionStatus.UNMATCHED), 0)
        return SourceSummary(total=matched + unmatched, matched=matched, unmatched=unmatched)

    match_result = await db.execute(
        select(func.count(Match.id)).where(Match.workspace_id == workspace_id)
    )
    match_count = match_result.scalar_one()

    bank = _summary(TransactionSource.BANK)
    ledger = _summary(TransactionSource.LEDGER)
    match_rate = round(bank.matched / bank.total, 4) if bank.total else 0.0
    return ReconciliationSummary(bank=bank, ledger=ledger, match_count=match_count, match_rate=match_rate)
