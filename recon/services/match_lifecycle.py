"""Apply reconciliation decisions as atomic state transitions.

This is the only part of the engine that writes. Approve and manual matches
create a Match and flip both transactions to matched in one unit of work;
rejections only append an audit entry. Callers always receive a result object;
failures never escape as exceptions.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recon.logger import async_log_timing, get_logger, log_exception
from recon.models import (
    MANUAL_MATCH_REASONING,
    MATCH_SUGGESTION_ENTITY,
    MATCH_SUGGESTION_REJECTED,
    AuditLogEntry,
    Match,
    MatchType,
    Transaction,
    TransactionSource,
    TransactionStatus,
)
from recon.services.bulk_assignment import HighConfidenceMatch
from recon.services.notifications import notify_reconciliation_changed

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "One or both transactions not found"
ALREADY_MATCHED_MESSAGE = "One or both transactions already matched"
NOT_BANK_MESSAGE = "First transaction must be a bank transaction"
NOT_LEDGER_MESSAGE = "Second transaction must be a ledger transaction"
UNAUTHENTICATED_MESSAGE = "Not authenticated"


class ReconciliationErrorCode(str, Enum):
    """Failure reasons surfaced to callers of the lifecycle operations."""

    NOT_FOUND = "not_found"
    ALREADY_MATCHED = "already_matched"
    INVALID_SOURCE = "invalid_source"
    UNAUTHENTICATED = "unauthenticated"
    PERSISTENCE_FAILURE = "persistence_failure"


class MatchLifecycleError(Exception):
    """Base exception for lifecycle validation failures."""

    code: ReconciliationErrorCode = ReconciliationErrorCode.PERSISTENCE_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransactionNotFoundError(MatchLifecycleError):
    code = ReconciliationErrorCode.NOT_FOUND


class AlreadyMatchedError(MatchLifecycleError):
    code = ReconciliationErrorCode.ALREADY_MATCHED


class InvalidSourceError(MatchLifecycleError):
    code = ReconciliationErrorCode.INVALID_SOURCE


@dataclass(frozen=True)
class MatchActionResult:
    """Outcome of a single approve, manual or reject operation."""

    success: bool
    match_id: UUID | None = None
    audit_entry_id: UUID | None = None
    error: ReconciliationErrorCode | None = None
    message: str | None = None

    @classmethod
    def failure(cls, code: ReconciliationErrorCode, message: str) -> MatchActionResult:
        return cls(success=False, error=code, message=message)

    @classmethod
    def from_error(cls, exc: MatchLifecycleError) -> MatchActionResult:
        return cls.failure(exc.code, exc.message)


@dataclass(frozen=True)
class BulkApproveResult:
    """Aggregate outcome of a bulk approval; partial success is still success."""

    success: bool
    approved_count: int
    failed_count: int
    error: ReconciliationErrorCode | None = None
    message: str | None = None


def validate_suggestion(match_type: MatchType, confidence: float) -> None:
    """Reject values a suggested Match row must never hold.

    Full confidence is reserved for manual matches, so a suggestion scores
    in [0, 1).

    Raises:
        ValueError: manual type, or confidence outside [0, 1).
    """
    if MatchType(match_type) == MatchType.MANUAL:
        raise ValueError("Manual matches must be created with create_manual_match")
    if not 0.0 <= confidence < 1.0:
        raise ValueError(f"Suggestion confidence must be at least 0 and below 1, got {confidence}")


async def _load_pair(
    db: AsyncSession,
    workspace_id: UUID,
    bank_transaction_id: UUID,
    ledger_transaction_id: UUID,
    *,
    lock: bool,
    unmatched_only: bool = False,
) -> tuple[Transaction, Transaction]:
    query = (
        select(Transaction)
        .where(Transaction.workspace_id == workspace_id)
        .where(Transaction.id.in_({bank_transaction_id, ledger_transaction_id}))
        # Lock rows in id order so overlapping approvals cannot deadlock.
        .order_by(Transaction.id)
    )
    if unmatched_only:
        query = query.where(Transaction.status != TransactionStatus.MATCHED)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    rows = {txn.id: txn for txn in result.scalars().all()}
    bank = rows.get(bank_transaction_id)
    ledger = rows.get(ledger_transaction_id)
    if bank is None or ledger is None:
        raise TransactionNotFoundError(NOT_FOUND_MESSAGE)
    return bank, ledger


def _ensure_sides(bank: Transaction, ledger: Transaction) -> None:
    if bank.source != TransactionSource.BANK:
        raise InvalidSourceError(NOT_BANK_MESSAGE)
    if ledger.source != TransactionSource.LEDGER:
        raise InvalidSourceError(NOT_LEDGER_MESSAGE)


def _ensure_unmatched(bank: Transaction, ledger: Transaction) -> None:
    if bank.is_matched or ledger.is_matched:
        raise AlreadyMatchedError(ALREADY_MATCHED_MESSAGE)


async def _insert_match(
    db: AsyncSession,
    workspace_id: UUID,
    bank: Transaction,
    ledger: Transaction,
    *,
    match_type: MatchType,
    confidence: float,
    reasoning: str,
) -> Match:
    match = Match(
        workspace_id=workspace_id,
        bank_transaction_id=bank.id,
        ledger_transaction_id=ledger.id,
        match_type=MatchType(match_type),
        confidence=confidence,
        reasoning=reasoning,
    )
    db.add(match)
    bank.status = TransactionStatus.MATCHED
    ledger.status = TransactionStatus.MATCHED
    await db.flush()
    return match


async def _create_match_atomically(
    db: AsyncSession,
    *,
    workspace_id: UUID,
    bank_transaction_id: UUID,
    ledger_transaction_id: UUID,
    match_type: MatchType,
    confidence: float,
    reasoning: str,
    operation: str,
    failure_message: str,
) -> MatchActionResult:
    log = logger.bind(
        operation=operation,
        workspace_id=str(workspace_id),
        bank_transaction_id=str(bank_transaction_id),
        ledger_transaction_id=str(ledger_transaction_id),
    )
    try:
        bank, ledger = await _load_pair(
            db, workspace_id, bank_transaction_id, ledger_transaction_id, lock=True
        )
        _ensure_sides(bank, ledger)
        _ensure_unmatched(bank, ledger)
        match = await _insert_match(
            db,
            workspace_id,
            bank,
            ledger,
            match_type=match_type,
            confidence=confidence,
            reasoning=reasoning,
        )
        await db.commit()
    except MatchLifecycleError as exc:
        await db.rollback()
        log.info("Match not created", error=exc.code.value, reason=exc.message)
        return MatchActionResult.from_error(exc)
    except IntegrityError as exc:
        # A concurrent approval claimed one of the transactions first.
        await db.rollback()
        log.warning("Match insert conflicted with an existing match", error=str(exc.orig))
        return MatchActionResult.failure(ReconciliationErrorCode.ALREADY_MATCHED, ALREADY_MATCHED_MESSAGE)
    except SQLAlchemyError as exc:
        await db.rollback()
        log_exception(log, exc, "Failed to persist match")
        return MatchActionResult.failure(ReconciliationErrorCode.PERSISTENCE_FAILURE, failure_message)

    log.info(
        "Match created",
        match_id=str(match.id),
        match_type=match.match_type.value,
        confidence=match.confidence,
    )
    await notify_reconciliation_changed(workspace_id)
    return MatchActionResult(success=True, match_id=match.id)


async def approve_match(
    db: AsyncSession,
    *,
    workspace_id: UUID,
    bank_transaction_id: UUID,
    ledger_transaction_id: UUID,
    match_type: MatchType,
    confidence: float,
    reasoning: str,
) -> MatchActionResult:
    """Approve a suggested match.

    Both transactions must exist in the workspace, sit on the expected sides
    and still be unmatched. The Match insert and both status flips commit
    together or not at all.

    Raises:
        ValueError: if confidence or match_type cannot describe a suggestion.
    """
    validate_suggestion(match_type, confidence)
    return await _create_match_atomically(
        db,
        workspace_id=workspace_id,
        bank_transaction_id=bank_transaction_id,
        ledger_transaction_id=ledger_transaction_id,
        match_type=MatchType(match_type),
        confidence=confidence,
        reasoning=reasoning,
        operation="approve_match",
        failure_message="Failed to approve match. Please try again.",
    )


async def create_manual_match(
    db: AsyncSession,
    *,
    workspace_id: UUID,
    bank_transaction_id: UUID,
    ledger_transaction_id: UUID,
) -> MatchActionResult:
    """Link a bank and ledger transaction chosen by the user, at full confidence."""
    return await _create_match_atomically(
        db,
        workspace_id=workspace_id,
        bank_transaction_id=bank_transaction_id,
        ledger_transaction_id=ledger_transaction_id,
        match_type=MatchType.MANUAL,
        confidence=1.0,
        reasoning=MANUAL_MATCH_REASONING,
        operation="create_manual_match",
        failure_message="Failed to create manual match. Please try again.",
    )


def _suggestion_snapshot(
    bank: Transaction,
    ledger: Transaction,
    *,
    match_type: MatchType,
    confidence: float,
    reasoning: str,
) -> dict[str, Any]:
    return {
        "bank_transaction_id": str(bank.id),
        "ledger_transaction_id": str(ledger.id),
        "match_type": MatchType(match_type).value,
        "confidence": confidence,
        "reasoning": reasoning,
        "bank_description": bank.description,
        "ledger_description": ledger.description,
        # Money stays exact as a string in the JSON snapshot.
        "bank_amount": str(bank.amount),
        "ledger_amount": str(ledger.amount),
    }


async def reject_match_suggestion(
    db: AsyncSession,
    *,
    workspace_id: UUID,
    actor_id: UUID | None,
    bank_transaction_id: UUID,
    ledger_transaction_id: UUID,
    match_type: MatchType,
    confidence: float,
    reasoning: str,
) -> MatchActionResult:
    """Record that the user dismissed a suggestion.

    Only existence is checked; rejecting an already-matched pair is harmless.
    Transaction statuses are never touched.
    """
    if actor_id is None:
        return MatchActionResult.failure(ReconciliationErrorCode.UNAUTHENTICATED, UNAUTHENTICATED_MESSAGE)

    log = logger.bind(
        operation="reject_match_suggestion",
        workspace_id=str(workspace_id),
        bank_transaction_id=str(bank_transaction_id),
        ledger_transaction_id=str(ledger_transaction_id),
    )
    try:
        bank, ledger = await _load_pair(
            db, workspace_id, bank_transaction_id, ledger_transaction_id, lock=False
        )
        entry = AuditLogEntry(
            workspace_id=workspace_id,
            user_id=actor_id,
            action=MATCH_SUGGESTION_REJECTED,
            entity_type=MATCH_SUGGESTION_ENTITY,
            entity_id=f"{bank_transaction_id}:{ledger_transaction_id}",
            old_value=_suggestion_snapshot(
                bank,
                ledger,
                match_type=match_type,
                confidence=confidence,
                reasoning=reasoning,
            ),
            new_value=None,
        )
        db.add(entry)
        await db.commit()
    except MatchLifecycleError as exc:
        await db.rollback()
        log.info("Suggestion rejection refused", error=exc.code.value, reason=exc.message)
        return MatchActionResult.from_error(exc)
    except SQLAlchemyError as exc:
        await db.rollback()
        log_exception(log, exc, "Failed to record suggestion rejection")
        return MatchActionResult.failure(
            ReconciliationErrorCode.PERSISTENCE_FAILURE,
            "Failed to reject match suggestion. Please try again.",
        )

    log.info("Match suggestion rejected", audit_entry_id=str(entry.id), actor_id=str(actor_id))
    return MatchActionResult(success=True, audit_entry_id=entry.id)


async def bulk_approve_matches(
    db: AsyncSession,
    *,
    workspace_id: UUID,
    matches: Sequence[HighConfidenceMatch],
) -> BulkApproveResult:
    """Approve a batch of proposals, skipping any that went stale.

    Every item is re-validated right before its write, inside its own
    savepoint, so one bad item only bumps ``failed_count``. The batch commits
    once at the end. Re-running the same list is safe because already-matched
    items are skipped and counted as failures.
    """
    if not matches:
        return BulkApproveResult(success=True, approved_count=0, failed_count=0)

    approved_count = 0
    failed_count = 0
    try:
        async with async_log_timing(
            "bulk_approve_matches",
            logger=logger,
            workspace_id=str(workspace_id),
            requested=len(matches),
        ) as timing:
            for proposal in matches:
                try:
                    async with db.begin_nested():
                        bank, ledger = await _load_pair(
                            db,
                            workspace_id,
                            proposal.bank_transaction_id,
                            proposal.ledger_transaction_id,
                            lock=True,
                            unmatched_only=True,
                        )
                        _ensure_sides(bank, ledger)
                        validate_suggestion(proposal.match_type, proposal.confidence)
                        await _insert_match(
                            db,
                            workspace_id,
                            bank,
                            ledger,
                            match_type=proposal.match_type,
                            confidence=proposal.confidence,
                            reasoning=proposal.reasoning,
                        )
                    approved_count += 1
                except (MatchLifecycleError, ValueError, SQLAlchemyError) as exc:
                    failed_count += 1
                    logger.info(
                        "Bulk approval item skipped",
                        workspace_id=str(workspace_id),
                        bank_transaction_id=str(proposal.bank_transaction_id),
                        ledger_transaction_id=str(proposal.ledger_transaction_id),
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
            await db.commit()
            timing["approved"] = approved_count
            timing["failed"] = failed_count
    except SQLAlchemyError as exc:
        await db.rollback()
        log_exception(logger, exc, "Failed to bulk approve matches", workspace_id=str(workspace_id))
        return BulkApproveResult(
            success=False,
            approved_count=0,
            failed_count=len(matches),
            error=ReconciliationErrorCode.PERSISTENCE_FAILURE,
            message="Failed to bulk approve matches. Please try again.",
        )

    if approved_count:
        await notify_reconciliation_changed(workspace_id)
    return BulkApproveResult(success=True, approved_count=approved_count, failed_count=failed_count)
