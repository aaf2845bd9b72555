"""Greedy one-to-one assignment of near-certain matches for bulk approval."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from recon.logger import get_logger, log_timing
from recon.models import MatchType, Transaction, TransactionStatus
from recon.services.match_evaluator import (
    ReconciliationConfig,
    evaluate_match_for_bulk,
    load_reconciliation_config,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class HighConfidenceMatch:
    """A bulk proposal pairing one bank and one ledger transaction."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    confidence: float
    match_type: MatchType
    reasoning: str


def find_high_confidence_matches(
    bank_pool: Sequence[Transaction],
    ledger_pool: Sequence[Transaction],
    *,
    config: ReconciliationConfig | None = None,
) -> list[HighConfidenceMatch]:
    """Propose mutually exclusive exact/timing matches above the bulk floor.

    Bank transactions are visited newest first; each takes its best remaining
    ledger candidate, which is then unavailable for the rest of the pass. This
    is greedy rather than a maximum-weight assignment.
    """
    cfg = config or load_reconciliation_config()
    sorted_bank = sorted(bank_pool, key=lambda txn: txn.txn_date, reverse=True)
    used_ledger_ids: set[UUID] = set()
    proposals: list[HighConfidenceMatch] = []

    with log_timing(
        "find_high_confidence_matches",
        logger=logger,
        level="debug",
        bank_count=len(sorted_bank),
        ledger_count=len(ledger_pool),
    ) as timing:
        for bank_txn in sorted_bank:
            if bank_txn.status == TransactionStatus.MATCHED:
                continue

            best: HighConfidenceMatch | None = None
            for ledger_txn in ledger_pool:
                if ledger_txn.status == TransactionStatus.MATCHED or ledger_txn.id in used_ledger_ids:
                    continue

                result = evaluate_match_for_bulk(
                    bank_txn.amount,
                    bank_txn.txn_date,
                    bank_txn.description,
                    ledger_txn.amount,
                    ledger_txn.txn_date,
                    ledger_txn.description,
                )
                if result.confidence <= cfg.bulk_floor:
                    continue
                if best is None or result.confidence > best.confidence:
                    best = HighConfidenceMatch(
                        bank_transaction_id=bank_txn.id,
                        ledger_transaction_id=ledger_txn.id,
                        confidence=result.confidence,
                        match_type=result.match_type,
                        reasoning=result.reasoning,
                    )

            if best is not None:
                proposals.append(best)
                used_ledger_ids.add(best.ledger_transaction_id)

        timing["proposals"] = len(proposals)

    return proposals
