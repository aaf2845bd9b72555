"""Ranked match suggestions for reconciliation review."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from recon.models import MatchType, Transaction, TransactionSource, TransactionStatus
from recon.services.match_evaluator import (
    MatchEvaluation,
    ReconciliationConfig,
    evaluate_match,
    load_reconciliation_config,
)


@dataclass(frozen=True)
class MatchSuggestion:
    """A candidate on the other side of the selected transaction."""

    candidate_id: UUID
    confidence: float
    match_type: MatchType
    reasoning: str


@dataclass(frozen=True)
class PairSuggestion:
    """A bank/ledger pair proposed by the pool-wide pass."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    confidence: float
    match_type: MatchType
    reasoning: str


def evaluate_pair(bank: Transaction, ledger: Transaction) -> MatchEvaluation:
    """Score two transaction records, bank side first."""
    return evaluate_match(
        bank.amount,
        bank.txn_date,
        bank.description,
        ledger.amount,
        ledger.txn_date,
        ledger.description,
    )


def suggest_matches_for_transaction(
    selected: Transaction,
    candidates: Iterable[Transaction],
    *,
    config: ReconciliationConfig | None = None,
) -> list[MatchSuggestion]:
    """Rank unmatched candidates for one selected transaction.

    The selected transaction may come from either feed; scoring is always
    oriented bank against ledger. Ties keep candidate order.
    """
    cfg = config or load_reconciliation_config()
    selected_is_ledger = selected.source == TransactionSource.LEDGER

    suggestions: list[MatchSuggestion] = []
    for candidate in candidates:
        if candidate.status == TransactionStatus.MATCHED:
            continue

        if selected_is_ledger:
            result = evaluate_pair(candidate, selected)
        else:
            result = evaluate_pair(selected, candidate)

        if result.confidence >= cfg.suggestion_floor:
            suggestions.append(
                MatchSuggestion(
                    candidate_id=candidate.id,
                    confidence=result.confidence,
                    match_type=result.match_type,
                    reasoning=result.reasoning,
                )
            )

    # list.sort is stable, so equal confidences stay in candidate order.
    suggestions.sort(key=lambda suggestion: suggestion.confidence, reverse=True)
    return suggestions


def suggest_pool_matches(
    bank_pool: Iterable[Transaction],
    ledger_pool: Iterable[Transaction],
    *,
    config: ReconciliationConfig | None = None,
) -> list[PairSuggestion]:
    """First-fit pass over both pools for a quick overview of likely pairs.

    Each bank transaction claims the first unused ledger candidate that clears
    the suggestion floor, so every transaction appears at most once.
    """
    cfg = config or load_reconciliation_config()
    ledger_candidates = [txn for txn in ledger_pool if txn.status != TransactionStatus.MATCHED]
    used_ledger_ids: set[UUID] = set()

    suggestions: list[PairSuggestion] = []
    for bank_txn in bank_pool:
        if bank_txn.status == TransactionStatus.MATCHED:
            continue
        for ledger_txn in ledger_candidates:
            if ledger_txn.id in used_ledger_ids:
                continue
            result = evaluate_pair(bank_txn, ledger_txn)
            if result.confidence >= cfg.suggestion_floor:
                suggestions.append(
                    PairSuggestion(
                        bank_transaction_id=bank_txn.id,
                        ledger_transaction_id=ledger_txn.id,
                        confidence=result.confidence,
                        match_type=result.match_type,
                        reasoning=result.reasoning,
                    )
                )
                used_ledger_ids.add(ledger_txn.id)
                break

    suggestions.sort(key=lambda suggestion: suggestion.confidence, reverse=True)
    return suggestions
