"""Services package."""

from recon.services.bulk_assignment import HighConfidenceMatch, find_high_confidence_matches
from recon.services.description_matcher import descriptions_likely_match, extract_vendor_name
from recon.services.match_evaluator import (
    MatchEvaluation,
    ReconciliationConfig,
    evaluate_match,
    evaluate_match_for_bulk,
    load_reconciliation_config,
)
from recon.services.match_lifecycle import (
    BulkApproveResult,
    MatchActionResult,
    MatchLifecycleError,
    ReconciliationErrorCode,
    approve_match,
    bulk_approve_matches,
    create_manual_match,
    reject_match_suggestion,
)
from recon.services.notifications import (
    clear_listeners,
    notify_reconciliation_changed,
    subscribe,
    unsubscribe,
)
from recon.services.suggestion_ranker import (
    MatchSuggestion,
    PairSuggestion,
    suggest_matches_for_transaction,
    suggest_pool_matches,
)
from recon.services.transactions import (
    ReconciliationSummary,
    SourceSummary,
    get_reconciliation_summary,
    get_transaction,
    list_matches,
    list_transactions,
    list_unmatched,
)

__all__ = [
    "HighConfidenceMatch",
    "find_high_confidence_matches",
    "descriptions_likely_match",
    "extract_vendor_name",
    "MatchEvaluation",
    "ReconciliationConfig",
    "evaluate_match",
    "evaluate_match_for_bulk",
    "load_reconciliation_config",
    "BulkApproveResult",
    "MatchActionResult",
    "MatchLifecycleError",
    "ReconciliationErrorCode",
    "approve_match",
    "bulk_approve_matches",
    "create_manual_match",
    "reject_match_suggestion",
    "clear_listeners",
    "notify_reconciliation_changed",
    "subscribe",
    "unsubscribe",
    "MatchSuggestion",
    "PairSuggestion",
    "suggest_matches_for_transaction",
    "suggest_pool_matches",
    "ReconciliationSummary",
    "SourceSummary",
    "get_reconciliation_summary",
    "get_transaction",
    "list_matches",
    "list_transactions",
    "list_unmatched",
]
