"""Reconciliation API router."""

from uuid import UUID

from fastapi import APIRouter, Query

from recon.deps import CurrentUserId, DbSession, OptionalUserId
from recon.models import TransactionSource, TransactionStatus
from recon.schemas.reconciliation import (
    ApproveMatchRequest,
    BulkApproveRequest,
    BulkApproveResponse,
    HighConfidenceMatchListResponse,
    HighConfidenceMatchSchema,
    ManualMatchRequest,
    MatchActionResponse,
    MatchListResponse,
    MatchResponse,
    MatchSuggestionListResponse,
    MatchSuggestionResponse,
    PairSuggestionListResponse,
    PairSuggestionResponse,
    ReconciliationSummaryResponse,
    RejectSuggestionRequest,
    TransactionListResponse,
    TransactionSummary,
)
from recon.services.bulk_assignment import HighConfidenceMatch, find_high_confidence_matches
from recon.services.match_lifecycle import MatchActionResult
from recon.services.match_lifecycle import approve_match as approve_match_service
from recon.services.match_lifecycle import bulk_approve_matches as bulk_approve_service
from recon.services.match_lifecycle import create_manual_match as create_manual_match_service
from recon.services.match_lifecycle import reject_match_suggestion as reject_suggestion_service
from recon.services.suggestion_ranker import suggest_matches_for_transaction, suggest_pool_matches
from recon.services.transactions import (
    get_reconciliation_summary,
    get_transaction,
    list_unmatched,
)
from recon.services.transactions import list_matches as list_matches_service
from recon.services.transactions import list_transactions as list_transactions_service
from recon.utils.exceptions import raise_for_reconciliation_error, raise_not_found

router = APIRouter(prefix="/workspaces/{workspace_id}/reconciliation", tags=["reconciliation"])


def _action_response(result: MatchActionResult) -> MatchActionResponse:
    if not result.success:
        raise_for_reconciliation_error(result.error, result.message)
    return MatchActionResponse(
        success=True,
        match_id=result.match_id,
        audit_entry_id=result.audit_entry_id,
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    workspace_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
    source: TransactionSource | None = Query(default=None),
    status: TransactionStatus | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> TransactionListResponse:
    items, total = await list_transactions_service(
        db,
        workspace_id,
        source=source,
        status=status,
        limit=limit,
        offset=offset,
    )
    return TransactionListResponse(
        items=[TransactionSummary.model_validate(txn) for txn in items],
        total=total,
    )


@router.get(
    "/transactions/{transaction_id}/suggestions",
    response_model=MatchSuggestionListResponse,
)
async def transaction_suggestions(
    workspace_id: UUID,
    transaction_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> MatchSuggestionListResponse:
    selected = await get_transaction(db, workspace_id, transaction_id)
    if selected is None:
        raise_not_found("Transaction")
    if selected.is_matched:
        return MatchSuggestionListResponse(items=[], total=0)

    candidates = await list_unmatched(db, workspace_id, selected.source.opposite)
    candidates_by_id = {candidate.id: candidate for candidate in candidates}
    suggestions = suggest_matches_for_transaction(selected, candidates)
    items = [
        MatchSuggestionResponse(
            candidate_id=suggestion.candidate_id,
            confidence=suggestion.confidence,
            match_type=suggestion.match_type,
            reasoning=suggestion.reasoning,
            candidate=TransactionSummary.model_validate(candidates_by_id[suggestion.candidate_id]),
        )
        for suggestion in suggestions
    ]
    return MatchSuggestionListResponse(items=items, total=len(items))


@router.get("/suggestions", response_model=PairSuggestionListResponse)
async def pool_suggestions(
    workspace_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> PairSuggestionListResponse:
    bank_pool = await list_unmatched(db, workspace_id, TransactionSource.BANK)
    ledger_pool = await list_unmatched(db, workspace_id, TransactionSource.LEDGER)
    suggestions = suggest_pool_matches(bank_pool, ledger_pool)
    items = [PairSuggestionResponse.model_validate(suggestion) for suggestion in suggestions]
    return PairSuggestionListResponse(items=items, total=len(items))


@router.get("/high-confidence", response_model=HighConfidenceMatchListResponse)
async def high_confidence_matches(
    workspace_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> HighConfidenceMatchListResponse:
    bank_pool = await list_unmatched(db, workspace_id, TransactionSource.BANK)
    ledger_pool = await list_unmatched(db, workspace_id, TransactionSource.LEDGER)
    proposals = find_high_confidence_matches(bank_pool, ledger_pool)
    items = [HighConfidenceMatchSchema.model_validate(proposal) for proposal in proposals]
    return HighConfidenceMatchListResponse(items=items, total=len(items))


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(
    workspace_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> MatchListResponse:
    matches, total = await list_matches_service(db, workspace_id, limit=limit, offset=offset)
    return MatchListResponse(
        items=[MatchResponse.model_validate(match) for match in matches],
        total=total,
    )


@router.get("/summary", response_model=ReconciliationSummaryResponse)
async def reconciliation_summary(
    workspace_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> ReconciliationSummaryResponse:
    summary = await get_reconciliation_summary(db, workspace_id)
    return ReconciliationSummaryResponse.model_validate(summary)


@router.post("/matches/approve", response_model=MatchActionResponse)
async def approve_match(
    workspace_id: UUID,
    payload: ApproveMatchRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> MatchActionResponse:
    result = await approve_match_service(
        db,
        workspace_id=workspace_id,
        bank_transaction_id=payload.bank_transaction_id,
        ledger_transaction_id=payload.ledger_transaction_id,
        match_type=payload.match_type,
        confidence=payload.confidence,
        reasoning=payload.reasoning,
    )
    return _action_response(result)


@router.post("/matches/manual", response_model=MatchActionResponse)
async def create_manual_match(
    workspace_id: UUID,
    payload: ManualMatchRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> MatchActionResponse:
    result = await create_manual_match_service(
        db,
        workspace_id=workspace_id,
        bank_transaction_id=payload.bank_transaction_id,
        ledger_transaction_id=payload.ledger_transaction_id,
    )
    return _action_response(result)


@router.post("/suggestions/reject", response_model=MatchActionResponse)
async def reject_suggestion(
    workspace_id: UUID,
    payload: RejectSuggestionRequest,
    db: DbSession,
    user_id: OptionalUserId,
) -> MatchActionResponse:
    result = await reject_suggestion_service(
        db,
        workspace_id=workspace_id,
        actor_id=user_id,
        bank_transaction_id=payload.bank_transaction_id,
        ledger_transaction_id=payload.ledger_transaction_id,
        match_type=payload.match_type,
        confidence=payload.confidence,
        reasoning=payload.reasoning,
    )
    return _action_response(result)


@router.post("/matches/bulk-approve", response_model=BulkApproveResponse)
async def bulk_approve(
    workspace_id: UUID,
    payload: BulkApproveRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> BulkApproveResponse:
    proposals = [
        HighConfidenceMatch(
            bank_transaction_id=item.bank_transaction_id,
            ledger_transaction_id=item.ledger_transaction_id,
            confidence=item.confidence,
            match_type=item.match_type,
            reasoning=item.reasoning,
        )
        for item in payload.matches
    ]
    result = await bulk_approve_service(db, workspace_id=workspace_id, matches=proposals)
    if not result.success:
        raise_for_reconciliation_error(result.error, result.message)
    return BulkApproveResponse(
        success=True,
        approved_count=result.approved_count,
        failed_count=result.failed_count,
    )
