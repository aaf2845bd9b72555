"""Pydantic schemas for the reconciliation API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from recon.models import MatchType, TransactionSource, TransactionStatus
from recon.schemas.base import BaseResponse, ListResponse
from recon.services.match_lifecycle import ReconciliationErrorCode


class TransactionSummary(BaseResponse):
    """A bank or ledger transaction as shown in review lists."""

    id: UUID
    source: TransactionSource
    amount: Decimal
    txn_date: date
    description: str
    status: TransactionStatus
    category_id: UUID | None = None
    external_id: str | None = None


TransactionListResponse = ListResponse[TransactionSummary]


class MatchSuggestionResponse(BaseModel):
    """A ranked candidate for the selected transaction."""

    candidate_id: UUID
    confidence: float
    match_type: MatchType
    reasoning: str
    candidate: TransactionSummary | None = None


MatchSuggestionListResponse = ListResponse[MatchSuggestionResponse]


class PairSuggestionResponse(BaseResponse):
    """A bank/ledger pair proposed by the pool-wide suggestion pass."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    confidence: float
    match_type: MatchType
    reasoning: str


PairSuggestionListResponse = ListResponse[PairSuggestionResponse]


class HighConfidenceMatchSchema(BaseResponse):
    """A bulk proposal, returned by /high-confidence and accepted by bulk approve."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    confidence: float = Field(ge=0, lt=1)
    match_type: MatchType
    reasoning: str = ""


HighConfidenceMatchListResponse = ListResponse[HighConfidenceMatchSchema]


class ApproveMatchRequest(BaseModel):
    """Request body to approve a suggested match."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    match_type: MatchType
    confidence: float = Field(ge=0, lt=1)
    reasoning: str = ""

    @field_validator("match_type")
    @classmethod
    def reject_manual(cls, value: MatchType) -> MatchType:
        if value == MatchType.MANUAL:
            raise ValueError("Use the manual match endpoint for manual matches")
        return value


class ManualMatchRequest(BaseModel):
    """Request body to link two transactions by hand."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID


class RejectSuggestionRequest(BaseModel):
    """Request body to dismiss a suggestion; the fields are kept in the audit trail."""

    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    match_type: MatchType
    confidence: float = Field(ge=0, le=1)
    reasoning: str = ""


class BulkApproveRequest(BaseModel):
    """Request body to approve many proposals at once."""

    matches: list[HighConfidenceMatchSchema] = Field(default_factory=list, max_length=1000)


class MatchActionResponse(BaseModel):
    """Outcome of approve, manual or reject."""

    success: bool
    match_id: UUID | None = None
    audit_entry_id: UUID | None = None
    error: ReconciliationErrorCode | None = None
    message: str | None = None


class BulkApproveResponse(BaseModel):
    """Outcome of a bulk approval; partial success still reports success."""

    success: bool
    approved_count: int
    failed_count: int
    error: ReconciliationErrorCode | None = None
    message: str | None = None


class MatchResponse(BaseResponse):
    """A confirmed match with both transactions."""

    id: UUID
    bank_transaction_id: UUID
    ledger_transaction_id: UUID
    match_type: MatchType
    confidence: float
    reasoning: str
    created_at: datetime
    bank_transaction: TransactionSummary | None = None
    ledger_transaction: TransactionSummary | None = None


MatchListResponse = ListResponse[MatchResponse]


class SourceSummaryResponse(BaseResponse):
    total: int
    matched: int
    unmatched: int


class ReconciliationSummaryResponse(BaseResponse):
    """Progress counters for one workspace."""

    bank: SourceSummaryResponse
    ledger: SourceSummaryResponse
    match_count: int
    match_rate: float
