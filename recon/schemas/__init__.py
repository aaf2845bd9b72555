"""Pydantic schemas package."""

from recon.schemas.base import BaseResponse, ListResponse
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
    SourceSummaryResponse,
    TransactionListResponse,
    TransactionSummary,
)

__all__ = [
    "BaseResponse",
    "ListResponse",
    "ApproveMatchRequest",
    "BulkApproveRequest",
    "BulkApproveResponse",
    "HighConfidenceMatchListResponse",
    "HighConfidenceMatchSchema",
    "ManualMatchRequest",
    "MatchActionResponse",
    "MatchListResponse",
    "MatchResponse",
    "MatchSuggestionListResponse",
    "MatchSuggestionResponse",
    "PairSuggestionListResponse",
    "PairSuggestionResponse",
    "ReconciliationSummaryResponse",
    "RejectSuggestionRequest",
    "SourceSummaryResponse",
    "TransactionListResponse",
    "TransactionSummary",
]
