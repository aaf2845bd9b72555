"""SQLAlchemy models package."""

from recon.models.audit import (
    MATCH_SUGGESTION_ENTITY,
    MATCH_SUGGESTION_REJECTED,
    AuditLogEntry,
)
from recon.models.match import MANUAL_MATCH_REASONING, Match, MatchType
from recon.models.transaction import Transaction, TransactionSource, TransactionStatus
from recon.models.user import User

__all__ = [
    "AuditLogEntry",
    "MANUAL_MATCH_REASONING",
    "MATCH_SUGGESTION_ENTITY",
    "MATCH_SUGGESTION_REJECTED",
    "Match",
    "MatchType",
    "Transaction",
    "TransactionSource",
    "TransactionStatus",
    "User",
]
