"""Data models for reconciliation."""

from .transaction import (
    AMOUNT_EPSILON,
    Transaction,
    SourceType,
    TransactionType,
    MatchPair,
    MatchResult,
    calculate_match_rate,
)

__all__ = [
    "AMOUNT_EPSILON",
    "Transaction",
    "SourceType",
    "TransactionType",
    "MatchPair",
    "MatchResult",
    "calculate_match_rate",
]
