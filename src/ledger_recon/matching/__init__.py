"""Matching engine and strategies."""

from .engine import ReconciliationEngine
from .strategies import (
    MatchingStrategy,
    ExactMatchStrategy,
    amounts_equal,
    available_strategies,
    get_strategy,
    register_strategy,
)

__all__ = [
    "ReconciliationEngine",
    "MatchingStrategy",
    "ExactMatchStrategy",
    "amounts_equal",
    "available_strategies",
    "get_strategy",
    "register_strategy",
]
