"""
Matching strategies for transaction reconciliation.
Each strategy implements a specific matching approach.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
import logging

from ..config import MatcherConfig, default_matcher_config
from ..models.transaction import (
    AMOUNT_EPSILON,
    MatchPair,
    MatchResult,
    Transaction,
)
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 100.0

# (calendar day, is debit, absolute amount in whole cents)
MatchKey = tuple[date, bool, Decimal]


class MatchingStrategy(ABC):
    """
    Abstract base class for matching strategies.

    A strategy receives the full system and bank record sets and returns a
    MatchResult in which every input transaction appears exactly once.
    Strategies must not mutate the transactions they are given.
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        """
        Initialize the strategy.

        Args:
            config: Matcher options; defaults to exact matching
        """
        self.set_config(config or default_matcher_config())

    def set_config(self, config: MatcherConfig) -> None:
        """
        Replace the matcher configuration.

        Raises:
            ConfigurationError: If the configuration is unusable
        """
        if config.amount_tolerance_percent < 0:
            raise ConfigurationError(
                f"amount_tolerance_percent must be >= 0, got {config.amount_tolerance_percent}"
            )
        self.config = config

    @abstractmethod
    def name(self) -> str:
        """Identifier of the algorithm, reported in MatchResult.algorithm_used."""
        pass

    @abstractmethod
    def match(
        self,
        system_txns: list[Transaction],
        bank_txns: list[Transaction],
    ) -> MatchResult:
        """
        Pair system transactions with bank transactions.

        Args:
            system_txns: Normalized system ledger transactions
            bank_txns: Normalized bank statement transactions

        Returns:
            Finalized match result
        """
        pass


class ExactMatchStrategy(MatchingStrategy):
    """
    Exact match on calendar day, polarity and absolute amount.

    Bank transactions are bucketed by that key. A system transaction is
    paired only when exactly one unconsumed bank transaction sits in its
    bucket; with several candidates the system transaction is left unmatched
    for manual review rather than guessed. The pass is single and never
    revisits an earlier decision.

    The amount tolerance in the configuration is accepted but ignored.
    """

    def name(self) -> str:
        return "exact"

    def match(
        self,
        system_txns: list[Transaction],
        bank_txns: list[Transaction],
    ) -> MatchResult:
        """Find exact one-to-one matches."""
        result = MatchResult(algorithm_used=self.name())

        buckets = self._build_buckets(bank_txns)

        # Positions in bank_txns; ids are only unique per bank file
        consumed: set[int] = set()

        for sys_txn in system_txns:
            candidates = buckets.get(self.generate_key(sys_txn), [])
            available = [idx for idx in candidates if idx not in consumed]

            if not available:
                result.unmatched_system.append(sys_txn)
                continue

            if len(available) > 1:
                logger.debug(
                    f"Ambiguous match for system transaction {sys_txn.id}: "
                    f"{len(available)} bank candidates"
                )
                result.unmatched_system.append(sys_txn)
                continue

            bank_idx = available[0]
            bank_txn = bank_txns[bank_idx]
            if not self.is_exact_match(sys_txn, bank_txn):
                result.unmatched_system.append(sys_txn)
                continue

            result.matched.append(
                MatchPair(
                    system_transaction=sys_txn,
                    bank_transaction=bank_txn,
                    confidence_score=EXACT_CONFIDENCE,
                    amount_discrepancy=self.calculate_discrepancy(sys_txn, bank_txn),
                )
            )
            consumed.add(bank_idx)

        result.unmatched_bank = [
            txn for idx, txn in enumerate(bank_txns) if idx not in consumed
        ]

        result.finalize()
        return result

    def _build_buckets(self, bank_txns: list[Transaction]) -> dict[MatchKey, list[int]]:
        """Index bank transaction positions by match key, in input order."""
        buckets: dict[MatchKey, list[int]] = defaultdict(list)
        for idx, bank_txn in enumerate(bank_txns):
            buckets[self.generate_key(bank_txn)].append(idx)
        return dict(buckets)

    @staticmethod
    def generate_key(txn: Transaction) -> MatchKey:
        """
        Build the grouping key; debits and credits of equal value differ.

        The amount is rounded to the nearest cent so sub-cent noise such as
        150.4999 shares a bucket with 150.50. Amounts within the epsilon that
        round to different cents (150.5049 and 150.5051) still never pair.
        """
        cents = txn.absolute_amount().quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return (txn.calendar_date, txn.is_debit(), cents)

    @staticmethod
    def is_exact_match(sys_txn: Transaction, bank_txn: Transaction) -> bool:
        """Check day, polarity and amount equality."""
        if sys_txn.calendar_date != bank_txn.calendar_date:
            return False
        if sys_txn.is_debit() != bank_txn.is_debit():
            return False
        return amounts_equal(sys_txn.absolute_amount(), bank_txn.absolute_amount())

    @staticmethod
    def calculate_discrepancy(sys_txn: Transaction, bank_txn: Transaction) -> Decimal:
        """Absolute difference of the unsigned amounts; zero for exact matches."""
        return abs(sys_txn.absolute_amount() - bank_txn.absolute_amount())


def amounts_equal(a: Decimal, b: Decimal) -> bool:
    """Equality within AMOUNT_EPSILON."""
    return abs(a - b) < AMOUNT_EPSILON


_STRATEGIES: dict[str, type[MatchingStrategy]] = {
    "exact": ExactMatchStrategy,
}


def register_strategy(name: str, strategy_cls: type[MatchingStrategy]) -> None:
    """
    Register a strategy class under a name.

    Args:
        name: Name used in ``matching.algorithm``
        strategy_cls: MatchingStrategy subclass

    Raises:
        ConfigurationError: If the class is not a MatchingStrategy
    """
    if not (isinstance(strategy_cls, type) and issubclass(strategy_cls, MatchingStrategy)):
        raise ConfigurationError(f"{strategy_cls!r} is not a MatchingStrategy")
    _STRATEGIES[name.lower()] = strategy_cls


def available_strategies() -> list[str]:
    """Names of all registered strategies."""
    return sorted(_STRATEGIES)


def get_strategy(name: str, config: Optional[MatcherConfig] = None) -> MatchingStrategy:
    """
    Create a strategy by name.

    Raises:
        ConfigurationError: If no strategy is registered under ``name``
    """
    strategy_cls = _STRATEGIES.get(name.lower())
    if strategy_cls is None:
        raise ConfigurationError(
            f"Unknown matching algorithm '{name}'. "
            f"Available: {', '.join(available_strategies())}"
        )
    return strategy_cls(config)
