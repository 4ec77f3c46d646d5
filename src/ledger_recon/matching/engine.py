"""
Reconciliation engine.
Resolves the configured matching strategy and runs it over two ledgers.
"""

from datetime import datetime
from typing import Optional
import logging

from ..config import ReconConfig
from ..models.transaction import MatchResult, Transaction
from .strategies import MatchingStrategy, get_strategy

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Main reconciliation engine that orchestrates the matching process.

    The engine owns no matching logic: it picks a strategy from the
    configuration, hands it fully materialized record sets and flags the
    transactions that ended up paired.
    """

    def __init__(
        self,
        config: Optional[ReconConfig] = None,
        strategy: Optional[MatchingStrategy] = None,
    ):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration
            strategy: Explicit strategy, overriding ``config.matching.algorithm``

        Raises:
            ConfigurationError: If the configured algorithm is unknown
        """
        self.config = config or ReconConfig()
        matching_config = self.config.matching
        self.strategy = strategy or get_strategy(
            matching_config.algorithm, matching_config.matcher
        )
        logger.debug(f"Using matching strategy: {self.strategy.name()}")

    def reconcile(
        self,
        system_transactions: list[Transaction],
        bank_transactions: list[Transaction],
    ) -> MatchResult:
        """
        Perform reconciliation between system and bank transactions.

        Args:
            system_transactions: Normalized system ledger transactions
            bank_transactions: Normalized bank statement transactions

        Returns:
            Finalized match result
        """
        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(system_transactions)} system txns, "
            f"{len(bank_transactions)} bank txns, algorithm={self.strategy.name()}"
        )

        result = self.strategy.match(list(system_transactions), list(bank_transactions))

        for pair in result.matched:
            pair.system_transaction.matched = True
            pair.bank_transaction.matched = True

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {result.total_matched} matches, "
            f"{len(result.unmatched_system)} system-only, "
            f"{len(result.unmatched_bank)} bank-only, "
            f"match rate {result.match_rate:.1f}%"
        )

        return result
