"""
System ledger CSV parser.
Parses internal transaction exports into normalized transaction models.
"""

from datetime import datetime
from typing import Optional
import logging

import pandas as pd

from ..config import ReconConfig
from ..models.transaction import SourceType, Transaction, TransactionType
from ..utils.exceptions import SystemParseError
from .base import CSVLedgerParser

logger = logging.getLogger(__name__)


class SystemTransactionParser(CSVLedgerParser):
    """
    Parser for the internal system ledger.

    Expected columns: trxID, amount, source, type, transactionTime. The
    ledger stores debits as positive amounts and carries the polarity in the
    ``type`` column; normalization flips the sign.
    """

    error_cls = SystemParseError
    label = "system transaction"
    column_count = 5

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        config = config or ReconConfig()
        system_config = config.input.system
        super().__init__(
            columns=list(system_config.columns),
            encoding=system_config.encoding,
            delimiter=system_config.delimiter,
        )

    def _normalize_row(self, row: pd.Series, row_number: int) -> Transaction:
        id_col, amount_col, source_col, type_col, time_col = self.columns

        trx_id = self._field(row, id_col)
        if not trx_id:
            raise ValueError("missing transaction id")

        raw_amount = self._field(row, amount_col)
        amount = self._parse_amount(raw_amount)

        raw_type = self._field(row, type_col)
        txn_type = _parse_type(raw_type)

        raw_time = self._field(row, time_col)
        txn_time = _parse_timestamp(raw_time)

        raw_source = self._field(row, source_col)

        return Transaction(
            id=trx_id,
            source_type=SourceType.SYSTEM,
            transaction_date=txn_time,
            amount=amount,
            type=txn_type,
            source=raw_source.upper(),
            raw_data={
                id_col: trx_id,
                amount_col: raw_amount,
                source_col: raw_source,
                type_col: raw_type,
                time_col: raw_time,
                "rowNumber": row_number,
            },
        )


def _parse_type(value: str) -> TransactionType:
    """DEBIT or CREDIT, case-insensitive."""
    try:
        return TransactionType(value.upper())
    except ValueError:
        raise ValueError(f"invalid transaction type {value!r}") from None


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 / RFC3339 timestamp such as 2024-03-15T10:30:00Z."""
    if not value:
        raise ValueError("missing transaction time")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"invalid transaction time {value!r}") from None
