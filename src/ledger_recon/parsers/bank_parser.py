"""
Bank statement CSV parser.
Parses per-bank statement exports into normalized transaction models.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union
import logging

import pandas as pd

from ..config import ReconConfig
from ..models.transaction import SourceType, Transaction, TransactionType
from ..utils.exceptions import BankParseError
from .base import CSVLedgerParser

logger = logging.getLogger(__name__)


def extract_bank_source(file_path: Union[str, Path]) -> str:
    """
    Extract the bank name from a statement filename.

    Expected format is ``{bank}_statement_{date}.csv``, for example
    ``mandiri_statement_2024-03-15.csv`` gives ``MANDIRI``.

    Raises:
        BankParseError: If the filename does not follow the format
    """
    filename = Path(file_path).name
    parts = filename.split("_")

    if len(parts) < 2:
        raise BankParseError(f"Invalid bank statement filename format: {filename}")

    bank_name = parts[0].strip().upper()
    if not bank_name:
        raise BankParseError(f"Could not extract bank name from filename: {filename}")

    return bank_name


class BankStatementParser(CSVLedgerParser):
    """
    Parser for bank statement files.

    Expected columns: unique_identifier, amount, date. Banks store debits as
    negative amounts, so the transaction type is derived from the sign. The
    bank name is taken from the filename.
    """

    error_cls = BankParseError
    label = "bank statement"
    column_count = 3

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        config = config or ReconConfig()
        bank_config = config.input.bank
        super().__init__(
            columns=list(bank_config.columns),
            encoding=bank_config.encoding,
            delimiter=bank_config.delimiter,
        )
        self.date_formats = list(bank_config.date_formats)
        self.bank_source = ""

    def _prepare(self, file_path: Path) -> None:
        self.bank_source = extract_bank_source(file_path)
        logger.debug(f"Bank source for {file_path.name}: {self.bank_source}")

    def _normalize_row(self, row: pd.Series, row_number: int) -> Transaction:
        id_col, amount_col, date_col = self.columns

        unique_id = self._field(row, id_col)
        if not unique_id:
            raise ValueError("missing unique identifier")

        raw_amount = self._field(row, amount_col)
        amount = self._parse_amount(raw_amount)
        txn_type = TransactionType.DEBIT if amount < 0 else TransactionType.CREDIT

        raw_date = self._field(row, date_col)
        txn_date = self._parse_date(raw_date)

        return Transaction(
            id=unique_id,
            source_type=SourceType.BANK,
            transaction_date=txn_date,
            amount=amount,
            type=txn_type,
            source=self.bank_source,
            raw_data={
                id_col: unique_id,
                amount_col: raw_amount,
                date_col: raw_date,
                "bankSource": self.bank_source,
                "rowNumber": row_number,
            },
        )

    def _parse_date(self, value: str) -> Union[date, datetime]:
        """
        Try each configured format, then ISO-8601.

        Formats without a time component yield a plain date.
        """
        if not value:
            raise ValueError("missing date")

        for fmt in self.date_formats:
            try:
                parsed = datetime.strptime(value, fmt)
            except ValueError:
                continue
            return parsed if "%H" in fmt else parsed.date()

        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"unable to parse date {value!r}") from None
