"""
Shared CSV handling for ledger parsers.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
import logging

import pandas as pd

from ..models.transaction import Transaction
from ..utils.exceptions import ConfigurationError, ReconciliationError

logger = logging.getLogger(__name__)


class CSVLedgerParser:
    """
    Base class for CSV ledger parsers.

    Reads the file with pandas, checks the header row against the expected
    columns and turns each row into a Transaction through ``_normalize_row``.
    Rows that cannot be parsed are logged and skipped; file-level problems
    raise ``error_cls``.
    """

    error_cls: type[ReconciliationError] = ReconciliationError
    label = "ledger"
    column_count = 0

    def __init__(
        self,
        columns: list[str],
        encoding: str = "utf-8",
        delimiter: str = ",",
    ):
        if len(columns) != self.column_count:
            raise ConfigurationError(
                f"{self.label} parser needs {self.column_count} columns, got {len(columns)}"
            )
        self.columns = columns
        self.encoding = encoding
        self.delimiter = delimiter
        self.skipped_rows = 0
        self.filtered_rows = 0

    def parse_file(
        self,
        file_path: Path,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Parse a CSV file and return normalized transactions.

        Args:
            file_path: Path to the CSV file
            start: Earliest calendar date to keep (inclusive)
            end: Latest calendar date to keep (inclusive)

        Returns:
            List of normalized transactions

        Raises:
            ReconciliationError subclass: If the file cannot be read or
                its headers are wrong
        """
        file_path = Path(file_path)
        logger.info(f"Parsing {self.label} file: {file_path}")

        self.skipped_rows = 0
        self.filtered_rows = 0
        self._prepare(file_path)

        df = self._read_csv(file_path)
        transactions = self._process_dataframe(df, start, end)

        if self.skipped_rows:
            logger.warning(f"{file_path.name}: skipped {self.skipped_rows} invalid rows")
        logger.info(
            f"Extracted {len(transactions)} transactions from {file_path.name}"
            + (f" ({self.filtered_rows} outside date range)" if self.filtered_rows else "")
        )

        return transactions

    def _prepare(self, file_path: Path) -> None:
        """Hook for per-file setup before reading."""
        pass

    def _read_csv(self, file_path: Path) -> pd.DataFrame:
        try:
            df = pd.read_csv(
                file_path,
                encoding=self.encoding,
                delimiter=self.delimiter,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                index_col=False,
                engine="python",
                on_bad_lines=self._on_bad_line,
            )
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Failed to read CSV file {file_path}: {e}")
            raise self.error_cls(f"Failed to read CSV file {file_path}: {e}") from e

        self._validate_headers(df, file_path)
        df.columns = self.columns
        return df

    def _on_bad_line(self, bad_line: list[str]) -> None:
        # Wrong number of fields; returning None drops the line
        self.skipped_rows += 1
        logger.warning(
            f"Expected {len(self.columns)} columns, got {len(bad_line)}: skipping line"
        )
        return None

    def _validate_headers(self, df: pd.DataFrame, file_path: Path) -> None:
        """Headers must match the expected columns in order, ignoring case."""
        actual = [str(c).strip() for c in df.columns]
        expected_lower = [c.lower() for c in self.columns]
        if [c.lower() for c in actual] != expected_lower:
            raise self.error_cls(
                f"Invalid headers in {self.label} file {file_path}. "
                f"Expected: {self.columns}, Got: {actual}"
            )

    def _process_dataframe(
        self,
        df: pd.DataFrame,
        start: Optional[date],
        end: Optional[date],
    ) -> list[Transaction]:
        transactions: list[Transaction] = []

        for idx, row in df.iterrows():
            row_number = int(idx) + 1
            try:
                txn = self._normalize_row(row, row_number)
            except (ValueError, ArithmeticError) as e:
                self.skipped_rows += 1
                logger.warning(f"Row {row_number}: {e}, skipping")
                continue

            if not _in_range(txn.calendar_date, start, end):
                self.filtered_rows += 1
                continue

            transactions.append(txn)

        return transactions

    def _normalize_row(self, row: pd.Series, row_number: int) -> Transaction:
        raise NotImplementedError

    @staticmethod
    def _field(row: pd.Series, column: str) -> str:
        value = row.get(column)
        if value is None or pd.isna(value):
            return ""
        return str(value).strip()

    @staticmethod
    def _parse_amount(amount_value: str) -> Decimal:
        """
        Parse a decimal amount.

        Raises:
            ValueError: If the value is empty or not a finite number
        """
        try:
            amount = Decimal(amount_value)
        except InvalidOperation:
            raise ValueError(f"invalid amount {amount_value!r}") from None
        if not amount.is_finite():
            raise ValueError(f"invalid amount {amount_value!r}")
        return amount


def _in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True
