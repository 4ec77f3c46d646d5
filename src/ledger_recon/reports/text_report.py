"""
Plain-text reconciliation report.
"""

from datetime import date
from pathlib import Path
from typing import Optional
import logging

from ..models.transaction import MatchResult, Transaction
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

RULE = "-" * 57


class TextReportGenerator:
    """Renders a MatchResult as a fixed-width text report."""

    title = "RECONCILIATION REPORT"

    def render(
        self,
        result: MatchResult,
        start: Optional[date] = None,
        end: Optional[date] = None,
        bank_counts: Optional[dict[str, int]] = None,
    ) -> str:
        """
        Build the report text.

        Args:
            result: Finalized match result
            start: Start of the reconciliation period
            end: End of the reconciliation period
            bank_counts: Transactions loaded per bank source

        Returns:
            Report as a single string
        """
        lines: list[str] = [self.title]

        if start and end:
            lines.append(f"Reconciliation Period: {start.isoformat()} to {end.isoformat()}")
        lines.append("")

        lines.extend(self._summary_lines(result, bank_counts))
        lines.extend(self._discrepancy_lines(result))
        lines.extend(self._unmatched_system_lines(result))
        lines.extend(self._unmatched_bank_lines(result))

        return "\n".join(lines).rstrip() + "\n"

    def write(
        self,
        result: MatchResult,
        output_path: Path,
        start: Optional[date] = None,
        end: Optional[date] = None,
        bank_counts: Optional[dict[str, int]] = None,
    ) -> Path:
        """Render the report and save it to ``output_path``."""
        text = self.render(result, start=start, end=end, bank_counts=bank_counts)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ReportGenerationError(f"Failed to write text report {output_path}: {e}") from e
        logger.info(f"Text report saved: {output_path}")
        return output_path

    def _summary_lines(
        self, result: MatchResult, bank_counts: Optional[dict[str, int]]
    ) -> list[str]:
        lines = [
            "SUMMARY",
            RULE,
            f"Total Transactions Processed:   {result.total_system_txns + result.total_bank_txns}",
            f"System transactions:            {result.total_system_txns}",
            f"Bank transactions:              {result.total_bank_txns}",
        ]
        for source, count in (bank_counts or {}).items():
            lines.append(f"  {source + ':':<29}{count}")
        lines.extend(
            [
                f"Matched Transactions:           {result.total_matched} ({result.match_rate:.1f}%)",
                f"Unmatched Transactions:         {result.total_unmatched}",
                f"Unmatched system:               {len(result.unmatched_system)}",
                f"Unmatched bank:                 {len(result.unmatched_bank)}",
                f"Total Discrepancy Amount:       {result.total_discrepancy:.2f}",
                "",
            ]
        )
        return lines

    def _discrepancy_lines(self, result: MatchResult) -> list[str]:
        pairs = result.discrepant_pairs
        if not pairs:
            return []

        lines = ["MATCHED TRANSACTIONS WITH DISCREPANCIES", RULE]
        for pair in pairs:
            sys_txn = pair.system_transaction
            bank_txn = pair.bank_transaction
            lines.append(
                f"System: {sys_txn.id} ({sys_txn.absolute_amount():.2f}) <-> "
                f"Bank: {bank_txn.id} ({bank_txn.absolute_amount():.2f}) | "
                f"Discrepancy: {pair.amount_discrepancy:.2f}"
            )
        lines.append("")
        return lines

    def _unmatched_system_lines(self, result: MatchResult) -> list[str]:
        if not result.unmatched_system:
            return []

        lines = [
            "UNMATCHED SYSTEM TRANSACTIONS",
            RULE,
            "Transactions in system but missing in bank statement(s):",
            "",
        ]
        for txn in result.unmatched_system:
            lines.append(
                f"ID: {txn.id:<15} | Source: {txn.source:<10} | {_describe(txn)}"
            )
        lines.append("")
        return lines

    def _unmatched_bank_lines(self, result: MatchResult) -> list[str]:
        if not result.unmatched_bank:
            return []

        lines = [
            "UNMATCHED BANK TRANSACTIONS",
            RULE,
            "Transactions in bank statement(s) but missing in system:",
            "",
        ]
        for source, txns in result.unmatched_bank_by_source().items():
            lines.append(f"{source or 'UNKNOWN'} ({len(txns)} transactions):")
            for txn in txns:
                lines.append(f"ID: {txn.id:<15} | {_describe(txn)}")
            lines.append("")
        return lines


def _describe(txn: Transaction) -> str:
    return (
        f"Type: {txn.type.value:<6} | Amount: {txn.absolute_amount():>10.2f} | "
        f"Date: {txn.calendar_date.isoformat()}"
    )
