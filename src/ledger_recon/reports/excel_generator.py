"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..models.transaction import MatchPair, MatchResult, Transaction
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
VARIANCE_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

TRANSACTION_HEADERS = ["ID", "Source", "Date", "Type", "Amount", "Absolute Amount"]


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config or ReconConfig()
        self.sheet_config = self.config.output.sheets

    def default_output_path(self, now: Optional[datetime] = None) -> Path:
        """Build a report filename from the configured template."""
        now = now or datetime.now()
        excel_config = self.config.output.excel
        if not excel_config.include_timestamp:
            return Path(excel_config.filename_template.replace("_{date}_{time}", ""))
        return Path(
            excel_config.filename_template.format(
                date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")
            )
        )

    def generate_report(
        self,
        result: MatchResult,
        output_path: Path,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            result: Finalized match result
            output_path: Path for output file
            start: Start of the reconciliation period
            end: End of the reconciliation period

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be saved
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, sheets.summary, result, start, end)
        if sheets.matched.enabled:
            self._create_matched_sheet(wb, sheets.matched, result.matched)
        if sheets.unmatched_system.enabled:
            self._create_transaction_sheet(wb, sheets.unmatched_system, result.unmatched_system)
        if sheets.unmatched_bank.enabled:
            self._create_transaction_sheet(wb, sheets.unmatched_bank, result.unmatched_bank)
        if sheets.discrepancies.enabled:
            self._create_discrepancy_sheet(wb, sheets.discrepancies, result.discrepant_pairs)

        # openpyxl refuses to save a workbook without sheets
        if not wb.worksheets:
            wb.create_sheet("Report")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e
        logger.info(f"Report saved: {output_path}")

        return output_path

    def _create_summary_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        result: MatchResult,
        start: Optional[date],
        end: Optional[date],
    ) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Ledger Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        info = [
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Algorithm:", result.algorithm_used),
            (
                "Reconciliation Period:",
                f"{start} to {end}" if start and end else "All dates",
            ),
        ]
        for i, (label, value) in enumerate(info, start=3):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws["A7"] = "Transaction Counts"
        ws["A7"].font = Font(bold=True)

        count_data = [
            ("System Transactions:", result.total_system_txns),
            ("Bank Transactions:", result.total_bank_txns),
            ("Matched Pairs:", result.total_matched),
            ("Unmatched System:", len(result.unmatched_system)),
            ("Unmatched Bank:", len(result.unmatched_bank)),
            ("Pairs With Discrepancy:", len(result.discrepant_pairs)),
        ]
        for i, (label, value) in enumerate(count_data, start=8):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws["A15"] = "Match Rate:"
        ws["B15"] = f"{result.match_rate:.1f}%"
        ws["A16"] = "Total Discrepancy:"
        ws["B16"] = f"{result.total_discrepancy:,.2f}"
        ws["A15"].font = Font(bold=True)
        ws["A16"].font = Font(bold=True)

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matched_sheet(
        self, wb: Workbook, sheet: SheetConfig, pairs: list[MatchPair]
    ) -> None:
        """Create the matched transactions sheet."""
        ws = wb.create_sheet(sheet.name)
        headers = [
            "System ID",
            "System Source",
            "System Date",
            "System Amount",
            "Bank ID",
            "Bank Source",
            "Bank Date",
            "Bank Amount",
            "Type",
            "Confidence",
            "Amount Discrepancy",
        ]
        self._write_headers(ws, headers)

        for row_num, pair in enumerate(pairs, start=2):
            sys_txn = pair.system_transaction
            bank_txn = pair.bank_transaction
            row_data = [
                sys_txn.id,
                sys_txn.source,
                sys_txn.calendar_date,
                float(sys_txn.amount),
                bank_txn.id,
                bank_txn.source,
                bank_txn.calendar_date,
                float(bank_txn.amount),
                sys_txn.type.value,
                pair.confidence_score,
                float(pair.amount_discrepancy),
            ]
            fill = VARIANCE_FILL if pair.has_discrepancy else MATCH_FILL
            self._write_row(ws, row_num, row_data, fill)

        self._auto_fit_columns(ws)

    def _create_transaction_sheet(
        self, wb: Workbook, sheet: SheetConfig, transactions: list[Transaction]
    ) -> None:
        """Create a sheet listing unmatched transactions."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, TRANSACTION_HEADERS)

        for row_num, txn in enumerate(transactions, start=2):
            row_data = [
                txn.id,
                txn.source,
                txn.calendar_date,
                txn.type.value,
                float(txn.amount),
                float(txn.absolute_amount()),
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_discrepancy_sheet(
        self, wb: Workbook, sheet: SheetConfig, pairs: list[MatchPair]
    ) -> None:
        """Create the amount discrepancies sheet."""
        ws = wb.create_sheet(sheet.name)
        headers = [
            "System ID",
            "Bank ID",
            "Date",
            "System Amount",
            "Bank Amount",
            "Amount Discrepancy",
            "Discrepancy %",
        ]
        self._write_headers(ws, headers)

        for row_num, pair in enumerate(pairs, start=2):
            sys_abs = pair.system_transaction.absolute_amount()
            discrepancy_pct = ""
            if sys_abs:
                discrepancy_pct = f"{(pair.amount_discrepancy / sys_abs) * 100:.2f}%"

            row_data = [
                pair.system_transaction.id,
                pair.bank_transaction.id,
                pair.system_transaction.calendar_date,
                float(sys_abs),
                float(pair.bank_transaction.absolute_amount()),
                float(pair.amount_discrepancy),
                discrepancy_pct,
            ]
            self._write_row(ws, row_num, row_data, VARIANCE_FILL)

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(self, ws: Worksheet, row_num: int, row_data: list, fill: PatternFill) -> None:
        for col, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            column = column_cells[0].column_letter
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column].width = min(max_length + 2, 50)
