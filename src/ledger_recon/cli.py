"""
Command-line interface for the ledger reconciliation tool.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import load_config, generate_default_config, ReconConfig
from .models.transaction import MatchResult, Transaction
from .parsers.bank_parser import BankStatementParser
from .parsers.system_parser import SystemTransactionParser
from .matching.engine import ReconciliationEngine
from .reports.excel_generator import ExcelReportGenerator
from .reports.text_report import TextReportGenerator
from .utils.exceptions import BankParseError, ReconciliationError, SystemParseError
from .utils.logging_config import setup_logging

console = Console()

PREVIEW_ROWS = 20


@click.group()
@click.version_option(version=__version__)
def main():
    """Ledger vs. Bank Statement Reconciliation Tool."""
    pass


@main.command()
@click.option(
    "--system",
    "system_files",
    multiple=True,
    required=True,
    help="System transaction CSV file(s), comma-separated or repeated",
)
@click.option(
    "--banks",
    "bank_files",
    multiple=True,
    required=True,
    help="Bank statement CSV file(s), comma-separated or repeated",
)
@click.option(
    "--start", type=click.DateTime(formats=["%Y-%m-%d"]), required=True, help="Start date"
)
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), required=True, help="End date")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option(
    "--text-report", type=click.Path(path_type=Path), help="Also save the text report to a file"
)
@click.option("--algorithm", default=None, help="Override the matching algorithm")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Parse and match without writing the Excel report"
)
def reconcile(
    system_files: tuple[str, ...],
    bank_files: tuple[str, ...],
    start: datetime,
    end: datetime,
    config: Optional[Path],
    output: Optional[Path],
    text_report: Optional[Path],
    algorithm: Optional[str],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile system transactions against one or more bank statements.

    Bank statement files must be named {bank}_statement_{date}.csv.
    """
    start_date = start.date()
    end_date = end.date()
    if start_date > end_date:
        console.print("[red]Error: start date must not be after end date[/red]")
        sys.exit(1)

    system_paths, invalid_system = _split_paths(system_files)
    bank_paths, invalid_banks = _split_paths(bank_files)
    for path in invalid_system + invalid_banks:
        console.print(f"[yellow]Skipping invalid path: {path}[/yellow]")

    if not system_paths:
        console.print("[red]Error: No valid system transaction files provided[/red]")
        sys.exit(1)
    if not bank_paths:
        console.print("[red]Error: No valid bank statement files provided[/red]")
        sys.exit(1)

    try:
        recon_config = load_config(config)
        setup_logging(
            logging.DEBUG if verbose else recon_config.logging.level,
            log_format=recon_config.logging.format,
        )
        if algorithm:
            recon_config.matching.algorithm = algorithm

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Reading system transactions...", total=None)
            system_txns = _read_system(recon_config, system_paths, start_date, end_date)
            progress.update(task, completed=True)

            task = progress.add_task("Reading bank statements...", total=None)
            bank_txns, bank_counts = _read_banks(recon_config, bank_paths, start_date, end_date)
            progress.update(task, completed=True)

            task = progress.add_task("Reconciling transactions...", total=None)
            engine = ReconciliationEngine(recon_config)
            result = engine.reconcile(system_txns, bank_txns)
            progress.update(task, completed=True)

        text_generator = TextReportGenerator()
        console.print(
            text_generator.render(result, start=start_date, end=end_date, bank_counts=bank_counts),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
        _display_summary(result)

        if text_report:
            text_generator.write(
                result, text_report, start=start_date, end=end_date, bank_counts=bank_counts
            )
            console.print(f"[green]Text report written: {text_report}[/green]")

        if dry_run:
            console.print("\n[yellow]Dry run - no Excel report generated[/yellow]")
            return

        excel_generator = ExcelReportGenerator(recon_config)
        report_path = excel_generator.generate_report(
            result,
            output_path=output or excel_generator.default_output_path(),
            start=start_date,
            end=end_date,
        )
        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except ReconciliationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command("parse-system")
@click.argument("system_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_system(system_file: Path, config: Optional[Path]):
    """
    Parse a system transaction CSV and display a preview.

    SYSTEM_FILE: Path to the system transactions CSV
    """
    try:
        parser = SystemTransactionParser(load_config(config))
        transactions = parser.parse_file(system_file)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {escape(str(e))}[/red]")
        sys.exit(1)

    _display_transactions(f"System Transactions: {system_file.name}", transactions)
    if parser.skipped_rows:
        console.print(f"Skipped {parser.skipped_rows} invalid rows")


@main.command("parse-bank")
@click.argument("bank_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_bank(bank_file: Path, config: Optional[Path]):
    """
    Parse a bank statement CSV and display a preview.

    BANK_FILE: Path to the bank statement CSV ({bank}_statement_{date}.csv)
    """
    try:
        parser = BankStatementParser(load_config(config))
        transactions = parser.parse_file(bank_file)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {escape(str(e))}[/red]")
        sys.exit(1)

    _display_transactions(f"Bank Transactions: {bank_file.name}", transactions)
    if parser.skipped_rows:
        console.print(f"Skipped {parser.skipped_rows} invalid rows")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _split_paths(values: tuple[str, ...]) -> tuple[list[Path], list[str]]:
    """Flatten comma-separated values into existing file paths and invalid ones."""
    valid: list[Path] = []
    invalid: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if not item:
                continue
            path = Path(item)
            if path.is_file():
                valid.append(path)
            else:
                invalid.append(item)
    return valid, invalid


def _read_system(
    config: ReconConfig, paths: list[Path], start: date, end: date
) -> list[Transaction]:
    parser = SystemTransactionParser(config)
    transactions: list[Transaction] = []
    loaded = 0
    for path in paths:
        try:
            txns = parser.parse_file(path, start=start, end=end)
        except SystemParseError as e:
            console.print(
                f"[yellow]Error reading {path}: {escape(str(e))}[/yellow]", soft_wrap=True
            )
            continue
        if parser.skipped_rows:
            console.print(f"{path.name}: skipped {parser.skipped_rows} invalid rows")
        loaded += 1
        transactions.extend(txns)
    if not loaded:
        raise SystemParseError("No system transaction file could be read")
    return transactions


def _read_banks(
    config: ReconConfig, paths: list[Path], start: date, end: date
) -> tuple[list[Transaction], dict[str, int]]:
    parser = BankStatementParser(config)
    transactions: list[Transaction] = []
    loaded = 0
    counts: dict[str, int] = {}
    for path in paths:
        try:
            txns = parser.parse_file(path, start=start, end=end)
        except BankParseError as e:
            console.print(
                f"[yellow]Error reading {path}: {escape(str(e))}[/yellow]", soft_wrap=True
            )
            continue
        if parser.skipped_rows:
            console.print(f"{parser.bank_source}: skipped {parser.skipped_rows} invalid rows")
        if txns:
            counts[parser.bank_source] = counts.get(parser.bank_source, 0) + len(txns)
        loaded += 1
        transactions.extend(txns)
    if not loaded:
        raise BankParseError("No bank statement file could be read")
    return transactions, counts


def _display_transactions(title: str, transactions: list[Transaction]) -> None:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Source")
    table.add_column("Type")
    table.add_column("Amount", justify="right")

    for txn in transactions[:PREVIEW_ROWS]:
        table.add_row(
            txn.id,
            str(txn.calendar_date),
            txn.source or "-",
            txn.type.value,
            f"{txn.amount:,.2f}",
        )

    console.print(table)

    if len(transactions) > PREVIEW_ROWS:
        console.print(f"\n... and {len(transactions) - PREVIEW_ROWS} more transactions")

    console.print(f"\nTotal transactions: {len(transactions)}")


def _display_summary(result: MatchResult) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Algorithm", result.algorithm_used)
    table.add_row("System Transactions", str(result.total_system_txns))
    table.add_row("Bank Transactions", str(result.total_bank_txns))
    table.add_row("Matched", str(result.total_matched))
    table.add_row("Unmatched System", str(len(result.unmatched_system)))
    table.add_row("Unmatched Bank", str(len(result.unmatched_bank)))
    table.add_row("Match Rate", f"{result.match_rate:.1f}%")
    table.add_row("Total Discrepancy", f"{result.total_discrepancy:,.2f}")

    console.print(table)


if __name__ == "__main__":
    main()
