"""Parsers for system ledger and bank statement files."""

from .bank_parser import BankStatementParser, extract_bank_source
from .system_parser import SystemTransactionParser

__all__ = ["BankStatementParser", "SystemTransactionParser", "extract_bank_source"]
