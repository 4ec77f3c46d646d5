"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class SystemParseError(ReconciliationError):
    """Error reading a system ledger CSV file."""

    pass


class BankParseError(ReconciliationError):
    """Error reading a bank statement CSV file."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration or matcher setup."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error writing a reconciliation report."""

    pass
