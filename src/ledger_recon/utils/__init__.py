"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    SystemParseError,
    BankParseError,
    ConfigurationError,
    ReportGenerationError,
)
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "SystemParseError",
    "BankParseError",
    "ConfigurationError",
    "ReportGenerationError",
    "setup_logging",
]
