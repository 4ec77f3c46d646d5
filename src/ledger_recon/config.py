"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_BANK_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y-%m-%dT%H:%M:%SZ",
]


class SystemInputConfig(BaseModel):
    """Configuration for system ledger CSV parsing."""

    encoding: str = "utf-8"
    delimiter: str = ","
    columns: list[str] = Field(
        default_factory=lambda: ["trxID", "amount", "source", "type", "transactionTime"]
    )


class BankInputConfig(BaseModel):
    """Configuration for bank statement CSV parsing."""

    encoding: str = "utf-8"
    delimiter: str = ","
    columns: list[str] = Field(default_factory=lambda: ["unique_identifier", "amount", "date"])
    date_formats: list[str] = Field(default_factory=lambda: list(DEFAULT_BANK_DATE_FORMATS))


class InputConfig(BaseModel):
    """Configuration for input file parsing."""

    system: SystemInputConfig = Field(default_factory=SystemInputConfig)
    bank: BankInputConfig = Field(default_factory=BankInputConfig)


class MatcherConfig(BaseModel):
    """Options handed to a matching strategy."""

    # Percentage tolerance for amount comparison; 0 means exact equality
    amount_tolerance_percent: float = Field(default=0.0, ge=0.0)


class MatchingConfig(BaseModel):
    """Configuration for the matching engine."""

    algorithm: str = "exact"
    matcher: MatcherConfig = Field(default_factory=MatcherConfig)


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"
    include_timestamp: bool = True


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched Transactions"))
    unmatched_system: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched System")
    )
    unmatched_bank: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Unmatched Bank"))
    discrepancies: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Amount Discrepancies")
    )


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def default_matcher_config() -> MatcherConfig:
    """Return a fresh matcher configuration with exact-match defaults."""
    return MatcherConfig()


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "input": {
            "system": {
                "encoding": "utf-8",
                "delimiter": ",",
                "columns": ["trxID", "amount", "source", "type", "transactionTime"],
            },
            "bank": {
                "encoding": "utf-8",
                "delimiter": ",",
                "columns": ["unique_identifier", "amount", "date"],
                "date_formats": list(DEFAULT_BANK_DATE_FORMATS),
            },
        },
        "matching": {
            "algorithm": "exact",
            "matcher": {
                "amount_tolerance_percent": 0.0,
            },
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
                "include_timestamp": True,
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matched": {"enabled": True, "name": "Matched Transactions"},
                "unmatched_system": {"enabled": True, "name": "Unmatched System"},
                "unmatched_bank": {"enabled": True, "name": "Unmatched Bank"},
                "discrepancies": {"enabled": True, "name": "Amount Discrepancies"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Ledger Reconciliation Configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
