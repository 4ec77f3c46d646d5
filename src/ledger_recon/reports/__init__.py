"""Report generators for reconciliation results."""

from .excel_generator import ExcelReportGenerator
from .text_report import TextReportGenerator

__all__ = ["ExcelReportGenerator", "TextReportGenerator"]
