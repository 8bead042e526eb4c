"""Spreadsheet reading and writing."""

from .reader import SpreadsheetError, read_import_rows
from .writer import ExportError, ExportSummary, export_mcqs, write_template

__all__ = [
    "ExportError",
    "ExportSummary",
    "SpreadsheetError",
    "export_mcqs",
    "read_import_rows",
    "write_template",
]
