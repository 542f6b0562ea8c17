"""
Sales reporting: the period aggregator and its spreadsheet export.
"""

from .service import ReportGenerationError, ReportService, SalesReport, TopProduct

__all__ = [
    "ReportGenerationError",
    "ReportService",
    "SalesReport",
    "TopProduct",
]
