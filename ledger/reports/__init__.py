"""Financial reports: aggregation and CSV export."""

from ledger.reports.aggregator import ReportService, aggregate
from ledger.reports.csv_export import export_filename, export_transactions_csv

__all__ = [
    "ReportService",
    "aggregate",
    "export_filename",
    "export_transactions_csv",
]
