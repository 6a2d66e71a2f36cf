"""
Report Models

The shape of the financial summary report: totals, a per-month
series for charting, a two-entry type breakdown and the raw
transactions (oldest first) for tables and CSV export.
"""

from decimal import Decimal

from pydantic import Field

from ledger.models.ledger import LedgerModel, Money, Transaction


class ReportSummary(LedgerModel):
    """Headline totals."""

    total_income: Money = Decimal(0)
    total_expense: Money = Decimal(0)
    balance: Money = Decimal(0)
    transaction_count: int = Field(default=0, ge=0)


class MonthlyEntry(LedgerModel):
    """Income and expense accumulated over one calendar month."""

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="Year-month key, e.g. 2025-01"
    )
    label: str = Field(
        ...,
        description="Display label, e.g. Jan 2025"
    )
    income: Money = Decimal(0)
    expense: Money = Decimal(0)


class TypeBreakdownEntry(LedgerModel):
    """One slice of the income/expense distribution."""

    name: str
    value: Money = Decimal(0)


class FinancialReport(LedgerModel):
    """The complete report payload."""

    summary: ReportSummary
    monthly_series: list[MonthlyEntry] = Field(default_factory=list)
    type_breakdown: list[TypeBreakdownEntry] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
