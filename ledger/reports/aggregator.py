"""
Report Aggregation

DESIGN DECISION: Aggregation is DETERMINISTIC and PURE.
`aggregate()` only reduces the transactions it is given; it never reads
the store, the clock or any other state. Running it twice on the same
input yields identical reports.

Invariants of every report:
- balance == total_income - total_expense
- monthly income sums to total_income, monthly expense to total_expense
- the type breakdown always has exactly Income and Expense, even at zero
- months without transactions are omitted, never zero-filled
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from ledger.errors import StoreFailure, Unauthenticated
from ledger.models.ledger import Principal, SortOrder, Transaction, TransactionKind
from ledger.models.report import (
    FinancialReport,
    MonthlyEntry,
    ReportSummary,
    TypeBreakdownEntry,
)
from ledger.policy import can_view_reports
from ledger.services.storage import StorageError, TransactionStorageInterface


logger = structlog.get_logger(__name__)

MONTH_KEY_FORMAT = "%Y-%m"
MONTH_LABEL_FORMAT = "%b %Y"


def aggregate(transactions: Iterable[Transaction]) -> FinancialReport:
    """
    Reduce transactions into summary totals, a monthly series and a
    type breakdown.

    Args:
        transactions: Any order; they are sorted by occurrence date
            (stable, so same-day entries keep their input order)

    Returns:
        The report, with the sorted transactions attached
    """
    ordered = sorted(transactions, key=lambda t: t.occurred_on)

    total_income = Decimal(0)
    total_expense = Decimal(0)
    months: dict[str, MonthlyEntry] = {}

    for transaction in ordered:
        key = transaction.occurred_on.strftime(MONTH_KEY_FORMAT)
        entry = months.get(key)
        if entry is None:
            entry = MonthlyEntry(
                month=key,
                label=transaction.occurred_on.strftime(MONTH_LABEL_FORMAT),
            )
            months[key] = entry

        if transaction.kind == TransactionKind.INCOME:
            total_income += transaction.amount
            entry.income += transaction.amount
        else:
            total_expense += transaction.amount
            entry.expense += transaction.amount

    return FinancialReport(
        summary=ReportSummary(
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
            transaction_count=len(ordered),
        ),
        monthly_series=[months[key] for key in sorted(months)],
        type_breakdown=[
            TypeBreakdownEntry(name="Income", value=total_income),
            TypeBreakdownEntry(name="Expense", value=total_expense),
        ],
        transactions=ordered,
    )


class ReportService:
    """Builds the financial report for any authenticated principal."""

    def __init__(self, store: TransactionStorageInterface):
        self._store = store

    async def build_report(self, principal: Optional[Principal]) -> FinancialReport:
        if not can_view_reports(principal):
            raise Unauthenticated()
        try:
            transactions = await self._store.list_transactions(SortOrder.ASCENDING)
        except StorageError as e:
            logger.error("store_failure", operation="build_report", error=str(e))
            raise StoreFailure("Could not build report") from e

        report = aggregate(transactions)
        logger.info(
            "report_built",
            transaction_count=report.summary.transaction_count,
            months=len(report.monthly_series),
        )
        return report
