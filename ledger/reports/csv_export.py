"""
CSV export of the report's transactions, laid out for spreadsheet apps:
UTF-8 BOM, CRLF line endings, `;` delimiter by default, and the
description always quoted with embedded quotes doubled.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

from ledger.models.ledger import Transaction


BOM = "\ufeff"
LINE_TERMINATOR = "\r\n"
HEADERS = ("Date", "Description", "Kind", "Amount")


def _format_amount(amount: Decimal) -> str:
    # 5000.00 -> "5000", 12.50 -> "12.5"
    return format(amount.normalize(), "f")


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def export_transactions_csv(
    transactions: Iterable[Transaction],
    delimiter: str = ";",
) -> str:
    """Render transactions, in the order given, as a CSV document."""
    lines = [delimiter.join(HEADERS)]
    for t in transactions:
        lines.append(delimiter.join((
            t.occurred_on.date().isoformat(),
            _quote(t.description),
            t.kind.value,
            _format_amount(t.amount),
        )))
    return BOM + LINE_TERMINATOR.join(lines)


def export_filename(today: date) -> str:
    return f"ledger-transactions-{today.isoformat()}.csv"
