"""
CSV Export Encoder

Turns a filtered (and usually sorted) view into a downloadable CSV file:

    Amount,Category,Description,Date
    100,Food,"Lunch, with friends",2024-01-05

Standard CSV quoting applies: a field containing a comma, a quote or a
line break (CR or LF) is wrapped in double quotes and inner quotes are
doubled. Rows end with CRLF.
Rows keep the order of the input.

An empty view is not an error: ``export_expenses`` returns None and the
caller tells the user there is nothing to export.
"""

import csv
import io
from datetime import datetime, timezone
from typing import Iterable, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, ExportArtifact


EXPORT_HEADER = ("Amount", "Category", "Description", "Date")


def encode_csv(expenses: Iterable[Expense]) -> str:
    """Header row plus one row per expense, CRLF-terminated."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(EXPORT_HEADER)
    for expense in expenses:
        writer.writerow([
            str(expense.amount),
            expense.category,
            expense.description,
            expense.date.isoformat(),
        ])
    return buffer.getvalue()


def export_filename(
    prefix: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """``<prefix>_<YYYY-MM-DD>.csv`` using the UTC date."""
    prefix = prefix or get_settings().app.export_filename_prefix
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{prefix}_{now.date().isoformat()}.csv"


def export_expenses(
    expenses: Iterable[Expense],
    prefix: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[ExportArtifact]:
    """
    Build the export artifact for ``expenses``.

    Returns:
        The artifact, or None when there is nothing to export
    """
    rows = list(expenses)
    if not rows:
        return None

    return ExportArtifact(
        filename=export_filename(prefix, now),
        content=encode_csv(rows),
        row_count=len(rows),
    )
