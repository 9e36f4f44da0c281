"""Export package."""

from expense_tracker.export.csv_export import (
    EXPORT_HEADER,
    encode_csv,
    export_expenses,
    export_filename,
)

__all__ = ["EXPORT_HEADER", "encode_csv", "export_expenses", "export_filename"]
