"""
Expense Tracker - Source Package

A personal expense tracker client: sign in, then record, filter,
sort, summarise and export expenses kept by a REST backend.

DESIGN PRINCIPLES:
1. The backend is the source of truth; local state only mirrors confirmed results
2. Derived views (filter, sort, totals, export) never mutate the store
3. Fail visibly, with a distinct message per failure kind
4. Every mutation is audited
5. Transport is swappable (HTTP or in-memory)
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
