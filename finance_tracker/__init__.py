"""
Finance Tracker - Source Package

Personal finance tracking: income and expense transactions recorded
against several financial accounts and categories, with balances,
monthly summaries and category breakdowns computed from the ledger.

DESIGN PRINCIPLES:
1. Identity is explicit: every read and write names its user
2. The ledger is append-only; balances are always recomputed from it
3. Money is Decimal, never float
4. Fail loudly with a typed error, never silently
5. Storage layer is swappable
"""

__version__ = "1.0.0"
