"""
Expense Tracker - Source Package

A local, single-user expense tracker: log expenses with optional receipts,
browse and filter history, view summaries and export PDF reports.

DESIGN PRINCIPLES:
1. One explicitly owned store, persisted in full after every mutation
2. Every view is recomputed from the full record set by pure functions
3. Fail early, fail visibly
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
