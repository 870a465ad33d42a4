"""
Finance Tracker - Ledger Core

Client-side state management for a personal finance tracker:
expense logging and a lend/borrow ledger kept in sync with a
hosted table store.

DESIGN PRINCIPLES:
1. The store is the authority; the local cache follows its responses
2. Every record belongs to exactly one owner
3. Failures are reported once, never silently retried
4. Aggregates are pure functions of a snapshot
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
