"""Ledgers package: owner-scoped mirrors of the store tables."""

from finance_tracker.ledgers.repository import RecordRepository
from finance_tracker.ledgers.expenses import ExpenseLedger
from finance_tracker.ledgers.lend_borrow import LendBorrowLedger

__all__ = ["ExpenseLedger", "LendBorrowLedger", "RecordRepository"]
