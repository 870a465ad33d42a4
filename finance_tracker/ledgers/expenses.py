"""Expense ledger: a record repository bound to the expenses table."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from finance_tracker.aggregation import engine
from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_settings
from finance_tracker.ledgers.repository import RecordRepository
from finance_tracker.models.records import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpensePatch,
)
from finance_tracker.services.storage import LedgerStoreInterface


class ExpenseLedger(RecordRepository[Expense, ExpenseDraft, ExpensePatch]):
    """
    Expenses of one owner.

    Drafts and patches are expected to be validated by the caller
    (see RecordValidator); the ledger does not re-check them.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        owner: str,
        *,
        table: Optional[str] = None,
        timeout: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(
            store,
            owner,
            table or get_settings().ledger.expenses_table,
            Expense,
            timeout=timeout,
            audit_logger=audit_logger,
        )

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self.records

    @property
    def total(self) -> Decimal:
        return engine.total_expenses(self._records)

    def by_category(self) -> dict[ExpenseCategory, Decimal]:
        return engine.by_category(self._records)

    def by_date(self) -> dict[dt.date, Decimal]:
        return engine.by_date(self._records)

    def search(
        self,
        term: str = "",
        category: Optional[ExpenseCategory] = None,
    ) -> tuple[Expense, ...]:
        return tuple(engine.filter_expenses(self._records, term, category))

    def recent(self, limit: int = 4) -> tuple[Expense, ...]:
        """The first `limit` records in cache order."""
        return self.records[:limit]
