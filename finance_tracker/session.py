"""
Ledger Session

Ties the two ledgers of one signed-in principal together.

DESIGN DECISION: There is no global ledger state. A session is an
explicit object built with the principal and the store it should talk
to, so several sessions (or tests) can coexist without sharing caches.

Flows:
1. Sign-in → create_session(owner) → load()
2. Another principal signs in → switch_principal(owner)
   (both caches are cleared and re-fetched)
3. Dashboard → summary() over the current snapshots
"""

import asyncio
from typing import Optional

import structlog

from finance_tracker.aggregation import engine
from finance_tracker.audit import AuditLogger
from finance_tracker.config import LedgerSettings, get_settings
from finance_tracker.ledgers import ExpenseLedger, LendBorrowLedger
from finance_tracker.models.summary import DashboardSummary
from finance_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
)


logger = structlog.get_logger("finance_tracker.session")


class LedgerSession:
    """
    The expense and lend/borrow ledgers of one principal.

    Args:
        store: Remote ledger store shared by both ledgers
        owner: Authenticated principal
        settings: Table names and timeout (from environment if omitted)
        audit_logger: Shared audit logger
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        owner: str,
        *,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = settings or get_settings().ledger
        audit_logger = audit_logger or AuditLogger()

        self.expenses = ExpenseLedger(
            store,
            owner,
            table=settings.expenses_table,
            timeout=settings.request_timeout_seconds,
            audit_logger=audit_logger,
        )
        self.lend_borrow = LendBorrowLedger(
            store,
            owner,
            table=settings.lend_borrow_table,
            timeout=settings.request_timeout_seconds,
            audit_logger=audit_logger,
        )

    @property
    def owner(self) -> str:
        return self.expenses.owner

    @property
    def loading(self) -> bool:
        return self.expenses.loading or self.lend_borrow.loading

    @property
    def errors(self) -> dict[str, str]:
        """Current error per table, only for tables that have one."""
        return {
            ledger.table: ledger.error
            for ledger in (self.expenses, self.lend_borrow)
            if ledger.error
        }

    async def load(self) -> None:
        """Fetch both ledgers concurrently. Failures land in `errors`."""
        await asyncio.gather(self.expenses.list(), self.lend_borrow.list())

    async def switch_principal(self, owner: str) -> None:
        """Re-scope both ledgers to another principal and re-fetch."""
        if owner == self.owner:
            return
        await asyncio.gather(
            self.expenses.set_owner(owner),
            self.lend_borrow.set_owner(owner),
        )

    def summary(self) -> DashboardSummary:
        return engine.summarize(self.expenses.records, self.lend_borrow.records)


def create_session(owner: str, use_storage: bool = True) -> LedgerSession:
    """
    Factory function to create a session for a principal.

    Args:
        owner: Authenticated principal
        use_storage: Whether to use Google Sheets storage.
                    Set to False to keep everything in memory.
    """
    store: LedgerStoreInterface
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.get_spreadsheet()
            store = GoogleSheetsLedgerStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured or unreachable - continue without it
            logger.warning("storage_not_configured", error=str(e))
            store = InMemoryLedgerStore()
    else:
        store = InMemoryLedgerStore()

    return LedgerSession(store, owner, audit_logger=audit_logger)
