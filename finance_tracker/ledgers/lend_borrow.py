"""
Lend/Borrow Ledger

A record repository bound to the lend_borrow_records table, plus
status changes.

DESIGN DECISION: set_status() has no transition guard. Moving a
completed record back to pending is allowed, so a record settled by
mistake can be reopened. Callers that want a confirmation step ask
for it before calling.
"""

from decimal import Decimal
from typing import Optional, Union

from finance_tracker.aggregation import engine
from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_settings
from finance_tracker.ledgers.repository import RecordId, RecordRepository
from finance_tracker.models.records import (
    Direction,
    LedgerEntry,
    LedgerEntryDraft,
    LedgerEntryPatch,
    RecordStatus,
)
from finance_tracker.services.storage import LedgerStoreInterface


class LendBorrowLedger(RecordRepository[LedgerEntry, LedgerEntryDraft, LedgerEntryPatch]):
    """Money lent to and borrowed from other people, for one owner."""

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
            table or get_settings().ledger.lend_borrow_table,
            LedgerEntry,
            timeout=timeout,
            audit_logger=audit_logger,
        )

    async def set_status(
        self,
        record_id: RecordId,
        status: Union[RecordStatus, str],
    ) -> LedgerEntry:
        """Update only the status field of a record."""
        return await self.update(
            record_id, LedgerEntryPatch(status=RecordStatus(status))
        )

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return self.records

    def with_direction(
        self,
        direction: Optional[Direction] = None,
    ) -> tuple[LedgerEntry, ...]:
        return tuple(engine.filter_by_direction(self._records, direction))

    def pending(self, limit: Optional[int] = None) -> tuple[LedgerEntry, ...]:
        pending = tuple(
            entry for entry in self._records if entry.status == RecordStatus.PENDING
        )
        return pending if limit is None else pending[:limit]

    @property
    def net_balance(self) -> Decimal:
        return engine.net_balance(self._records)

    @property
    def pending_count(self) -> int:
        return engine.pending_count(self._records)
