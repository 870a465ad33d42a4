"""
In-Memory Storage Implementation

A complete store backend that lives in process memory. Used by the
test suite and for running the ledgers without a hosted backend.

It behaves like the hosted store where ledgers can observe it:
- ids and timestamps are assigned here, never by the caller
- updated_at is recomputed on every update
- every query is filtered by owner
- select ordering is date descending, stable for equal dates
"""

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID, uuid4

from finance_tracker.models.audit import AuditEvent
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    LedgerStoreInterface,
    NotFoundError,
    Row,
    StorageError,
)


PROTECTED_COLUMNS = frozenset({"id", "user_id", "created_at", "updated_at"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dict-of-lists table store.

    Args:
        clock: Returns the timestamp to stamp on writes. Tests inject
               a deterministic clock.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._tables: dict[str, list[Row]] = {}
        self._clock = clock or _utcnow

    def _table(self, table: str) -> list[Row]:
        return self._tables.setdefault(table, [])

    def _find_index(self, table: str, row_id: UUID, owner: str) -> Optional[int]:
        for idx, row in enumerate(self._table(table)):
            if row["id"] == str(row_id) and row["user_id"] == owner:
                return idx
        return None

    def _check_fields(self, fields: Row) -> None:
        protected = PROTECTED_COLUMNS.intersection(fields)
        if protected:
            raise StorageError(
                f"Columns cannot be set by the client: {sorted(protected)}"
            )

    async def select_rows(self, table: str, owner: str) -> list[Row]:
        rows = [dict(row) for row in self._table(table) if row["user_id"] == owner]
        # list.sort is stable, also with reverse=True
        rows.sort(key=lambda r: r.get("date") or "", reverse=True)
        return rows

    async def insert_row(self, table: str, owner: str, fields: Row) -> Row:
        self._check_fields(fields)
        now = self._clock().isoformat()
        row = {
            **fields,
            "id": str(uuid4()),
            "user_id": owner,
            "created_at": now,
            "updated_at": now,
        }
        self._table(table).append(row)
        return dict(row)

    async def update_row(
        self,
        table: str,
        row_id: UUID,
        owner: str,
        fields: Row,
    ) -> Row:
        self._check_fields(fields)
        idx = self._find_index(table, row_id, owner)
        if idx is None:
            raise NotFoundError(f"No row {row_id} in {table} for this owner")

        row = self._table(table)[idx]
        row.update(fields)
        row["updated_at"] = self._clock().isoformat()
        return dict(row)

    async def delete_row(self, table: str, row_id: UUID, owner: str) -> None:
        idx = self._find_index(table, row_id, owner)
        if idx is not None:
            del self._table(table)[idx]

    def row_count(self, table: str) -> int:
        """Total rows across all owners."""
        return len(self._table(table))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
