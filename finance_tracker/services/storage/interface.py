"""
Abstract Storage Interface

DESIGN DECISION: Ledgers talk to the store only through this interface.
This allows us to:
1. Swap the hosted backend without touching ledger logic
2. Use in-memory storage for testing
3. Keep ownership enforcement a property of every backend

The interface is table-oriented and row-based: rows are plain dicts
keyed by wire column names. Ledgers turn them into models.
"""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from finance_tracker.models.audit import AuditEvent


Row = dict[str, Any]


class LedgerStoreInterface(ABC):
    """
    Abstract interface for the remote ledger store.

    OWNERSHIP: every method takes the owner and must never read,
    return or modify a row whose user_id differs from it, regardless
    of what the caller filters on its side.
    """

    @abstractmethod
    async def select_rows(self, table: str, owner: str) -> list[Row]:
        """
        Fetch all rows of a table belonging to owner.

        Returns:
            Rows ordered by date descending. Rows with the same date
            keep the store's insertion order.

        Raises:
            StorageError: If the fetch fails
        """
        pass

    @abstractmethod
    async def insert_row(self, table: str, owner: str, fields: Row) -> Row:
        """
        Insert a row tagged with owner.

        Args:
            table: Target table
            owner: Principal the row belongs to
            fields: Client-settable columns (no id, user_id or timestamps)

        Returns:
            The full stored row, including id, user_id, created_at
            and updated_at

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_row(
        self,
        table: str,
        row_id: UUID,
        owner: str,
        fields: Row,
    ) -> Row:
        """
        Update columns of the row matching both row_id and owner.

        Returns:
            The full row as stored after the update

        Raises:
            NotFoundError: If no row matches row_id and owner
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_row(self, table: str, row_id: UUID, owner: str) -> None:
        """
        Delete the row matching both row_id and owner.

        Deleting a row that does not exist is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Row not found for this owner."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class StoreTimeoutError(StorageError):
    """The store did not answer within the configured timeout."""
    pass
