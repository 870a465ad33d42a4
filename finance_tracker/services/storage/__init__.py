"""
Storage Services Package

Provides the abstract store contract and its implementations.
Google Sheets is the hosted backend; the in-memory store backs tests
and offline use.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    Row,
    StorageError,
    StoreTimeoutError,
)
from finance_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    "Row",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    "StoreTimeoutError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
