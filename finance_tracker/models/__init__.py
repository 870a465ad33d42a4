"""
Data Models Package

This package contains all Pydantic models used by the ledgers.
Everything read from or written to the store conforms to these schemas.
"""

from finance_tracker.models.records import (
    Direction,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpensePatch,
    LedgerEntry,
    LedgerEntryDraft,
    LedgerEntryPatch,
    RecordStatus,
    StoredRecord,
)
from finance_tracker.models.summary import DashboardSummary
from finance_tracker.models.validation import ValidationIssue, ValidationResult
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Direction",
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "ExpensePatch",
    "LedgerEntry",
    "LedgerEntryDraft",
    "LedgerEntryPatch",
    "RecordStatus",
    "StoredRecord",
    # Derived
    "DashboardSummary",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
