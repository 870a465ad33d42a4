"""
Audit Models for Finance Tracker

Every store interaction made by a ledger is recorded as an audit event.
This provides:
1. A history of what each principal changed and when
2. Debugging information when the store rejects a call
3. A way to tell fetch failures apart from mutation failures

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reads
    RECORDS_FETCHED = "records_fetched"
    FETCH_FAILED = "fetch_failed"

    # Writes
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    STATUS_CHANGED = "status_changed"
    MUTATION_FAILED = "mutation_failed"

    # Session
    PRINCIPAL_CHANGED = "principal_changed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    table and owner identify which ledger produced it; entity_id is
    the record the event is about, when there is one.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    table: Optional[str] = None
    owner: Optional[str] = None
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "table": self.table,
            "owner": self.owner,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Columns: [event_id, timestamp, event_type, severity, table, owner,
        entity_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.table or "",
            self.owner or "",
            str(self.entity_id) if self.entity_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.records_fetched("expenses", owner, 12)
        event = AuditEventBuilder.mutation_failed("expenses", owner, "add", err)
    """

    @staticmethod
    def records_fetched(table: str, owner: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_FETCHED,
            severity=AuditSeverity.DEBUG,
            table=table,
            owner=owner,
            description=f"Fetched {count} rows from {table}",
            details={"count": count},
        )

    @staticmethod
    def fetch_failed(table: str, owner: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            table=table,
            owner=owner,
            description=f"Failed to fetch rows from {table}",
            error_message=error_message,
        )

    @staticmethod
    def record_created(table: str, owner: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            table=table,
            owner=owner,
            entity_id=record_id,
            description=f"Created row in {table}",
        )

    @staticmethod
    def record_updated(
        table: str,
        owner: str,
        record_id: UUID,
        fields: list[str],
    ) -> AuditEvent:
        event_type = AuditEventType.RECORD_UPDATED
        if fields == ["status"]:
            event_type = AuditEventType.STATUS_CHANGED
        return AuditEvent(
            event_type=event_type,
            table=table,
            owner=owner,
            entity_id=record_id,
            description=f"Updated {', '.join(fields)} in {table}",
            details={"fields": fields},
        )

    @staticmethod
    def record_deleted(table: str, owner: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            table=table,
            owner=owner,
            entity_id=record_id,
            description=f"Deleted row from {table}",
        )

    @staticmethod
    def mutation_failed(
        table: str,
        owner: str,
        operation: str,
        error_message: str,
        record_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            table=table,
            owner=owner,
            entity_id=record_id,
            description=f"{operation} on {table} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def principal_changed(
        table: str,
        previous_owner: str,
        new_owner: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRINCIPAL_CHANGED,
            table=table,
            owner=new_owner,
            description=f"Principal changed for {table}",
            details={"previous_owner": previous_owner},
        )
