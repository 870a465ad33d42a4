"""
Audit Logger

DESIGN DECISION: Every store interaction a ledger makes is logged.
This provides:
1. Traceability of what each principal changed
2. Debugging capability when the store rejects a call
3. A record of fetch failures that the UI only shows transiently

The audit logger:
- Is async so ledgers can await it inline
- Gracefully handles failures (a broken audit store never breaks a ledger)
"""

from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Records what ledgers do with the store.

    Every event goes to the structured local log. Events are also
    appended to an audit store when one is configured.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Where events are appended. If None, events
                     only reach the local log.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Write one event to the local log and, if configured, the audit store.

        Returns False only when the audit store rejected the event.
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Ledger operations never fail because of auditing
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_records_fetched(self, table: str, owner: str, count: int) -> None:
        await self.log(AuditEventBuilder.records_fetched(table, owner, count))

    async def log_fetch_failed(self, table: str, owner: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.fetch_failed(table, owner, error_message))

    async def log_record_created(self, table: str, owner: str, record_id: UUID) -> None:
        await self.log(AuditEventBuilder.record_created(table, owner, record_id))

    async def log_record_updated(
        self,
        table: str,
        owner: str,
        record_id: UUID,
        fields: list[str],
    ) -> None:
        await self.log(
            AuditEventBuilder.record_updated(table, owner, record_id, fields)
        )

    async def log_record_deleted(self, table: str, owner: str, record_id: UUID) -> None:
        await self.log(AuditEventBuilder.record_deleted(table, owner, record_id))

    async def log_mutation_failed(
        self,
        table: str,
        owner: str,
        operation: str,
        error_message: str,
        record_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed add/update/remove."""
        await self.log(
            AuditEventBuilder.mutation_failed(
                table, owner, operation, error_message, record_id
            )
        )

    async def log_principal_changed(
        self,
        table: str,
        previous_owner: str,
        new_owner: str,
    ) -> None:
        await self.log(
            AuditEventBuilder.principal_changed(table, previous_owner, new_owner)
        )
