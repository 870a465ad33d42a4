"""
Record Repository

A local mirror of one store table, scoped to one owner.

CONTRACT - the store is the authority:
- The cache changes only after the store has answered successfully.
  There is no optimistic mutation, so there is nothing to roll back.
- add() prepends the row the store returned. It does not re-sort, so a
  new record with an older date stays first until the next list().
- update() replaces the cached record with the row the store returned,
  never with a locally patched copy.
- Calls are not queued. Two in-flight mutations are applied in the
  order their responses arrive (last writer wins at the cache).
- Fetch failures are reported through `error` and keep the last good
  cache. Mutation failures set `error` and are re-raised.
- Every store call is bounded by a timeout; expiry is a StoreTimeoutError
  and takes the normal failure path.
"""

import asyncio
from typing import Any, Awaitable, Generic, Optional, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_settings
from finance_tracker.models.records import StoredRecord
from finance_tracker.services.storage import (
    LedgerStoreInterface,
    NotFoundError,
    Row,
    StorageError,
    StoreTimeoutError,
)


RecordT = TypeVar("RecordT", bound=StoredRecord)
DraftT = TypeVar("DraftT", bound=BaseModel)
PatchT = TypeVar("PatchT", bound=BaseModel)

RecordId = Union[UUID, str]

# Failures that leave the cache untouched and are reported to the caller
FAILURES = (StorageError, ValidationError)


class RecordRepository(Generic[RecordT, DraftT, PatchT]):
    """
    Client-side synchronization unit for one table.

    Args:
        store: The remote ledger store
        owner: Authenticated principal whose rows are mirrored
        table: Store table name
        record_model: Model that store rows validate into
        timeout: Seconds to wait for each store call
                 (defaults to LEDGER_REQUEST_TIMEOUT_SECONDS)
        audit_logger: Where outcomes are recorded (local-only if omitted)
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        owner: str,
        table: str,
        record_model: type[RecordT],
        *,
        timeout: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if not owner:
            raise ValueError("owner is required")

        self._store = store
        self._owner = owner
        self._table = table
        self._record_model = record_model
        self._timeout = (
            timeout
            if timeout is not None
            else get_settings().ledger.request_timeout_seconds
        )
        self._audit = audit_logger or AuditLogger()

        self._records: list[RecordT] = []
        self._error: Optional[str] = None
        self._loaded = False
        self._fetches_in_flight = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[RecordT, ...]:
        """Immutable snapshot of the cache."""
        return tuple(self._records)

    @property
    def loading(self) -> bool:
        return self._fetches_in_flight > 0

    @property
    def error(self) -> Optional[str]:
        """Failure message of the last operation, or None if it succeeded."""
        return self._error

    @property
    def loaded(self) -> bool:
        """Whether a fetch has succeeded for the current owner."""
        return self._loaded

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def table(self) -> str:
        return self._table

    def get(self, record_id: RecordId) -> Optional[RecordT]:
        record_id = self._coerce_id(record_id)
        if record_id is None:
            return None
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_id(record_id: RecordId) -> Optional[UUID]:
        """The id as a UUID, or None when it cannot name any stored row."""
        if isinstance(record_id, UUID):
            return record_id
        try:
            return UUID(str(record_id))
        except ValueError:
            return None

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        """Await a store call, converting an expired timeout to StoreTimeoutError."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise StoreTimeoutError(
                f"{self._table}: store did not respond within {self._timeout:g}s"
            )

    def _to_record(self, row: Row, owner: str) -> RecordT:
        record = self._record_model.model_validate(row)
        if record.owner != owner:
            raise StorageError(
                f"{self._table}: store returned a row belonging to another owner"
            )
        return record

    async def _mutation_failed(
        self,
        operation: str,
        error: Exception,
        record_id: Optional[UUID] = None,
    ) -> None:
        self._error = str(error)
        await self._audit.log_mutation_failed(
            self._table, self._owner, operation, self._error, record_id
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list(self) -> tuple[RecordT, ...]:
        """
        Replace the cache with the owner's rows, newest date first.

        Never raises for store failures: the error is recorded and the
        previous cache is kept (empty if nothing was ever loaded).
        """
        owner = self._owner
        self._fetches_in_flight += 1
        try:
            rows = await self._call(self._store.select_rows(self._table, owner))
            records = [self._to_record(row, owner) for row in rows]
        except FAILURES as e:
            if owner == self._owner:
                self._error = str(e)
                await self._audit.log_fetch_failed(self._table, owner, self._error)
            return self.records
        finally:
            self._fetches_in_flight -= 1

        # The principal changed while this fetch was in flight
        if owner != self._owner:
            return self.records

        self._records = records
        self._error = None
        self._loaded = True
        await self._audit.log_records_fetched(self._table, owner, len(records))
        return self.records

    async def refresh(self) -> tuple[RecordT, ...]:
        return await self.list()

    async def add(self, draft: DraftT) -> RecordT:
        """
        Create a record owned by the current principal.

        Returns:
            The record as stored

        Raises:
            StorageError: If the store rejects or times out
        """
        owner = self._owner
        try:
            row = await self._call(
                self._store.insert_row(self._table, owner, draft.to_row())
            )
            record = self._to_record(row, owner)
        except FAILURES as e:
            await self._mutation_failed("add", e)
            raise

        if owner == self._owner:
            self._records.insert(0, record)
            self._error = None
            await self._audit.log_record_created(self._table, owner, record.id)
        return record

    async def update(self, record_id: RecordId, patch: PatchT) -> RecordT:
        """
        Apply a partial update and take the store's row as the new version.

        Raises:
            ValueError: If the patch sets no fields (nothing is sent)
            NotFoundError: If the record does not exist for this owner
                (including ids that are not valid record ids)
            StorageError: If the store rejects or times out
        """
        if patch.is_empty:
            raise ValueError("Patch does not set any fields")

        raw_id = record_id
        record_id = self._coerce_id(record_id)
        owner = self._owner
        if record_id is None:
            error = NotFoundError(f"No record {raw_id!r} in {self._table}")
            await self._mutation_failed("update", error)
            raise error
        fields = patch.to_row()
        try:
            row = await self._call(
                self._store.update_row(self._table, record_id, owner, fields)
            )
            record = self._to_record(row, owner)
        except FAILURES as e:
            await self._mutation_failed("update", e, record_id)
            raise

        if owner == self._owner:
            self._records = [
                record if cached.id == record_id else cached
                for cached in self._records
            ]
            self._error = None
            await self._audit.log_record_updated(
                self._table, owner, record_id, sorted(patch.model_fields_set)
            )
        return record

    async def remove(self, record_id: RecordId) -> None:
        """
        Delete a record. Removing a record that is already gone is a no-op,
        and so is removing an id that cannot name any record.

        Raises:
            StorageError: If the store rejects or times out
        """
        record_id = self._coerce_id(record_id)
        if record_id is None:
            return
        owner = self._owner
        try:
            await self._call(self._store.delete_row(self._table, record_id, owner))
        except FAILURES as e:
            await self._mutation_failed("remove", e, record_id)
            raise

        if owner == self._owner:
            self._records = [r for r in self._records if r.id != record_id]
            self._error = None
            await self._audit.log_record_deleted(self._table, owner, record_id)

    async def set_owner(self, owner: str) -> tuple[RecordT, ...]:
        """
        Switch to another principal and fetch their rows.

        The previous principal's rows are dropped before the fetch, so
        they are never visible under the new owner, even if it fails.
        """
        if not owner:
            raise ValueError("owner is required")
        if owner == self._owner:
            return self.records

        previous = self._owner
        self._owner = owner
        self._records = []
        self._error = None
        self._loaded = False
        await self._audit.log_principal_changed(self._table, previous, owner)
        return await self.list()
