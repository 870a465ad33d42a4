"""
Tests for RecordRepository, exercised through ExpenseLedger and
LendBorrowLedger against in-memory stores.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_tracker.ledgers import ExpenseLedger
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.records import (
    Expense,
    ExpensePatch,
    LedgerEntryPatch,
)
from finance_tracker.services.storage import NotFoundError, StorageError, StoreTimeoutError

from factories import OTHER_OWNER, OWNER, TIMEOUT, entry_draft, expense_draft
from stores import (
    DelayedUpdateStore,
    EditingLedgerStore,
    HangingLedgerStore,
    LeakyLedgerStore,
)


def ledger_for(store, owner=OWNER, timeout=TIMEOUT, audit_logger=None):
    return ExpenseLedger(
        store, owner, table="expenses", timeout=timeout, audit_logger=audit_logger
    )


class TestList:
    """list() replaces the cache with the owner's rows."""

    async def test_orders_by_date_descending_with_ties_in_store_order(self, store, expense_ledger):
        writer = ledger_for(store)
        await writer.add(expense_draft(on=date(2024, 1, 10), description="first"))
        await writer.add(expense_draft(on=date(2024, 3, 1), description="newest"))
        await writer.add(expense_draft(on=date(2024, 1, 10), description="second"))

        records = await expense_ledger.list()

        assert [r.description for r in records] == ["newest", "first", "second"]
        assert expense_ledger.loaded is True
        assert expense_ledger.error is None

    async def test_replaces_previous_cache_wholesale(self, store, expense_ledger):
        await expense_ledger.add(expense_draft(description="kept"))
        other = ledger_for(store)
        await other.list()
        await other.remove(other.records[0].id)

        assert await expense_ledger.list() == ()

    async def test_loading_is_true_only_while_fetching(self, gated_store):
        ledger = ledger_for(gated_store)
        assert ledger.loading is False

        task = asyncio.create_task(ledger.list())
        await asyncio.sleep(0)
        assert ledger.loading is True

        gated_store.gate.set()
        await task
        assert ledger.loading is False

    async def test_first_load_failure_leaves_cache_empty(self, failing_store):
        failing_store.fail_selects = True
        ledger = ledger_for(failing_store)

        records = await ledger.list()

        assert records == ()
        assert ledger.loaded is False
        assert "store unavailable" in ledger.error
        assert ledger.loading is False

    async def test_later_failure_keeps_last_good_cache(self, failing_store):
        ledger = ledger_for(failing_store)
        await ledger.add(expense_draft(description="Groceries"))
        await ledger.list()
        before = ledger.records

        failing_store.fail_selects = True
        records = await ledger.list()

        assert records == before
        assert ledger.error == "select failed: store unavailable"

    async def test_success_clears_previous_error(self, failing_store):
        ledger = ledger_for(failing_store)
        failing_store.fail_selects = True
        await ledger.list()
        assert ledger.error is not None

        failing_store.fail_selects = False
        await ledger.list()
        assert ledger.error is None

    async def test_rows_of_another_owner_are_a_fetch_failure(self, clock):
        store = LeakyLedgerStore(clock=clock)
        await store.insert_row("expenses", OTHER_OWNER, expense_draft().to_row())
        ledger = ledger_for(store)

        records = await ledger.list()

        assert records == ()
        assert "another owner" in ledger.error


class TestAdd:
    """add() prepends the stored row."""

    async def test_prepends_without_resorting(self, expense_ledger):
        await expense_ledger.add(expense_draft(on=date(2024, 3, 2), description="recent"))
        added = await expense_ledger.add(
            expense_draft(on=date(2023, 12, 31), description="older")
        )

        assert expense_ledger.records[0] == added
        assert [r.description for r in expense_ledger.records] == ["older", "recent"]

        await expense_ledger.list()
        assert [r.description for r in expense_ledger.records] == ["recent", "older"]

    async def test_returns_store_assigned_fields(self, expense_ledger):
        added = await expense_ledger.add(expense_draft(amount="12.50"))

        assert added.owner == OWNER
        assert added.id is not None
        assert added.created_at == added.updated_at
        assert added.amount == Decimal("12.50")

    async def test_identical_drafts_create_distinct_records(self, expense_ledger):
        draft = expense_draft()

        first = await expense_ledger.add(draft)
        assert len(expense_ledger.records) == 1
        second = await expense_ledger.add(draft)
        assert len(expense_ledger.records) == 2

        assert first.id != second.id

    async def test_lend_borrow_record_starts_pending(self, lend_ledger):
        added = await lend_ledger.add(entry_draft(due_date=date(2024, 4, 1)))

        assert added.status.value == "pending"
        assert added.due_date == date(2024, 4, 1)
        assert added.counterparty == "Asha"


class TestUpdate:
    """update() takes the store's row as the new version."""

    async def test_cache_takes_store_version(self, clock):
        store = EditingLedgerStore(clock=clock)
        ledger = ledger_for(store)
        original = await ledger.add(expense_draft(amount="10", description="Taxi"))

        updated = await ledger.update(original.id, ExpensePatch(amount=Decimal("50")))

        cached = ledger.get(original.id)
        assert cached == updated
        assert cached.amount == Decimal("50")
        # Set by the store, not sent in the patch
        assert cached.description == "Taxi (edited)"
        assert cached.updated_at > original.updated_at
        assert cached.created_at == original.created_at

        stored_rows = await store.select_rows("expenses", OWNER)
        assert cached == Expense.model_validate(stored_rows[0])

    async def test_only_the_matching_record_changes(self, expense_ledger):
        keep = await expense_ledger.add(expense_draft(description="keep"))
        change = await expense_ledger.add(expense_draft(description="change"))

        await expense_ledger.update(change.id, ExpensePatch(description="changed"))

        assert expense_ledger.get(keep.id) == keep
        assert expense_ledger.get(change.id).description == "changed"
        assert len(expense_ledger.records) == 2

    async def test_accepts_string_ids(self, expense_ledger):
        added = await expense_ledger.add(expense_draft())

        updated = await expense_ledger.update(str(added.id), ExpensePatch(amount=Decimal("1")))

        assert updated.id == added.id

    async def test_unknown_id_raises_not_found(self, expense_ledger):
        await expense_ledger.add(expense_draft())
        before = expense_ledger.records

        with pytest.raises(NotFoundError):
            await expense_ledger.update(uuid4(), ExpensePatch(amount=Decimal("1")))

        assert expense_ledger.records == before
        assert expense_ledger.error is not None

    async def test_malformed_id_is_not_found(self, store, audit_logger, audit_storage):
        ledger = ledger_for(store, audit_logger=audit_logger)
        await ledger.add(expense_draft())
        before = ledger.records

        with pytest.raises(NotFoundError):
            await ledger.update("abc", ExpensePatch(amount=Decimal("1")))

        assert ledger.records == before
        assert ledger.error == "No record 'abc' in expenses"
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.MUTATION_FAILED
        assert events[0].details == {"operation": "update"}

    async def test_cannot_update_another_owners_record(self, store):
        other = ledger_for(store, owner=OTHER_OWNER)
        foreign = await other.add(expense_draft(description="not yours"))
        ledger = ledger_for(store)

        with pytest.raises(NotFoundError):
            await ledger.update(foreign.id, ExpensePatch(description="mine now"))

        rows = await store.select_rows("expenses", OTHER_OWNER)
        assert rows[0]["description"] == "not yours"

    async def test_empty_patch_is_rejected_before_store_call(self, expense_ledger):
        added = await expense_ledger.add(expense_draft())

        with pytest.raises(ValueError, match="does not set any fields"):
            await expense_ledger.update(added.id, ExpensePatch())

        assert expense_ledger.error is None

    async def test_clearing_due_date(self, lend_ledger):
        added = await lend_ledger.add(entry_draft(due_date=date(2024, 4, 1)))

        updated = await lend_ledger.update(added.id, LedgerEntryPatch(due_date=None))

        assert updated.due_date is None

    async def test_last_response_wins(self, clock):
        store = DelayedUpdateStore(clock=clock)
        ledger = ledger_for(store)
        added = await ledger.add(expense_draft(amount="1"))
        # The first call resolves last
        store.update_delays = [0.05, 0]

        await asyncio.gather(
            ledger.update(added.id, ExpensePatch(amount=Decimal("10"))),
            ledger.update(added.id, ExpensePatch(amount=Decimal("20"))),
        )

        assert ledger.get(added.id).amount == Decimal("10")


class TestRemove:
    """remove() drops exactly one record."""

    async def test_removes_exactly_one(self, expense_ledger):
        first = await expense_ledger.add(expense_draft(description="a"))
        second = await expense_ledger.add(expense_draft(description="b"))

        await expense_ledger.remove(first.id)

        assert len(expense_ledger.records) == 1
        assert expense_ledger.get(first.id) is None
        assert expense_ledger.get(second.id) == second

    async def test_get_with_malformed_id_is_none(self, expense_ledger):
        await expense_ledger.add(expense_draft())

        assert expense_ledger.get("abc") is None
        assert expense_ledger.get("") is None

    async def test_removing_again_is_a_no_op(self, expense_ledger):
        added = await expense_ledger.add(expense_draft(description="a"))
        await expense_ledger.add(expense_draft(description="b"))
        await expense_ledger.remove(added.id)
        before = expense_ledger.records

        await expense_ledger.remove(added.id)

        assert expense_ledger.records == before
        assert expense_ledger.error is None

    async def test_removing_malformed_id_is_a_no_op(self, expense_ledger):
        await expense_ledger.add(expense_draft())
        before = expense_ledger.records

        await expense_ledger.remove("abc")

        assert expense_ledger.records == before
        assert expense_ledger.error is None

    async def test_cannot_remove_another_owners_record(self, store):
        other = ledger_for(store, owner=OTHER_OWNER)
        foreign = await other.add(expense_draft())

        await ledger_for(store).remove(foreign.id)

        assert len(await store.select_rows("expenses", OTHER_OWNER)) == 1


class TestFailures:
    """A failed mutation leaves the cache exactly as it was."""

    @pytest.fixture
    async def seeded(self, failing_store):
        ledger = ledger_for(failing_store)
        await ledger.add(expense_draft(description="a"))
        await ledger.add(expense_draft(description="b"))
        failing_store.fail_mutations = True
        return ledger

    async def test_failed_add(self, seeded):
        before = seeded.records

        with pytest.raises(StorageError):
            await seeded.add(expense_draft(description="c"))

        assert seeded.records == before
        assert seeded.error == "insert failed: store unavailable"

    async def test_failed_update(self, seeded):
        before = seeded.records

        with pytest.raises(StorageError):
            await seeded.update(before[0].id, ExpensePatch(amount=Decimal("99")))

        assert seeded.records == before
        assert seeded.error == "update failed: store unavailable"

    async def test_failed_remove(self, seeded):
        before = seeded.records

        with pytest.raises(StorageError):
            await seeded.remove(before[0].id)

        assert seeded.records == before
        assert seeded.error == "delete failed: store unavailable"

    async def test_failure_is_audited(self, failing_store, audit_logger, audit_storage):
        ledger = ledger_for(failing_store, audit_logger=audit_logger)
        failing_store.fail_mutations = True

        with pytest.raises(StorageError):
            await ledger.add(expense_draft())

        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.MUTATION_FAILED
        assert events[0].details == {"operation": "add"}


class TestTimeout:
    """A store that never answers becomes a StoreTimeoutError."""

    async def test_list_times_out_into_error(self):
        ledger = ledger_for(HangingLedgerStore(), timeout=0.05)

        records = await ledger.list()

        assert records == ()
        assert "did not respond" in ledger.error
        assert ledger.loading is False

    async def test_mutations_time_out_and_raise(self):
        ledger = ledger_for(HangingLedgerStore(), timeout=0.05)

        with pytest.raises(StoreTimeoutError):
            await ledger.add(expense_draft())
        with pytest.raises(StoreTimeoutError):
            await ledger.update(uuid4(), ExpensePatch(amount=Decimal("1")))
        with pytest.raises(StoreTimeoutError):
            await ledger.remove(uuid4())

        assert ledger.records == ()


class TestOwnerIsolation:
    """The cache only ever holds the current owner's records."""

    async def test_list_only_returns_own_rows(self, store):
        await ledger_for(store, owner=OTHER_OWNER).add(expense_draft(description="theirs"))
        mine = ledger_for(store)
        await mine.add(expense_draft(description="mine"))

        records = await mine.list()

        assert [r.description for r in records] == ["mine"]
        assert all(r.owner == OWNER for r in records)

    async def test_switching_owner_never_shows_previous_rows(self, store, expense_ledger):
        await expense_ledger.add(expense_draft(description="a's"))
        await ledger_for(store, owner=OTHER_OWNER).add(expense_draft(description="b's"))

        records = await expense_ledger.set_owner(OTHER_OWNER)

        assert expense_ledger.owner == OTHER_OWNER
        assert [r.description for r in records] == ["b's"]
        assert all(r.owner == OTHER_OWNER for r in expense_ledger.records)

    async def test_switch_with_failing_fetch_starts_empty(self, failing_store):
        ledger = ledger_for(failing_store)
        await ledger.add(expense_draft())
        failing_store.fail_selects = True

        await ledger.set_owner(OTHER_OWNER)

        assert ledger.records == ()
        assert ledger.loaded is False
        assert ledger.error is not None

    async def test_same_owner_does_not_refetch(self, failing_store):
        ledger = ledger_for(failing_store)
        await ledger.add(expense_draft())
        failing_store.fail_selects = True

        await ledger.set_owner(OWNER)

        assert len(ledger.records) == 1
        assert ledger.error is None

    async def test_fetch_for_previous_owner_is_discarded(self, gated_store):
        await gated_store.insert_row("expenses", OWNER, expense_draft(description="a's").to_row())
        await gated_store.insert_row(
            "expenses", OTHER_OWNER, expense_draft(description="b's").to_row()
        )
        ledger = ledger_for(gated_store)

        stale = asyncio.create_task(ledger.list())
        await asyncio.sleep(0)
        switch = asyncio.create_task(ledger.set_owner(OTHER_OWNER))
        await asyncio.sleep(0)
        gated_store.gate.set()
        await asyncio.gather(stale, switch)

        assert [r.description for r in ledger.records] == ["b's"]
        assert ledger.loading is False

    async def test_empty_owner_is_rejected(self, store):
        with pytest.raises(ValueError):
            ledger_for(store, owner="")

    async def test_ledgers_do_not_share_state(self, store):
        first = ledger_for(store)
        second = ledger_for(store)

        await first.add(expense_draft())

        assert len(first.records) == 1
        assert second.records == ()


class TestAudit:
    """Successful operations are recorded in the audit log."""

    async def test_operations_are_recorded_in_order(self, expense_ledger, audit_storage):
        added = await expense_ledger.add(expense_draft())
        await expense_ledger.update(added.id, ExpensePatch(description="Dinner"))
        await expense_ledger.remove(added.id)
        await expense_ledger.list()

        events = await audit_storage.get_recent_events()
        assert [e.event_type for e in reversed(events)] == [
            AuditEventType.RECORD_CREATED,
            AuditEventType.RECORD_UPDATED,
            AuditEventType.RECORD_DELETED,
            AuditEventType.RECORDS_FETCHED,
        ]
        assert all(e.owner == OWNER for e in events)

    async def test_status_change_is_its_own_event(self, lend_ledger, audit_storage):
        added = await lend_ledger.add(entry_draft())

        await lend_ledger.set_status(added.id, "completed")

        events = await audit_storage.get_recent_events(limit=1)
        assert events[0].event_type == AuditEventType.STATUS_CHANGED
