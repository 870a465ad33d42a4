"""
Shared fixtures.

Every test runs against InMemoryLedgerStore (or a stub from stores.py
that fails, stalls or misbehaves on purpose). No test talks to a real
backend.
"""

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.ledgers import ExpenseLedger, LendBorrowLedger
from finance_tracker.services.storage import InMemoryAuditStorage, InMemoryLedgerStore

from factories import OWNER, TIMEOUT, TickingClock
from stores import FailingLedgerStore, GatedLedgerStore


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(clock):
    return InMemoryLedgerStore(clock=clock)


@pytest.fixture
def failing_store(clock):
    return FailingLedgerStore(clock=clock)


@pytest.fixture
def gated_store(clock):
    return GatedLedgerStore(clock=clock)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def expense_ledger(store, audit_logger):
    return ExpenseLedger(
        store, OWNER, table="expenses", timeout=TIMEOUT, audit_logger=audit_logger
    )


@pytest.fixture
def lend_ledger(store, audit_logger):
    return LendBorrowLedger(
        store,
        OWNER,
        table="lend_borrow_records",
        timeout=TIMEOUT,
        audit_logger=audit_logger,
    )
