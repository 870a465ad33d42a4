"""
Aggregation Engine

DESIGN DECISION: Aggregates are pure functions of a snapshot.
They take the tuples a ledger exposes, never the ledger itself, so
the same snapshot always yields the same numbers and nothing here can
touch a cache.

Every function accepts an empty input and returns zero or an empty
mapping. Amounts are summed as Decimal.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_tracker.models.records import (
    Direction,
    Expense,
    ExpenseCategory,
    LedgerEntry,
    RecordStatus,
)
from finance_tracker.models.summary import DashboardSummary


ZERO = Decimal("0")


def total_expenses(expenses: Iterable[Expense]) -> Decimal:
    """Sum of every expense amount."""
    return sum((expense.amount for expense in expenses), ZERO)


def total_by_direction(
    entries: Iterable[LedgerEntry],
    direction: Direction,
    status: Optional[RecordStatus] = None,
) -> Decimal:
    """Sum of amounts in one direction, optionally limited to one status."""
    direction = Direction(direction)
    status = RecordStatus(status) if status is not None else None
    return sum(
        (
            entry.amount
            for entry in entries
            if entry.direction == direction
            and (status is None or entry.status == status)
        ),
        ZERO,
    )


def pending_count(entries: Iterable[LedgerEntry]) -> int:
    """Number of pending records, lent and borrowed together."""
    return sum(1 for entry in entries if entry.status == RecordStatus.PENDING)


def by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """
    Per-category totals in a single pass.

    Categories appear in the order they are first seen, not sorted.
    """
    totals: dict[ExpenseCategory, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return totals


def by_date(expenses: Iterable[Expense]) -> dict[dt.date, Decimal]:
    """Per-date totals, oldest date first."""
    totals: dict[dt.date, Decimal] = {}
    for expense in expenses:
        totals[expense.date] = totals.get(expense.date, ZERO) + expense.amount
    return dict(sorted(totals.items()))


def net_balance(entries: Sequence[LedgerEntry]) -> Decimal:
    """
    Pending lent minus pending borrowed.

    Positive means others owe the owner; completed records are ignored.
    """
    return (
        total_by_direction(entries, Direction.LENT, RecordStatus.PENDING)
        - total_by_direction(entries, Direction.BORROWED, RecordStatus.PENDING)
    )


def pending_total(entries: Sequence[LedgerEntry]) -> Decimal:
    """Pending lent plus pending borrowed (money still to be settled)."""
    return (
        total_by_direction(entries, Direction.LENT, RecordStatus.PENDING)
        + total_by_direction(entries, Direction.BORROWED, RecordStatus.PENDING)
    )


def direction_totals(entries: Sequence[LedgerEntry]) -> dict[Direction, Decimal]:
    """Lent and borrowed totals across every status."""
    return {
        direction: total_by_direction(entries, direction)
        for direction in (Direction.LENT, Direction.BORROWED)
    }


def filter_expenses(
    expenses: Iterable[Expense],
    search: str = "",
    category: Optional[ExpenseCategory] = None,
) -> list[Expense]:
    """
    Expenses matching a search term and an optional category.

    The term matches case-insensitively against description and
    category name. Order is preserved.
    """
    term = search.strip().lower()
    category = ExpenseCategory(category) if category else None
    return [
        expense
        for expense in expenses
        if (
            not term
            or term in expense.description.lower()
            or term in expense.category.value.lower()
        )
        and (category is None or expense.category == category)
    ]


def filter_by_direction(
    entries: Iterable[LedgerEntry],
    direction: Optional[Direction] = None,
) -> list[LedgerEntry]:
    """Entries in one direction, or all of them when direction is None."""
    if direction is None:
        return list(entries)
    direction = Direction(direction)
    return [entry for entry in entries if entry.direction == direction]


def summarize(
    expenses: Sequence[Expense],
    entries: Sequence[LedgerEntry],
) -> DashboardSummary:
    """Compute every dashboard aggregate from two snapshots."""
    all_time = direction_totals(entries)
    return DashboardSummary(
        total_expenses=total_expenses(expenses),
        total_lent=total_by_direction(entries, Direction.LENT, RecordStatus.PENDING),
        total_borrowed=total_by_direction(
            entries, Direction.BORROWED, RecordStatus.PENDING
        ),
        pending_total=pending_total(entries),
        pending_count=pending_count(entries),
        net_balance=net_balance(entries),
        all_time_lent=all_time[Direction.LENT],
        all_time_borrowed=all_time[Direction.BORROWED],
        by_category=by_category(expenses),
        by_date=by_date(expenses),
    )
