"""Aggregation package: pure functions over ledger snapshots."""

from finance_tracker.aggregation.engine import (
    by_category,
    by_date,
    direction_totals,
    filter_by_direction,
    filter_expenses,
    net_balance,
    pending_count,
    pending_total,
    summarize,
    total_by_direction,
    total_expenses,
)

__all__ = [
    "by_category",
    "by_date",
    "direction_totals",
    "filter_by_direction",
    "filter_expenses",
    "net_balance",
    "pending_count",
    "pending_total",
    "summarize",
    "total_by_direction",
    "total_expenses",
]
