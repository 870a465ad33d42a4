"""
Dashboard Summary Model

A single snapshot of every aggregate the dashboard shows, computed
from the two ledgers' caches at one point in time.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from finance_tracker.models.records import ExpenseCategory


class DashboardSummary(BaseModel):
    """
    Aggregates over one expenses snapshot and one lend/borrow snapshot.

    Lent/borrowed totals only count pending records; the
    all_time_* totals count every record regardless of status.
    """

    total_expenses: Decimal = Decimal("0")
    total_lent: Decimal = Field(
        default=Decimal("0"),
        description="Pending amount lent out"
    )
    total_borrowed: Decimal = Field(
        default=Decimal("0"),
        description="Pending amount borrowed"
    )
    pending_total: Decimal = Field(
        default=Decimal("0"),
        description="Pending lent plus pending borrowed"
    )
    pending_count: int = Field(default=0, ge=0)
    net_balance: Decimal = Decimal("0")

    all_time_lent: Decimal = Decimal("0")
    all_time_borrowed: Decimal = Decimal("0")

    # Insertion order is meaningful for both mappings
    by_category: dict[ExpenseCategory, Decimal] = Field(default_factory=dict)
    by_date: dict[dt.date, Decimal] = Field(default_factory=dict)

    def format_amount(self, amount: Decimal, currency_symbol: str = "₹") -> str:
        return f"{currency_symbol}{amount:,.2f}"
