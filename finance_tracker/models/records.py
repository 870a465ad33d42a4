"""
Core Data Models for Finance Tracker

These models define the schemas for every record that crosses the
store boundary. They are designed to:
1. Enforce type safety at runtime
2. Map domain names to the store's wire column names
3. Keep identity, ownership and timestamps out of client hands

DESIGN DECISION: Three shapes per entity.
- Record: what the store returns (id, owner and timestamps included)
- Draft: what a caller may send on creation
- Patch: a partial update where every field is optional

Records use the wire names as aliases (user_id, person, type) so rows
from the store validate directly, while code uses the domain names.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Values are stored verbatim in the expenses table.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHER = "Other"


class Direction(str, Enum):
    """Which way money moved in a lend/borrow record."""
    LENT = "lent"
    BORROWED = "borrowed"


class RecordStatus(str, Enum):
    """
    Settlement status of a lend/borrow record.

    Records start PENDING. They only change through an explicit
    status update, and nothing prevents moving back to PENDING.
    """
    PENDING = "pending"
    COMPLETED = "completed"


# =============================================================================
# STORED RECORDS
# =============================================================================

class StoredRecord(BaseModel):
    """
    Fields every stored row carries.

    All of these are assigned by the store and are never sent
    by the client.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: UUID = Field(
        ...,
        description="Store-assigned unique identifier"
    )
    owner: str = Field(
        ...,
        alias="user_id",
        min_length=1,
        description="Authenticated principal that owns this record"
    )
    created_at: dt.datetime = Field(
        ...,
        description="When the store created the row"
    )
    updated_at: dt.datetime = Field(
        ...,
        description="When the store last modified the row"
    )


class Expense(StoredRecord):
    """A single logged expense."""

    category: ExpenseCategory
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount spent"
    )
    date: dt.date = Field(
        ...,
        description="When the expense occurred (not when it was logged)"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )


class LedgerEntry(StoredRecord):
    """
    A lend/borrow record.

    direction tells whether the owner lent money to the counterparty
    or borrowed it from them.
    """

    counterparty: str = Field(
        ...,
        alias="person",
        min_length=1,
        max_length=200,
        description="Person the money was lent to or borrowed from"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
    )
    direction: Direction = Field(
        ...,
        alias="type",
    )
    date: dt.date = Field(
        ...,
        description="When the money changed hands"
    )
    due_date: Optional[dt.date] = Field(
        default=None,
        description="When it should be returned, if agreed"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    status: RecordStatus = RecordStatus.PENDING


# =============================================================================
# DRAFTS - client-settable fields for creation
# =============================================================================

class _RowModel(BaseModel):
    """Base for models that are serialized into store rows."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="forbid",
    )

    def to_row(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible row using wire column names."""
        return self.model_dump(mode="json", by_alias=True)


class ExpenseDraft(_RowModel):
    """Fields a caller supplies to create an expense."""

    category: ExpenseCategory
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    date: dt.date
    description: str = Field(..., min_length=1, max_length=500)


class LedgerEntryDraft(_RowModel):
    """
    Fields a caller supplies to create a lend/borrow record.

    Status is not one of them: every new record is written as PENDING
    and only a status update can complete it.
    """

    counterparty: str = Field(..., alias="person", min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    direction: Direction = Field(..., alias="type")
    date: dt.date
    due_date: Optional[dt.date] = None
    description: str = Field(..., min_length=1, max_length=500)

    def to_row(self) -> dict[str, Any]:
        row = super().to_row()
        row["status"] = RecordStatus.PENDING.value
        return row


# =============================================================================
# PATCHES - partial updates
# =============================================================================

class _Patch(_RowModel):
    """
    Partial update payload.

    Only fields the caller explicitly set are sent. Setting a field
    to None is only allowed for fields listed in NULLABLE_FIELDS.
    """

    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode='after')
    def reject_cleared_required_fields(self) -> '_Patch':
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.NULLABLE_FIELDS:
                raise ValueError(f"{name} cannot be cleared")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ExpensePatch(_Patch):
    """Partial update for an expense."""

    category: Optional[ExpenseCategory] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)


class LedgerEntryPatch(_Patch):
    """Partial update for a lend/borrow record."""

    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"due_date"})

    counterparty: Optional[str] = Field(
        default=None, alias="person", min_length=1, max_length=200
    )
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    direction: Optional[Direction] = Field(default=None, alias="type")
    date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    status: Optional[RecordStatus] = None
