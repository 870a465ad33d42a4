"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets serves as the hosted table store because:
1. Users can view their ledgers directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No server-side filtering (we filter by owner in Python, before
  anything is returned to a ledger)
- gspread is blocking, so every call runs in a worker thread

Each logical table is one worksheet whose header row holds the wire
column names. Row order in the worksheet is insertion order.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    Row,
    StorageError,
)


EXPENSE_COLUMNS = [
    "id",
    "user_id",
    "category",
    "amount",
    "date",
    "description",
    "created_at",
    "updated_at",
]

LEND_BORROW_COLUMNS = [
    "id",
    "user_id",
    "person",
    "amount",
    "type",
    "date",
    "due_date",
    "description",
    "status",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "table",
    "owner",
    "entity_id",
    "description",
    "details_json",
    "error_message",
]


def default_table_columns() -> dict[str, list[str]]:
    """Map the configured table names to their column layouts."""
    ledger = get_settings().ledger
    return {
        ledger.expenses_table: EXPENSE_COLUMNS,
        ledger.lend_borrow_table: LEND_BORROW_COLUMNS,
    }


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS)


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Args:
        client: Sheets client (created from settings if omitted)
        table_columns: Column layout per table name
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        table_columns: Optional[dict[str, list[str]]] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._table_columns = table_columns or default_table_columns()

    def _columns(self, table: str) -> list[str]:
        try:
            return self._table_columns[table]
        except KeyError:
            raise StorageError(f"Unknown table: {table}")

    def _sheet(self, table: str) -> gspread.Worksheet:
        return self._client.get_worksheet(table, self._columns(table))

    def _values_to_row(self, table: str, values: list) -> Row:
        """Convert sheet cells to a row dict. Empty cells become None."""
        row = {}
        for idx, column in enumerate(self._columns(table)):
            value = values[idx] if idx < len(values) else ""
            row[column] = value if value != "" else None
        return row

    def _row_to_values(self, table: str, row: Row) -> list[str]:
        return [
            "" if row.get(column) is None else str(row[column])
            for column in self._columns(table)
        ]

    def _data_rows(self, sheet: gspread.Worksheet) -> list[tuple[int, list]]:
        """(sheet row number, cells) for every non-empty data row."""
        all_values = sheet.get_all_values()
        # Row 1 is the header
        return [
            (idx, values)
            for idx, values in enumerate(all_values[1:], start=2)
            if values and values[0]
        ]

    def _select(self, table: str, owner: str) -> list[Row]:
        sheet = self._sheet(table)
        rows = [
            self._values_to_row(table, values)
            for _, values in self._data_rows(sheet)
        ]
        rows = [row for row in rows if row["user_id"] == owner]
        rows.sort(key=lambda r: r.get("date") or "", reverse=True)
        return rows

    def _insert(self, table: str, owner: str, fields: Row) -> Row:
        now = datetime.now(timezone.utc).isoformat()
        row = {
            **fields,
            "id": str(uuid4()),
            "user_id": owner,
            "created_at": now,
            "updated_at": now,
        }
        self._sheet(table).append_row(
            self._row_to_values(table, row),
            value_input_option="RAW",
        )
        return self._values_to_row(table, self._row_to_values(table, row))

    def _update(self, table: str, row_id: UUID, owner: str, fields: Row) -> Row:
        sheet = self._sheet(table)
        for idx, values in self._data_rows(sheet):
            row = self._values_to_row(table, values)
            if row["id"] != str(row_id) or row["user_id"] != owner:
                continue

            row.update(fields)
            row["updated_at"] = datetime.now(timezone.utc).isoformat()
            new_values = self._row_to_values(table, row)
            # One RAW write, same input mode as append_row
            sheet.update(
                range_name=f"A{idx}",
                values=[new_values],
                value_input_option="RAW",
            )
            return self._values_to_row(table, new_values)

        raise NotFoundError(f"No row {row_id} in {table} for this owner")

    def _delete(self, table: str, row_id: UUID, owner: str) -> None:
        sheet = self._sheet(table)
        for idx, values in self._data_rows(sheet):
            row = self._values_to_row(table, values)
            if row["id"] == str(row_id) and row["user_id"] == owner:
                sheet.delete_rows(idx)
                return

    async def select_rows(self, table: str, owner: str) -> list[Row]:
        try:
            return await asyncio.to_thread(self._select, table, owner)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list rows from {table}: {e}")

    async def insert_row(self, table: str, owner: str, fields: Row) -> Row:
        try:
            return await asyncio.to_thread(self._insert, table, owner, fields)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to insert row into {table}: {e}")

    async def update_row(
        self,
        table: str,
        row_id: UUID,
        owner: str,
        fields: Row,
    ) -> Row:
        try:
            return await asyncio.to_thread(self._update, table, row_id, owner, fields)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update row in {table}: {e}")

    async def delete_row(self, table: str, row_id: UUID, owner: str) -> None:
        try:
            await asyncio.to_thread(self._delete, table, row_id, owner)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete row from {table}: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            table=safe_get(4) or None,
            owner=safe_get(5) or None,
            entity_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = await asyncio.to_thread(self._client.get_audit_sheet)
        await asyncio.to_thread(
            sheet.append_row,
            event.to_sheets_row(),
            value_input_option="RAW",
        )
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            all_rows = (await asyncio.to_thread(sheet.get_all_values))[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue  # Skip malformed rows

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
