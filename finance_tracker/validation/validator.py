"""
Form Validation

DESIGN DECISION: Validation happens before a ledger is called.
Ledgers trust the drafts and patches they receive; this module turns
raw form input into them, or explains why it can't.

STAGE 1 - FIELD VALIDATION:
- Required field presence
- Parsing (amounts, dates, enumerations)
- Non-negative amounts, non-empty text

STAGE 2 - SEMANTIC CHECKS (warnings only):
- Dates in the future
- Unusually large amounts
- Due date before the transaction date

IMPORTANT: Validation NEVER silently fixes issues. An amount with
more than two decimals is an error, not a rounding.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from pydantic import ValidationError

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.records import (
    Direction,
    ExpenseCategory,
    ExpenseDraft,
    ExpensePatch,
    LedgerEntryDraft,
    LedgerEntryPatch,
    RecordStatus,
)
from finance_tracker.models.validation import ValidationIssue, ValidationResult


EXPENSE_FIELDS = ("category", "amount", "date", "description")
LEDGER_ENTRY_FIELDS = ("counterparty", "amount", "direction", "date", "description")

# Sentinel for "field not submitted" in patch validation
_MISSING = object()


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _warning(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=fix,
    )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RecordValidator:
    """
    Validates expense and lend/borrow form input.

    Every validate_* method returns a ValidationResult. When it has no
    errors, result.payload is the draft or patch to pass to the ledger.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app
        self._parsers: dict[str, Callable[[str, Any, list[ValidationIssue]], Any]] = {
            "category": self._parse_category,
            "amount": self._parse_amount,
            "date": self._parse_date,
            "due_date": self._parse_date,
            "description": self._parse_text,
            "counterparty": self._parse_text,
            "direction": self._parse_direction,
            "status": self._parse_status,
        }

    # ------------------------------------------------------------------
    # Field parsers. Each returns the parsed value or None after
    # appending an error.
    # ------------------------------------------------------------------

    def _parse_category(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[ExpenseCategory]:
        try:
            return ExpenseCategory(value)
        except ValueError:
            allowed = ", ".join(c.value for c in ExpenseCategory)
            issues.append(_error(
                field, "invalid_value",
                f"Unknown category: {value}",
                f"Choose one of: {allowed}",
            ))
            return None

    def _parse_amount(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[Decimal]:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            issues.append(_error(
                field, "invalid_format",
                f"Amount must be a number, got {value!r}",
            ))
            return None

        if not amount.is_finite():
            issues.append(_error(field, "invalid_format", "Amount must be a finite number"))
            return None
        if amount < 0:
            issues.append(_error(
                field, "invalid_value",
                "Amount cannot be negative",
                "Record the other direction instead of a negative amount",
            ))
            return None
        if amount.as_tuple().exponent < -2:
            issues.append(_error(
                field, "invalid_format",
                "Amount can have at most two decimal places",
            ))
            return None
        return amount

    def _parse_date(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[dt.date]:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        try:
            return dt.date.fromisoformat(str(value).strip())
        except ValueError:
            issues.append(_error(
                field, "invalid_format",
                f"Date must be in YYYY-MM-DD format, got {value!r}",
            ))
            return None

    def _parse_text(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[str]:
        text = str(value).strip()
        if not text:
            issues.append(_error(field, "missing", f"{field.replace('_', ' ').capitalize()} is required"))
            return None
        return text

    def _parse_direction(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[Direction]:
        try:
            return Direction(value)
        except ValueError:
            issues.append(_error(
                field, "invalid_value",
                f"Type must be 'lent' or 'borrowed', got {value!r}",
            ))
            return None

    def _parse_status(self, field: str, value: Any, issues: list[ValidationIssue]) -> Optional[RecordStatus]:
        try:
            return RecordStatus(value)
        except ValueError:
            issues.append(_error(
                field, "invalid_value",
                f"Status must be 'pending' or 'completed', got {value!r}",
            ))
            return None

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _parse_fields(
        self,
        submitted: dict[str, Any],
        required: tuple[str, ...],
        issues: list[ValidationIssue],
    ) -> dict[str, Any]:
        """
        Stage 1: parse every submitted field.

        Blank optional fields (due_date) parse to None. Blank required
        fields are reported as missing.
        """
        parsed = {}
        for field, value in submitted.items():
            if value is _MISSING:
                continue
            if _is_blank(value):
                if field in required:
                    issues.append(_error(
                        field, "missing",
                        f"{field.replace('_', ' ').capitalize()} is required",
                    ))
                else:
                    parsed[field] = None
                continue
            result = self._parsers[field](field, value, issues)
            if result is not None:
                parsed[field] = result
        return parsed

    def _check_semantics(self, parsed: dict[str, Any], issues: list[ValidationIssue]) -> None:
        """Stage 2: warnings about values that parse but look wrong."""
        today = dt.date.today()
        max_future_date = today + dt.timedelta(days=self._settings.future_date_tolerance_days)

        record_date = parsed.get("date")
        if record_date and record_date > max_future_date:
            issues.append(_warning(
                "date", "future_date",
                f"Date ({record_date}) is in the future",
                "Please verify the date is correct",
            ))

        amount = parsed.get("amount")
        max_amount = Decimal(str(self._settings.max_amount))
        if amount is not None and amount > max_amount:
            issues.append(_warning(
                "amount", "suspicious_value",
                f"Amount ({self._settings.currency_symbol}{amount:,.2f}) seems unusually high",
                "Please verify this amount is correct",
            ))
        if amount is not None and amount == 0:
            issues.append(_warning("amount", "suspicious_value", "Amount is zero"))

        due_date = parsed.get("due_date")
        if due_date and record_date and due_date < record_date:
            issues.append(_warning(
                "due_date", "inconsistent",
                "Due date is before the transaction date",
                "Please verify both dates",
            ))

    def _build(self, model: type, parsed: dict[str, Any], issues: list[ValidationIssue]) -> ValidationResult:
        if any(issue.severity == "error" for issue in issues):
            return ValidationResult(issues=issues)
        try:
            payload = model(**parsed)
        except ValidationError as e:
            for err in e.errors():
                field = str(err["loc"][0]) if err["loc"] else "form"
                issues.append(_error(field, "invalid_value", err["msg"]))
            return ValidationResult(issues=issues)
        return ValidationResult(issues=issues, payload=payload)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_expense(
        self,
        category: Any,
        amount: Any,
        date: Any,
        description: Any,
    ) -> ValidationResult:
        """Validate an add-expense form. The payload is an ExpenseDraft."""
        issues: list[ValidationIssue] = []
        submitted = {
            "category": category,
            "amount": amount,
            "date": date,
            "description": description,
        }
        parsed = self._parse_fields(submitted, EXPENSE_FIELDS, issues)
        self._check_semantics(parsed, issues)
        return self._build(ExpenseDraft, parsed, issues)

    def validate_expense_patch(
        self,
        category: Any = _MISSING,
        amount: Any = _MISSING,
        date: Any = _MISSING,
        description: Any = _MISSING,
    ) -> ValidationResult:
        """Validate an edit-expense form. Only submitted fields are checked."""
        issues: list[ValidationIssue] = []
        submitted = {
            "category": category,
            "amount": amount,
            "date": date,
            "description": description,
        }
        parsed = self._parse_fields(submitted, EXPENSE_FIELDS, issues)
        self._check_semantics(parsed, issues)
        if not parsed and not issues:
            issues.append(_error("form", "empty", "Nothing to update"))
        return self._build(ExpensePatch, parsed, issues)

    def validate_ledger_entry(
        self,
        counterparty: Any,
        amount: Any,
        direction: Any,
        date: Any,
        description: Any,
        due_date: Any = None,
    ) -> ValidationResult:
        """
        Validate an add-record form. The payload is a LedgerEntryDraft
        with status pending.
        """
        issues: list[ValidationIssue] = []
        submitted = {
            "counterparty": counterparty,
            "amount": amount,
            "direction": direction,
            "date": date,
            "due_date": due_date,
            "description": description,
        }
        parsed = self._parse_fields(submitted, LEDGER_ENTRY_FIELDS, issues)
        self._check_semantics(parsed, issues)
        return self._build(LedgerEntryDraft, parsed, issues)

    def validate_ledger_entry_patch(
        self,
        counterparty: Any = _MISSING,
        amount: Any = _MISSING,
        direction: Any = _MISSING,
        date: Any = _MISSING,
        description: Any = _MISSING,
        due_date: Any = _MISSING,
        status: Any = _MISSING,
    ) -> ValidationResult:
        """
        Validate an edit-record form.

        A blank due_date clears it; other blank fields are errors.
        """
        issues: list[ValidationIssue] = []
        submitted = {
            "counterparty": counterparty,
            "amount": amount,
            "direction": direction,
            "date": date,
            "due_date": due_date,
            "description": description,
            "status": status,
        }
        parsed = self._parse_fields(
            submitted, LEDGER_ENTRY_FIELDS + ("status",), issues
        )
        self._check_semantics(parsed, issues)
        if not parsed and not issues:
            issues.append(_error("form", "empty", "Nothing to update"))
        return self._build(LedgerEntryPatch, parsed, issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the form shows next to the submit button.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.is_valid:
            lines.append("")
            lines.append("You can still save, but please review carefully.")

        return "\n".join(lines)
