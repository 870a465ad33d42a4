"""
Validation Result Models

Caller-side validation produces these before anything is sent to a
ledger. A result with no errors carries the draft (or patch) that is
safe to hand to the repository.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

from finance_tracker.models.records import (
    ExpenseDraft,
    ExpensePatch,
    LedgerEntryDraft,
    LedgerEntryPatch,
)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Form field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating one form submission."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Only set when there are no errors
    payload: Optional[
        Union[ExpenseDraft, LedgerEntryDraft, ExpensePatch, LedgerEntryPatch]
    ] = None

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
