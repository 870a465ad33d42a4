"""
Configuration Management for Finance Tracker

Every value comes from the environment (or .env) through pydantic-settings.

DESIGN DECISION: All configuration is centralized here.
Ledgers and stores receive their settings from these objects
rather than reading the environment themselves.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger synchronization configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=300,
        description="Maximum time to wait for a single store call"
    )
    expenses_table: str = Field(
        default="expenses",
        min_length=1,
        description="Name of the expenses table"
    )
    lend_borrow_table: str = Field(
        default="lend_borrow_records",
        min_length=1,
        description="Name of the lend/borrow records table"
    )


class GoogleSheetsSettings(BaseSettings):
    """Where the hosted ledger and audit worksheets live."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn when the credentials file is missing. It may be mounted after startup."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Display and form-validation settings.

    Read from the environment and the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Symbol used when formatting amounts"
    )

    # Validation thresholds
    max_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amount above which a record is flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a record date can be"
    )


class Settings(BaseSettings):
    """
    Entry point to every settings section.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Google Sheets
    # configuration does not prevent in-memory use.

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Report which settings sections load from the current environment.

    Returns a dict of {setting_name: is_valid}, with an
    additional "<name>_error" entry for every section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("ledger", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
