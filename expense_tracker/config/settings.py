"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each concern reads its own environment prefix so a single `.env` file
can configure the whole application.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default="data",
        description="Directory holding the persisted expense blob"
    )
    storage_key: str = Field(
        default="expenses",
        min_length=1,
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Fixed key the expense collection is stored under"
    )


class ReceiptSettings(BaseSettings):
    """Receipt attachment limits."""

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum receipt upload size in MB"
    )
    allowed_types: str = Field(
        default="image/jpeg,image/png,image/webp,image/gif,application/pdf",
        description="Comma-separated list of accepted MIME types"
    )
    max_image_dimension: int = Field(
        default=1600,
        ge=200,
        le=10000,
        description="Images larger than this (px, longest side) are downscaled"
    )

    @property
    def allowed_types_list(self) -> list[str]:
        """Get accepted MIME types as a list."""
        return [t.strip().lower() for t in self.allowed_types.split(",") if t.strip()]

    @property
    def max_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_size_mb * 1024 * 1024


class ReportSettings(BaseSettings):
    """PDF report rendering configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    title: str = Field(
        default="Expense Report",
        description="Heading printed on the first page"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol prefixed to every amount"
    )
    filename_prefix: str = Field(
        default="expense-report",
        description="Exported file is named <prefix>-<YYYY-MM-DD>.pdf"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
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
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this are flagged for review (not rejected)"
    )
    future_date_tolerance_days: int = Field(
        default=0,
        ge=0,
        description="How many days in the future an expense date can be without a warning"
    )

    # Views
    weekly_window_days: int = Field(
        default=7,
        ge=1,
        le=31,
        description="Length of the trailing daily spending window"
    )
    recent_expenses_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many recent expenses the add page shows"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, store upper case."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def receipts(self) -> ReceiptSettings:
        return ReceiptSettings()

    @property
    def report(self) -> ReportSettings:
        return ReportSettings()

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


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {section_name: is_valid}, plus
    {section_name}_error entries for the sections that failed.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    sections = {
        "storage": lambda: settings.storage,
        "receipts": lambda: settings.receipts,
        "report": lambda: settings.report,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
