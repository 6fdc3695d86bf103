"""
Configuration Management for FinanceHub

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

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
    worksheet_rows: int = Field(
        default=1000,
        ge=10,
        description="Initial row count for newly created collection worksheets"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class CollectionSettings(BaseSettings):
    """
    Names of the per-user collections in the document store.

    The defaults match the documents written by the original web app,
    so an existing account can be read without migration.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCEHUB_COLLECTION_",
        extra="ignore"
    )

    users: str = "users"
    incomes: str = "receitas"
    expenses: str = "gastos"
    jars: str = "reservas"
    cards: str = "cartoes"
    advance_payments: str = "antecipacoes"
    config: str = "config"
    salary_document: str = "salario"
    audit: str = "auditoria"
    yield_marker_field: str = "lastYieldUpdate"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCEHUB_",
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
        description="Minimum level for the structured log"
    )
    user_id: str = Field(
        default="local",
        description="User whose documents the local app reads"
    )

    # Attribution defaults
    default_due_day: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Due day assumed when an expense's card cannot be resolved"
    )

    # Dashboard windows
    upcoming_window_days: int = Field(
        default=7,
        ge=1,
        le=31,
        description="How many days ahead invoices show as upcoming"
    )
    urgent_window_days: int = Field(
        default=2,
        ge=0,
        le=31,
        description="Upcoming invoices this close are flagged urgent"
    )
    balance_evolution_months: int = Field(
        default=6,
        ge=1,
        le=36,
        description="Months shown in the cumulative balance chart"
    )

    # Budget bar thresholds (percent of balance already committed)
    budget_warning_percent: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
    )
    budget_danger_percent: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
    )

    @property
    def effective_log_level(self) -> str:
        """Debug mode always logs at DEBUG."""
        return "DEBUG" if self.debug_mode else self.log_level.upper()

    @property
    def is_production(self) -> bool:
        return self.app_environment.lower() == "production"


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def collections(self) -> CollectionSettings:
        return CollectionSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.collections
        results["collections"] = True
    except Exception as e:
        results["collections"] = False
        results["collections_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
