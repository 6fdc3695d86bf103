"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from financehub.config import AppSettings, GoogleSheetsSettings


class TestAppSettings:
    """Environment-driven behaviour of the app settings."""

    def test_log_level_is_normalised(self):
        assert AppSettings(log_level="warning", debug_mode=False).effective_log_level == "WARNING"

    def test_debug_mode_forces_debug_logging(self):
        assert AppSettings(log_level="ERROR", debug_mode=True).effective_log_level == "DEBUG"

    def test_production_flag(self):
        assert AppSettings(app_environment="Production").is_production
        assert not AppSettings(app_environment="development").is_production

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("FINANCEHUB_DEBUG_MODE", "true")
        monkeypatch.setenv("FINANCEHUB_DEFAULT_DUE_DAY", "5")
        settings = AppSettings()
        assert settings.debug_mode
        assert settings.default_due_day == 5

    def test_due_day_bounds(self):
        with pytest.raises(ValidationError):
            AppSettings(default_due_day=32)


class TestGoogleSheetsSettings:

    def test_requires_spreadsheet(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        with pytest.raises(ValidationError):
            GoogleSheetsSettings()
