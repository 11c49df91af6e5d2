"""Tests for Settings configuration model."""

from pathlib import Path

from src.config import Settings


class TestGetEngageAutoKinds:
    def test_default_kinds(self):
        s = Settings()
        assert s.get_engage_auto_kinds() == ["auto", "visitorAuto"]

    def test_handles_spaces(self):
        s = Settings(engage_auto_kinds=" auto , visitorAuto ")
        assert s.get_engage_auto_kinds() == ["auto", "visitorAuto"]

    def test_empty_string_returns_empty_list(self):
        s = Settings(engage_auto_kinds="")
        assert s.get_engage_auto_kinds() == []

    def test_single_kind(self):
        s = Settings(engage_auto_kinds="auto")
        assert s.get_engage_auto_kinds() == ["auto"]


class TestDefaults:
    def test_default_database_path(self):
        s = Settings()
        assert s.database_path == Path("data/engage.db")

    def test_default_timezone(self):
        s = Settings()
        assert s.scheduler_timezone == "UTC"

    def test_default_log_level(self):
        s = Settings()
        assert s.log_level == "INFO"

    def test_turso_disabled_by_default(self):
        s = Settings()
        assert s.turso_database_url == ""
