"""Shared test fixtures."""

import pytest

from src.engage.store import EngageMessageStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("src.config.settings.turso_database_url", "")


@pytest.fixture
def store(tmp_path, _no_turso) -> EngageMessageStore:
    """EngageMessageStore backed by a temp database."""
    EngageMessageStore._reset()
    s = EngageMessageStore(db_path=tmp_path / "test.db")
    yield s
    EngageMessageStore._reset()
