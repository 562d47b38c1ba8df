from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from bulkimport.config import StorageConfig, get_database_uri, get_storage_config, storage


def test_data_dir_comes_from_the_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("BULKIMPORT_DATA_DIR", str(custom))

    assert get_storage_config().data_dir == custom


def test_xdg_data_home_is_the_fallback(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("BULKIMPORT_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert get_storage_config().data_dir == tmp_path / storage.APP_DIR_NAME


def test_get_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_uri() == "sqlite:///override.db"


def test_get_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("BULKIMPORT_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_uri()

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_reports_dir_lives_under_the_data_dir(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path, database_uri_override="sqlite://")

    reports = config.reports_dir()

    assert reports == tmp_path.resolve() / storage.REPORTS_DIRNAME
    assert reports.is_dir()
