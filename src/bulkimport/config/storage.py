"""Locations of the SQLite database and the diff reports."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "bulkimport"
DEFAULT_DB_FILENAME: Final[str] = "bulkimport.db"
REPORTS_DIRNAME: Final[str] = "bulk_import"


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = optional_env_var("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = optional_env_var("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory holding the default database file and the report folder.

    ``database_uri_override`` (``DATABASE_URI``) points the store at any other
    SQLAlchemy database; the data directory is then only used for reports.
    """

    data_dir: Path
    database_uri_override: str | None = None
    database_filename: str = DEFAULT_DB_FILENAME
    reports_dirname: str = REPORTS_DIRNAME

    def _directory(self, *parts: str) -> Path:
        path = self.data_dir.expanduser().resolve().joinpath(*parts)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def database_uri(self) -> str:
        if self.database_uri_override:
            return self.database_uri_override
        return f"sqlite+pysqlite:///{self._directory() / self.database_filename}"

    def reports_dir(self) -> Path:
        return self._directory(self.reports_dirname)


def get_storage_config() -> StorageConfig:
    configured = optional_env_var("BULKIMPORT_DATA_DIR")
    data_dir = Path(configured) if configured else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir, database_uri_override=optional_env_var("DATABASE_URI")
    )


def get_database_uri() -> str:
    return get_storage_config().database_uri()
