"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, positive_int_env_var
from .errors import ConfigurationError
from .importing import ImportConfig, get_import_config
from .logging import configure_logging
from .storage import StorageConfig, get_database_uri, get_storage_config

__all__ = [
    "ConfigurationError",
    "ImportConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_uri",
    "get_import_config",
    "get_storage_config",
    "optional_env_var",
    "positive_int_env_var",
]
