"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def optional_env_var(name: str) -> str | None:
    """Return a stripped environment variable, or ``None`` when absent or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def positive_int_env_var(name: str, default: int) -> int:
    """Return a strictly positive integer from the environment, else ``default``."""

    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value
