"""Root logger setup for the command line."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
QUIET_LOGGERS: Final[tuple[str, ...]] = ("sqlalchemy.engine",)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Log to stderr with timestamps; SQL echo stays at WARNING even in debug mode."""

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
