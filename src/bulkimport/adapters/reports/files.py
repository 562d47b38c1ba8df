"""Report file naming and preparation."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import TYPE_CHECKING, Final

from bulkimport.domain.errors import ReportSinkError

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)

MAX_NAME_LENGTH: Final = 20
FALLBACK_NAME: Final = "bi"

_UNSAFE = re.compile(r"[^A-Za-z0-9-]")
_REPEATED = re.compile(r"_+")


def sanitize_report_name(name: str) -> str:
    cleaned = _REPEATED.sub("_", _UNSAFE.sub("_", name)).strip("_")
    return cleaned[:MAX_NAME_LENGTH] or FALLBACK_NAME


def prepare_report_path(
    directory: Path,
    name: str,
    extension: str,
    *,
    suffix: str = "",
    with_date: bool = False,
) -> Path:
    """Return a fresh, writable path ``directory/name[suffix][-date][-N].extension``.

    The directory is created when missing. Existing files are never reused:
    a numeric suffix is appended until the name is free.
    """

    base = sanitize_report_name(name) + suffix
    if with_date:
        base = f"{base}-{date.today():%Y%m%d}"
    extension = extension.lstrip(".")

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportSinkError(f"Cannot create report directory {directory}: {exc}") from exc
    if not directory.is_dir():
        raise ReportSinkError(f"Report location is not a directory: {directory}")

    candidate = directory / f"{base}.{extension}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{base}-{counter}.{extension}"
        counter += 1
    return candidate
