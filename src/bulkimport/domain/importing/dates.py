"""Lenient parsing of source timestamps."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Final

BOGUS_DATE_PREFIXES: Final[tuple[str, ...]] = ("0000-00-00", "2038-01-01")
MIN_YEAR: Final[int] = 1000
MAX_YEAR: Final[int] = 9999


def parse_source_datetime(value: object) -> datetime | None:
    """Return a naive datetime for a source date, or ``None`` when it is bogus.

    Numbers (or digit-only strings) are Unix timestamps. Text is read as
    ``YYYY-MM-DD[ T]HH:MM:SS`` truncated to 19 characters. Placeholder dates used
    by databases for "unknown" are rejected, as are years outside 1000-9999.
    """

    if value is None or value == "" or value == 0 or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if MIN_YEAR <= value.year <= MAX_YEAR else None

    text = str(value).strip()
    if not text:
        return None
    if text[:10] in BOGUS_DATE_PREFIXES:
        return None
    if text[:10] == "1970-01-01" and text[13:19] == ":00:00":
        return None

    parsed: datetime
    try:
        if isinstance(value, int | float) or text.lstrip("-").isdigit():
            parsed = datetime.fromtimestamp(float(text), tz=UTC).replace(tzinfo=None)
        else:
            parsed = datetime.fromisoformat(text.replace("T", " ")[:19])
    except (ValueError, OverflowError, OSError):
        return None

    if not MIN_YEAR <= parsed.year <= MAX_YEAR:
        return None
    return parsed
