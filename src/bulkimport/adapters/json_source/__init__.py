"""JSON dump source adapter."""

from __future__ import annotations

from .schema import ImportDump
from .translator import load_dump, load_records, translate_dump

__all__ = ["ImportDump", "load_dump", "load_records", "translate_dump"]
