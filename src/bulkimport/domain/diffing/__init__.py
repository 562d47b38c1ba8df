"""Structural diffs between record states and their tabular rendering."""

from __future__ import annotations

from .engine import diff_records, is_property_term, normalize_property_values, scalar_value
from .render import Cell, ColumnIndex, flatten, rows_by_column, rows_by_row
from .update_modes import update_resource_properties

__all__ = [
    "Cell",
    "ColumnIndex",
    "diff_records",
    "flatten",
    "is_property_term",
    "normalize_property_values",
    "rows_by_column",
    "rows_by_row",
    "scalar_value",
    "update_resource_properties",
]
