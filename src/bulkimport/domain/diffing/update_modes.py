"""Merge incoming property values into an existing record per update mode."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from bulkimport.domain.model import UpdateMode

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


type PropertyValues = list[dict[str, object]]


def deduplicate_values(values: PropertyValues) -> PropertyValues:
    """Drop repeated value objects, keeping the first occurrence."""

    seen: set[str] = set()
    unique: PropertyValues = []
    for value in values:
        key = json.dumps(value, sort_keys=True, default=str)
        if key in seen:
            continue
        seen.add(key)
        unique.append(value)
    return unique


def update_resource_properties(
    resource: Mapping[str, object],
    values: Mapping[str, PropertyValues],
    mode: UpdateMode,
    *,
    is_property: Callable[[str], bool],
) -> dict[str, object]:
    """Return ``resource`` as it would be after applying ``values`` with ``mode``.

    ``create`` and ``append`` concatenate; ``revise`` replaces only properties
    that have new values; ``update`` replaces every given property; ``replace``
    drops all existing properties first. Property value lists are deduplicated
    and empty properties removed.
    """

    result: dict[str, object] = dict(resource)
    if not resource:
        return result

    if mode in (UpdateMode.CREATE, UpdateMode.APPEND):
        for term, new_values in values.items():
            current = result.get(term)
            result[term] = [*current, *new_values] if isinstance(current, list) else new_values
    elif mode is UpdateMode.REVISE:
        result.update({term: vals for term, vals in values.items() if vals})
    elif mode is UpdateMode.UPDATE:
        result.update(values)
    elif mode is UpdateMode.REPLACE:
        result = {key: value for key, value in result.items() if not is_property(key)}
        result.update({term: vals for term, vals in values.items() if vals})

    merged: dict[str, object] = {}
    for key, value in result.items():
        if not is_property(key):
            merged[key] = value
            continue
        if isinstance(value, list) and value:
            merged[key] = deduplicate_values(value)  # type: ignore[arg-type]
    return merged
