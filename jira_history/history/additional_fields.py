"""Flattening of arbitrary custom-field values into string key/value pairs."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from jira_history.core.config import DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT, PROMOTED_FIELD_NAMES

logger = logging.getLogger(__name__)


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def retrieve_field_value(value: Any) -> Any | None:
    """Return ``value``, ``name`` or ``displayName`` of an object, in that order.

    Cascading selects (``{"value": "High", "child": {"value": "Urgent"}}``)
    yield ``"High - Urgent"``. Returns None when none of the members is set.
    """
    if not isinstance(value, Mapping):
        return None
    if value.get("value") is not None:
        child = value.get("child")
        if isinstance(child, Mapping) and child.get("value") is not None:
            return f"{value['value']} - {child['value']}"
        return value["value"]
    if value.get("name") is not None:
        return value["name"]
    if value.get("displayName") is not None:
        return value["displayName"]
    return None


def retrieve_additional_field_value(
    name: str,
    value: Any,
    array_limit: int = DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT,
) -> dict[str, str]:
    """Flatten one custom field into ``{name: value}`` entries.

    Arrays are truncated to ``array_limit``; each element is also exploded
    into ``<name>_<index>`` while the truncated array is JSON-encoded under
    ``name``. Anything that cannot be interpreted is JSON-stringified.
    """
    if isinstance(value, str):
        return {name: value}

    retrieved = retrieve_field_value(value)
    if retrieved is not None:
        return {name: stringify(retrieved)}

    if isinstance(value, (list, tuple)):
        out: dict[str, str] = {}
        resolved = []
        for index, item in enumerate(value[: max(array_limit, 0)]):
            item_value = retrieve_field_value(item)
            if item_value is None:
                item_value = item
            out[f"{name}_{index}"] = stringify(item_value)
            resolved.append(item_value)
        out[name] = stringify(resolved)
        return out

    return {name: stringify(value)}


def extract_additional_fields(
    fields: Mapping[str, Any],
    additional_field_ids: Sequence[str],
    field_name_by_id: Mapping[str, str],
    array_limit: int = DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT,
    issue_key: str | None = None,
) -> tuple[tuple[str, str], ...]:
    """Extract allow-listed custom fields, keyed by display name."""
    pairs: list[tuple[str, str]] = []
    for field_id in additional_field_ids:
        name = field_name_by_id.get(field_id)
        value = fields.get(field_id)
        if not name or value is None or name in PROMOTED_FIELD_NAMES:
            continue
        try:
            pairs.extend(retrieve_additional_field_value(name, value, array_limit).items())
        except Exception as exc:
            logger.warning("Issue %s: failed to extract custom field %s, skipping: %s", issue_key, name, exc)
    return tuple(pairs)
