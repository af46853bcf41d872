"""Field-level change events extracted from raw Jira changelog histories."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from jira_history.core.config import ISSUE_TYPE_CHANGE_FIELD
from jira_history.core.models import ChangeEvent, TypeChange

_EPOCH = datetime(1970, 1, 1, tzinfo=pytz.UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a Jira timestamp into an aware UTC datetime.

    Accepts ISO strings (including Jira's ``+0000`` offsets), datetimes and
    epoch milliseconds. Returns None when the input cannot be parsed.
    """
    if value is None or isinstance(value, (bool, list, tuple, dict, set)) or value == "":
        return None
    try:
        if isinstance(value, (int, float)):
            ts = pd.to_datetime(value, unit="ms", errors="coerce")
        else:
            ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    try:
        if getattr(ts, "tzinfo", None) is None:
            ts = ts.tz_localize(pytz.UTC)
        return ts.tz_convert(pytz.UTC).to_pydatetime()
    except (TypeError, ValueError):
        return None


def sort_histories(histories: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order changelog entries from least to most recent.

    Entries with unparseable timestamps sort first; they are dropped later
    by ``extract_change_events``. The sort is stable.
    """
    entries = [h for h in histories if isinstance(h, dict)]
    return sorted(entries, key=lambda h: parse_timestamp(h.get("created")) or _EPOCH)


def issue_type_change(items: Sequence[dict[str, Any]]) -> TypeChange | None:
    for item in items:
        if item.get("field") == ISSUE_TYPE_CHANGE_FIELD:
            return TypeChange(from_type=item.get("fromString"), to_type=item.get("toString"))
    return None


def extract_change_events(
    histories: Sequence[dict[str, Any]],
    field: str,
    from_key: str = "fromString",
    to_key: str = "toString",
) -> list[ChangeEvent]:
    """Collect every change of ``field`` from histories sorted oldest first.

    Parameters
    ----------
    histories : Sequence[dict]
        Raw ``changelog.histories`` entries, ascending by ``created``.
    field : str
        Changelog field name to match (``status``, ``assignee``, ``Sprint``).
    from_key, to_key : str
        Item keys holding the before/after values. ``fromString``/``toString``
        carry display values, ``from``/``to`` carry ids.

    Returns
    -------
    list[ChangeEvent]
        One event per matching item, in log order. Each event carries the
        issue-type change recorded in the same entry, if any.
    """
    events: list[ChangeEvent] = []
    for entry in histories:
        raw_items = entry.get("items")
        if not isinstance(raw_items, list):
            continue
        items = [it for it in raw_items if isinstance(it, dict)]
        matching = [it for it in items if it.get("field") == field]
        if not matching:
            continue
        changed_at = parse_timestamp(entry.get("created"))
        if changed_at is None:
            continue
        type_change = issue_type_change(items)
        for item in matching:
            events.append(
                ChangeEvent(
                    field=field,
                    from_value=item.get(from_key),
                    to_value=item.get(to_key),
                    changed_at=changed_at,
                    type_change=type_change,
                )
            )
    return events


def to_string_list(value: Any) -> list[str]:
    """Split a comma-separated changelog value (``"12, 13"``) into ids."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if v is not None]
    else:
        parts = str(value).split(",")
    return [p.strip() for p in parts if p.strip()]
