"""Assignee changelog reconstruction."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from jira_history.core.config import ASSIGNEE_CHANGE_FIELD
from jira_history.core.models import AssigneePoint

from .events import extract_change_events


def current_assignee_id(assignee: Any) -> str | None:
    """Pick the user identifier Jira exposes for the edition in use.

    Cloud reports ``accountId``; Server and Data Center report ``key`` or ``name``.
    """
    if not isinstance(assignee, dict):
        return None
    return assignee.get("accountId") or assignee.get("key") or assignee.get("name") or None


def build_assignee_changelog(
    histories: Sequence[dict[str, Any]],
    current_assignee: str | None,
    created: datetime | None,
) -> tuple[AssigneePoint, ...]:
    points: list[AssigneePoint] = []
    events = extract_change_events(histories, ASSIGNEE_CHANGE_FIELD, "from", "to")
    if events:
        # Already assigned at creation
        first = events[0]
        if first.from_value and created is not None:
            points.append(AssigneePoint(uid=first.from_value, assigned_at=created))
        for event in events:
            points.append(AssigneePoint(uid=event.to_value or None, assigned_at=event.changed_at))
    elif current_assignee and created is not None:
        points.append(AssigneePoint(uid=current_assignee, assigned_at=created))
    return tuple(points)
