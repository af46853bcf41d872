"""Status changelog reconstruction.

The status held at creation is not logged by Jira; it is recovered from the
``from`` side of the first status change. When an issue never changed status
the current snapshot status is assumed to have held since creation.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from jira_history.core.config import STATUS_CHANGE_FIELD
from jira_history.core.models import StatusPoint
from jira_history.core.status import StatusResolver, clean_status_name

from .events import extract_change_events


def _push(points: list[StatusPoint], point: StatusPoint) -> None:
    # Keep points strictly ascending: a change at or before the previous
    # point supersedes it
    while points and points[-1].changed_at >= point.changed_at:
        points.pop()
    points.append(point)


def build_status_changelog(
    histories: Sequence[dict[str, Any]],
    current_status: str | None,
    created: datetime | None,
    resolver: StatusResolver,
    issue_key: str | None = None,
) -> tuple[StatusPoint, ...]:
    """Return the ordered status points for one issue.

    Parameters
    ----------
    histories : Sequence[dict]
        Changelog entries sorted oldest first.
    current_status : str | None
        Status name on the current snapshot.
    created : datetime | None
        Issue creation time. Points that would be dated at creation are
        omitted when it is unknown.
    resolver : StatusResolver
        Name to category/detail lookup.
    issue_key : str | None
        Used to attribute warnings.
    """
    points: list[StatusPoint] = []

    def record(name: str | None, when: datetime | None) -> None:
        name = clean_status_name(name)
        if name is None or when is None:
            return
        _push(points, StatusPoint(status=resolver.resolve(name, issue_key), changed_at=when))

    events = extract_change_events(histories, STATUS_CHANGE_FIELD)
    if events:
        # Status assigned at creation
        record(events[0].from_value, created)
        for event in events:
            record(event.to_value, event.changed_at)
    elif current_status:
        record(current_status, created)
    return tuple(points)


def last_status_change(points: Sequence[StatusPoint]) -> datetime | None:
    if not points:
        return None
    return points[-1].changed_at
