"""Time-in-status summaries over reconstructed status changelogs."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime

import pandas as pd

from jira_history.core.models import Issue, StatusPoint


def status_spans(points: Sequence[StatusPoint], end: datetime) -> Iterator[tuple[StatusPoint, float]]:
    """Yield each point with the days until the next point (or ``end``)."""
    for idx, point in enumerate(points):
        stop = points[idx + 1].changed_at if idx + 1 < len(points) else end
        yield point, (stop - point.changed_at).total_seconds() / 86400.0


def status_durations(points: Sequence[StatusPoint], end: datetime) -> dict[str, float]:
    """Days spent in each status category.

    Parameters
    ----------
    points : Sequence[StatusPoint]
        Status changelog of one issue, strictly ascending.
    end : datetime
        Timestamp closing the last status (typically now or the resolution date).

    Returns
    -------
    dict[str, float]
        Mapping of status category to days. Empty when there are no points.
    """
    durations: defaultdict[str, float] = defaultdict(float)
    for point, days in status_spans(points, end):
        if days > 0:
            durations[point.status.category] += days
    return dict(durations)


def build_status_duration_frame(issues: Iterable[Issue], now: datetime) -> pd.DataFrame:
    """Long-form frame of time spent per issue and status.

    Columns: key, category, detail, duration_days, is_current. Resolved issues
    stop the clock at their resolution date. Returns an empty DataFrame when no
    issue has a status changelog.
    """
    records: list[dict[str, object]] = []
    for issue in issues:
        points = issue.status_changelog
        if not points:
            continue
        last = points[-1]
        for point, days in status_spans(points, issue.resolution_date or now):
            if days < 0:
                continue
            records.append(
                {
                    "key": issue.key,
                    "category": point.status.category,
                    "detail": point.status.detail,
                    "duration_days": float(days),
                    "is_current": point is last,
                }
            )
    if not records:
        return pd.DataFrame()
    return pd.DataFrame(records)
