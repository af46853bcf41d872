"""Sprint membership reconstruction.

Jira records the Sprint field as a list. Each changelog item reports only the
full id list before and after the change, never which sprint was added or
removed, so membership intervals are recovered from set differences:

- ``to - from`` with a single id: the issue entered that sprint.
- ``to - from`` empty: the issue left its sprint (or was re-ordered).
- ``to - from`` with several ids: ambiguous; nothing is opened.

The walk is a left fold over the sprint change events. Its state is either
``NoOpenInterval`` or ``OpenInterval``; every edge case is a transition
labelled by an ``EventKind``.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from typing import Any

import pytz

from jira_history.core.config import (
    OPEN_SPRINT_STATES,
    SPRINT_FIELD_NAME,
    SUBTASK_TYPE_NAME,
)
from jira_history.core.models import ChangeEvent, SprintInfo, SprintInterval

from .events import extract_change_events, parse_timestamp, to_string_list

logger = logging.getLogger(__name__)

# Deprecated toString() representation of sprints:
# com.atlassian.greenhopper.service.sprint.Sprint@1a2b[id=12,state=CLOSED,...]
SPRINT_STRING_PATTERN = re.compile(r"(\w+)=([\w\-:. ]+)")

_EPOCH = datetime(1970, 1, 1, tzinfo=pytz.UTC)


@dataclass(frozen=True, slots=True)
class SprintDetails:
    id: str
    state: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    complete_date: str | None = None
    # False for ids seen only in the changelog
    from_snapshot: bool = True


def _parse_sprint_string(value: str) -> dict[str, str]:
    return dict(SPRINT_STRING_PATTERN.findall(value))


def parse_sprint_snapshot(
    fields: dict[str, Any],
    sprint_field_ids: Sequence[str],
    issue_key: str | None = None,
) -> list[SprintDetails]:
    """Collect sprint details from every field id named ``Sprint``.

    Object values and the legacy string representation are both accepted.
    Values that yield no sprint id are skipped with a warning.
    """
    sprints: list[SprintDetails] = []
    for field_id in sprint_field_ids:
        raw = fields.get(field_id)
        if raw is None:
            continue
        values = raw if isinstance(raw, list) else [raw]
        for value in values:
            if isinstance(value, str):
                details = _parse_sprint_string(value)
            elif isinstance(value, dict):
                details = value
            else:
                details = {}
            sprint_id = details.get("id")
            if sprint_id is None or str(sprint_id).strip() == "":
                logger.warning("Issue %s: ignoring malformed sprint value %r", issue_key, value)
                continue
            sprints.append(
                SprintDetails(
                    id=str(sprint_id).strip(),
                    state=details.get("state"),
                    start_date=details.get("startDate"),
                    end_date=details.get("endDate"),
                    complete_date=details.get("completeDate"),
                )
            )
    return sprints


def select_sprint(
    sprints: Sequence[SprintDetails],
    candidates: Sequence[str] | None = None,
) -> str | None:
    """Pick one sprint among several plausible ones.

    An ``active`` or ``future`` sprint wins outright (future and active
    sprints have no completion date yet). Otherwise the most recently
    completed sprint wins. Candidate ids with no snapshot details rank last;
    remaining ties keep candidate order.

    Parameters
    ----------
    sprints : Sequence[SprintDetails]
        Sprints on the current snapshot.
    candidates : Sequence[str] | None
        Restrict the choice to these ids. None means all snapshot sprints.
    """
    if candidates is None:
        pool = list(sprints)
    else:
        by_id = {s.id: s for s in sprints}
        pool = [by_id.get(c) or SprintDetails(id=c, from_snapshot=False) for c in dict.fromkeys(candidates)]
    if not pool:
        return None
    for sprint in pool:
        if (sprint.state or "").lower() in OPEN_SPRINT_STATES:
            return sprint.id
    ranked = sorted(
        pool,
        key=lambda s: (s.from_snapshot, parse_timestamp(s.complete_date) or _EPOCH),
        reverse=True,
    )
    return ranked[0].id


# ---------------------------------------------------------------------------
# Fold state machine
# ---------------------------------------------------------------------------


class EventKind(enum.Enum):
    NORMAL = "normal"
    PROMOTE_TO_SUBTASK = "promote_to_subtask"
    DEMOTE_FROM_SUBTASK = "demote_from_subtask"


@dataclass(frozen=True, slots=True)
class NoOpenInterval:
    pass


@dataclass(frozen=True, slots=True)
class OpenInterval:
    sprint_id: str
    added_at: datetime

    def close(self, removed_at: datetime) -> SprintInterval:
        return SprintInterval(sprint_id=self.sprint_id, added_at=self.added_at, removed_at=removed_at)


IntervalState = NoOpenInterval | OpenInterval

NO_OPEN_INTERVAL = NoOpenInterval()


@dataclass(frozen=True, slots=True)
class _Fold:
    state: IntervalState
    closed: tuple[SprintInterval, ...] = ()

    def close_at(self, when: datetime) -> _Fold:
        if isinstance(self.state, OpenInterval):
            return _Fold(NO_OPEN_INTERVAL, self.closed + (self.state.close(when),))
        return self


def classify(event: ChangeEvent) -> EventKind:
    change = event.type_change
    if change is not None:
        # Leaving Sub-task is checked first: the changelog often reports the
        # sprint being emptied even though the issue stays in its sprint
        if change.from_type == SUBTASK_TYPE_NAME:
            return EventKind.DEMOTE_FROM_SUBTASK
        if change.to_type == SUBTASK_TYPE_NAME:
            return EventKind.PROMOTE_TO_SUBTASK
    return EventKind.NORMAL


def new_sprint_ids(event: ChangeEvent) -> list[str]:
    before = set(to_string_list(event.from_value))
    return [sid for sid in dict.fromkeys(to_string_list(event.to_value)) if sid not in before]


class SprintMembershipReconstructor:
    """Derive ``SprintInfo`` from sprint change events and the snapshot.

    Instances hold only the issue being converted; create one per issue.
    """

    def __init__(self, issue_key: str | None, issue_type: str | None, created: datetime | None):
        self.issue_key = issue_key
        self.issue_type = issue_type
        self.created = created

    def reconstruct(
        self,
        histories: Sequence[dict[str, Any]],
        snapshot: Sequence[SprintDetails],
    ) -> SprintInfo | None:
        events = extract_change_events(histories, SPRINT_FIELD_NAME, "from", "to")

        # Sub-tasks inherit their parent's sprint; without their own sprint
        # changes there is nothing to attribute to them
        if self.issue_type == SUBTASK_TYPE_NAME and not events:
            return None

        if not events:
            sprint_id = select_sprint(snapshot)
            # No creation date means no interval to open
            if sprint_id is None or self.created is None:
                return SprintInfo(current_sprint_id=None, history=())
            return SprintInfo(
                current_sprint_id=sprint_id,
                history=(SprintInterval(sprint_id=sprint_id, added_at=self.created),),
            )

        result = reduce(self._step, events, _Fold(self._seed(events[0], snapshot)))
        history = result.closed
        current: str | None = None
        if isinstance(result.state, OpenInterval):
            history = history + (SprintInterval(sprint_id=result.state.sprint_id, added_at=result.state.added_at),)
            current = result.state.sprint_id
        return SprintInfo(current_sprint_id=current, history=unique_sprint_history(history))

    def _seed(self, first: ChangeEvent, snapshot: Sequence[SprintDetails]) -> IntervalState:
        initial = to_string_list(first.from_value)
        if len(initial) == 1:
            # Sprint assigned at creation
            added_at = first.changed_at
            if self.created is not None and self.created < first.changed_at:
                added_at = self.created
            return OpenInterval(sprint_id=initial[0], added_at=added_at)
        if len(initial) > 1:
            # Exact add time within the set is unknown
            sprint_id = select_sprint(snapshot, initial)
            if sprint_id is not None:
                return OpenInterval(sprint_id=sprint_id, added_at=first.changed_at)
        return NO_OPEN_INTERVAL

    def _step(self, fold: _Fold, event: ChangeEvent) -> _Fold:
        kind = classify(event)
        if kind is EventKind.DEMOTE_FROM_SUBTASK:
            return fold
        closed = fold.close_at(event.changed_at)
        if kind is EventKind.PROMOTE_TO_SUBTASK:
            return closed

        added = new_sprint_ids(event)
        if len(added) == 1:
            return _Fold(OpenInterval(sprint_id=added[0], added_at=event.changed_at), closed.closed)
        if len(added) > 1:
            # TODO: open concurrent intervals or pick a candidate once product decides
            logger.warning(
                "Issue %s: sprint difference from %s to %s has more than one value: %s. "
                "Will be marked as removed from current sprint",
                self.issue_key,
                event.from_value,
                event.to_value,
                ",".join(added),
            )
        return closed


def unique_sprint_history(history: Sequence[SprintInterval]) -> tuple[SprintInterval, ...]:
    """Keep one interval per sprint, the most recently added one.

    Suppresses repeated entries when an issue moves into the same sprint
    several times. The result is ordered by ``added_at``.
    """
    latest: dict[str, tuple[int, SprintInterval]] = {}
    for position, interval in enumerate(history):
        existing = latest.get(interval.sprint_id)
        if (
            existing is None
            or interval.added_at > existing[1].added_at
            or (interval.added_at == existing[1].added_at and interval.is_open)
        ):
            latest[interval.sprint_id] = (position, interval)
    kept = sorted(latest.values(), key=lambda pair: (pair[1].added_at, pair[0]))
    return tuple(interval for _, interval in kept)


def build_sprint_info(
    issue_key: str | None,
    issue_type: str | None,
    created: datetime | None,
    histories: Sequence[dict[str, Any]],
    fields: dict[str, Any],
    sprint_field_ids: Sequence[str],
) -> SprintInfo | None:
    """Reconstruct sprint membership, degrading to empty info on failure."""
    try:
        snapshot = parse_sprint_snapshot(fields, sprint_field_ids, issue_key)
        return SprintMembershipReconstructor(issue_key, issue_type, created).reconstruct(histories, snapshot)
    except Exception as exc:
        logger.warning("Issue %s: failed to reconstruct sprint history: %s", issue_key, exc)
        return SprintInfo(current_sprint_id=None, history=())
