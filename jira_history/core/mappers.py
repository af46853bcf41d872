"""Mapping raw Jira issue JSON into immutable Issue aggregates."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict
from typing import Any

import pandas as pd

from jira_history.history.additional_fields import extract_additional_fields
from jira_history.history.assignee_timeline import build_assignee_changelog, current_assignee_id
from jira_history.history.events import extract_change_events, parse_timestamp, sort_histories
from jira_history.history.sprints import build_sprint_info
from jira_history.history.status_timeline import build_status_changelog, last_status_change

from .config import (
    EPIC_LINK_FIELD_NAME,
    EPIC_TYPE_NAME,
    KEY_CHANGE_FIELD,
    POINTS_FIELD_NAMES,
    SPRINT_FIELD_NAME,
    TransformerConfig,
)
from .models import Dependency, Issue, KeyChange, Parent, Status
from .status import StatusResolver

logger = logging.getLogger(__name__)


def _name(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return None


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _user_id(value: Any) -> str | None:
    if not isinstance(value, dict):
        return None
    return value.get("accountId") or value.get("key") or value.get("name") or None


def map_dependencies(fields: dict[str, Any]) -> tuple[Dependency, ...]:
    deps: list[Dependency] = []
    for link in _list(fields.get("issuelinks")):
        if not isinstance(link, dict):
            continue
        key = _dict(link.get("inwardIssue")).get("key")
        if not key:
            continue
        link_type = _dict(link.get("type"))
        deps.append(Dependency(key=key, inward=link_type.get("inward"), outward=link_type.get("outward")))
    return tuple(deps)


def map_parent(fields: dict[str, Any]) -> Parent | None:
    parent = fields.get("parent")
    if not isinstance(parent, dict) or not parent.get("key"):
        return None
    parent_type = _name(_dict(parent.get("fields")).get("issuetype"))
    return Parent(key=parent["key"], type=parent_type)


def map_points(raw: dict[str, Any], config: TransformerConfig) -> float | None:
    fields = _dict(raw.get("fields"))
    for field_name in POINTS_FIELD_NAMES:
        for field_id in config.field_ids(field_name):
            value = fields.get(field_id)
            if value is None:
                continue
            try:
                return float(value)
            except (TypeError, ValueError) as exc:
                logger.warning("Failed to get story points for issue %s: %s", raw.get("key"), exc)
                return None
    return None


def map_epic(raw: dict[str, Any], config: TransformerConfig) -> str | None:
    fields = _dict(raw.get("fields"))
    for field_id in config.field_ids(EPIC_LINK_FIELD_NAME):
        epic = fields.get(field_id)
        if epic:
            return str(epic)
    if _name(fields.get("issuetype")) == EPIC_TYPE_NAME:
        return raw.get("key")
    return None


def map_key_changelog(histories: list[dict[str, Any]]) -> tuple[KeyChange, ...]:
    return tuple(
        KeyChange(key=event.from_value, changed_at=event.changed_at)
        for event in extract_change_events(histories, KEY_CHANGE_FIELD)
    )


def map_issue(raw: dict[str, Any], config: TransformerConfig) -> Issue:
    """Build an ``Issue`` from a raw search result carrying its changelog.

    Pure with respect to its inputs: all derived structures are created fresh
    and ``config`` is only read. Malformed content degrades the affected
    derived field instead of raising.
    """
    fields = _dict(raw.get("fields"))
    key = raw.get("key")
    created = parse_timestamp(fields.get("created"))
    issue_type = _name(fields.get("issuetype"))
    histories = sort_histories(_list(_dict(raw.get("changelog")).get("histories")))

    status_field = _dict(fields.get("status"))
    current_status_name = status_field.get("name")
    current_status = None
    if current_status_name:
        category = _name(status_field.get("statusCategory"))
        current_status = Status(category=category or current_status_name, detail=current_status_name)

    status_changelog = build_status_changelog(
        histories,
        current_status_name,
        created,
        StatusResolver(config.status_by_name),
        key,
    )
    assignees = build_assignee_changelog(histories, current_assignee_id(fields.get("assignee")), created)
    sprint_info = build_sprint_info(
        key,
        issue_type,
        created,
        histories,
        fields,
        config.field_ids(SPRINT_FIELD_NAME),
    )
    additional_fields = extract_additional_fields(
        fields,
        config.additional_field_ids,
        config.field_name_by_id,
        config.additional_fields_array_limit,
        key,
    )

    project = _dict(fields.get("project"))
    url = f"{config.base_url}/browse/{key}" if config.base_url and key else None
    return Issue(
        id=raw.get("id"),
        key=key,
        type=issue_type,
        status=current_status,
        priority=_name(fields.get("priority")),
        project=project.get("key"),
        creator=_user_id(fields.get("creator")),
        created=created,
        updated=parse_timestamp(fields.get("updated")),
        summary=fields.get("summary"),
        description=fields.get("description"),
        resolution=_name(fields.get("resolution")),
        resolution_date=parse_timestamp(fields.get("resolutiondate")),
        url=url,
        labels=tuple(_list(fields.get("labels"))),
        subtasks=tuple(t["key"] for t in _list(fields.get("subtasks")) if isinstance(t, dict) and t.get("key")),
        dependencies=map_dependencies(fields),
        parent=map_parent(fields),
        points=map_points(raw, config),
        epic=map_epic(raw, config),
        status_changed=last_status_change(status_changelog),
        status_changelog=status_changelog,
        key_changelog=map_key_changelog(histories),
        assignees=assignees,
        sprint_info=sprint_info,
        additional_fields=additional_fields,
    )


def issues_to_dataframe(issues: Iterable[Issue]) -> pd.DataFrame:
    rows = []
    for i in issues:
        sprint = i.sprint_info
        rows.append(
            {
                "key": i.key,
                "type": i.type,
                "project": i.project,
                "summary": i.summary,
                "status": i.status.detail if i.status else None,
                "status_category": i.status.category if i.status else None,
                "created": i.created,
                "updated": i.updated,
                "status_changed": i.status_changed,
                "assignee": i.assignees[-1].uid if i.assignees else None,
                "current_sprint": sprint.current_sprint_id if sprint else None,
                "sprint_count": len(sprint.history) if sprint else 0,
                "points": i.points,
                "epic": i.epic,
                "resolution": i.resolution or "Unresolved",
                "labels": ", ".join(sorted({str(label) for label in i.labels}, key=str.lower)),
                "status_changelog": [asdict(p) for p in i.status_changelog],
                "additional_fields": dict(i.additional_fields),
            }
        )
    return pd.DataFrame(rows)
