"""Changelog reconstruction: events, status, assignee and sprint timelines."""

from jira_history.history.additional_fields import extract_additional_fields, retrieve_additional_field_value
from jira_history.history.assignee_timeline import build_assignee_changelog, current_assignee_id
from jira_history.history.events import extract_change_events, parse_timestamp, sort_histories
from jira_history.history.sprints import SprintMembershipReconstructor, build_sprint_info, select_sprint
from jira_history.history.status_timeline import build_status_changelog, last_status_change

__all__ = [
    "SprintMembershipReconstructor",
    "build_assignee_changelog",
    "build_sprint_info",
    "build_status_changelog",
    "current_assignee_id",
    "extract_additional_fields",
    "extract_change_events",
    "last_status_change",
    "parse_timestamp",
    "retrieve_additional_field_value",
    "select_sprint",
    "sort_histories",
]
