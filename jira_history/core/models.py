"""Domain data models for reconstructed Jira issues and their change histories."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TypeChange:
    from_type: str | None
    to_type: str | None


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    field: str
    from_value: str | None
    to_value: str | None
    changed_at: datetime
    type_change: TypeChange | None = None


@dataclass(frozen=True, slots=True)
class Status:
    category: str
    detail: str


@dataclass(frozen=True, slots=True)
class StatusPoint:
    status: Status
    changed_at: datetime


@dataclass(frozen=True, slots=True)
class AssigneePoint:
    # None marks an unassignment
    uid: str | None
    assigned_at: datetime


@dataclass(frozen=True, slots=True)
class SprintInterval:
    sprint_id: str
    added_at: datetime
    removed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.removed_at is None


@dataclass(frozen=True, slots=True)
class SprintInfo:
    current_sprint_id: str | None
    history: tuple[SprintInterval, ...] = ()


@dataclass(frozen=True, slots=True)
class KeyChange:
    """A key the issue was known by until ``changed_at``."""

    key: str | None
    changed_at: datetime


@dataclass(frozen=True, slots=True)
class Dependency:
    key: str
    inward: str | None
    outward: str | None


@dataclass(frozen=True, slots=True)
class Parent:
    key: str
    type: str | None = None


@dataclass(frozen=True, slots=True)
class Issue:
    id: str | None
    key: str | None
    type: str | None
    status: Status | None
    priority: str | None
    project: str | None
    creator: str | None
    created: datetime | None
    updated: datetime | None
    summary: str | None
    description: str | None
    resolution: str | None
    resolution_date: datetime | None
    url: str | None
    labels: tuple[str, ...] = ()
    subtasks: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    parent: Parent | None = None
    points: float | None = None
    epic: str | None = None

    # Derived from the changelog
    status_changed: datetime | None = None
    status_changelog: tuple[StatusPoint, ...] = field(default_factory=tuple)
    key_changelog: tuple[KeyChange, ...] = field(default_factory=tuple)
    assignees: tuple[AssigneePoint, ...] = field(default_factory=tuple)
    sprint_info: SprintInfo | None = None
    additional_fields: tuple[tuple[str, str], ...] = field(default_factory=tuple)
