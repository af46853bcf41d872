"""Central configuration, constants, and the immutable lookup tables shared by a sync run."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .models import Status
from .status import normalize_status_name

# =============================================================================
# Jira Field Names
# =============================================================================
# Epic Link and Sprint are custom fields, resolved through the field-name map
SPRINT_FIELD_NAME = "Sprint"
EPIC_LINK_FIELD_NAME = "Epic Link"
DEV_FIELD_NAME = "Development"

# Classic and next-gen projects name the estimate field differently
POINTS_FIELD_NAMES: tuple[str, ...] = (
    "Story Points",
    "Story point estimate",
)

# Custom fields promoted to first-class Issue attributes; never emitted as
# additional fields
PROMOTED_FIELD_NAMES: frozenset[str] = frozenset(
    {
        *POINTS_FIELD_NAMES,
        DEV_FIELD_NAME,
        EPIC_LINK_FIELD_NAME,
        SPRINT_FIELD_NAME,
    }
)

# =============================================================================
# Changelog Field Names
# =============================================================================
STATUS_CHANGE_FIELD = "status"
ASSIGNEE_CHANGE_FIELD = "assignee"
KEY_CHANGE_FIELD = "Key"
ISSUE_TYPE_CHANGE_FIELD = "issuetype"

# =============================================================================
# Issue Types
# =============================================================================
SUBTASK_TYPE_NAME = "Sub-task"
EPIC_TYPE_NAME = "Epic"

# Sprint states that win the tie-break outright (lowercase)
OPEN_SPRINT_STATES: frozenset[str] = frozenset({"active", "future"})

# =============================================================================
# Tuning Knobs
# =============================================================================
DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT = 50

# Conversion is CPU bound and cheap per issue; below the threshold stay
# sequential to avoid pool overhead
CONVERSION_MAX_WORKERS = 4
CONVERSION_MIN_PARALLEL = 50


def _freeze_ids_by_name(field_name_by_id: Mapping[str, str]) -> Mapping[str, tuple[str, ...]]:
    # A display name can be shared by several custom field ids
    ids_by_name: dict[str, list[str]] = {}
    for field_id, name in field_name_by_id.items():
        ids_by_name.setdefault(name, []).append(field_id)
    return MappingProxyType({name: tuple(ids) for name, ids in ids_by_name.items()})


@dataclass(frozen=True, slots=True)
class TransformerConfig:
    """Read-only lookup tables injected into every conversion.

    Built once per sync run and shared across threads. Mapping attributes are
    wrapped in ``MappingProxyType`` so no conversion can mutate them.

    Attributes
    ----------
    field_name_by_id : Mapping[str, str]
        Jira field id (``customfield_10020``) to display name (``Sprint``).
    field_ids_by_name : Mapping[str, tuple[str, ...]]
        Inverse of ``field_name_by_id``.
    status_by_name : Mapping[str, Status]
        Normalized status name to category/detail.
    additional_field_ids : tuple[str, ...]
        Allow-list of field ids flattened into ``Issue.additional_fields``.
    additional_fields_array_limit : int
        Maximum number of array elements kept per additional field.
    base_url : str | None
        Jira site URL used to build browse links.
    """

    field_name_by_id: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    field_ids_by_name: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    status_by_name: Mapping[str, Status] = field(default_factory=lambda: MappingProxyType({}))
    additional_field_ids: tuple[str, ...] = ()
    additional_fields_array_limit: int = DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT
    base_url: str | None = None

    @classmethod
    def build(
        cls,
        *,
        field_name_by_id: Mapping[str, str] | None = None,
        statuses: Iterable[tuple[str, str]] | None = None,
        additional_field_ids: Iterable[str] | None = None,
        additional_fields_array_limit: int | None = None,
        base_url: str | None = None,
    ) -> TransformerConfig:
        """Create a config from plain inputs.

        ``statuses`` is an iterable of ``(status name, category name)`` pairs as
        returned by Jira's workflow status listing. Names are normalized for
        lookup while the original spelling is kept as the status detail.
        """
        names = dict(field_name_by_id or {})
        status_by_name: dict[str, Status] = {}
        for name, category in statuses or ():
            if not name or not category:
                continue
            status_by_name[normalize_status_name(name)] = Status(category=category, detail=name)
        limit = additional_fields_array_limit
        if limit is None:
            limit = DEFAULT_ADDITIONAL_FIELDS_ARRAY_LIMIT
        return cls(
            field_name_by_id=MappingProxyType(names),
            field_ids_by_name=_freeze_ids_by_name(names),
            status_by_name=MappingProxyType(status_by_name),
            additional_field_ids=tuple(additional_field_ids or ()),
            additional_fields_array_limit=int(limit),
            base_url=base_url.rstrip("/") if base_url else None,
        )

    def field_ids(self, name: str) -> tuple[str, ...]:
        return self.field_ids_by_name.get(name, ())
