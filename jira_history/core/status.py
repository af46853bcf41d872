"""Status normalization and category resolution.

Statuses are looked up by a normalized name so that "In Progress",
"in progress" and "InProgress" resolve to the same workflow status. The
lookup table itself comes from ``TransformerConfig.status_by_name``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from .models import Status

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_status_name(value: str | None) -> str:
    """Collapse a raw status name into its lookup key.

    Parameters
    ----------
    value : str | None
        Raw status name from Jira.

    Returns
    -------
    str
        Lowercase name with all whitespace removed ("" for empty input).

    Examples
    --------
    >>> normalize_status_name("In Progress")
    'inprogress'
    >>> normalize_status_name(None)
    ''
    """
    if not value:
        return ""
    return _WHITESPACE.sub("", str(value)).lower()


def clean_status_name(value: str | None) -> str | None:
    """Sanitize a status string, converting null-like values to None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in {"nan", "none", "null"}:
        return None
    return text


class StatusResolver:
    """Resolve raw status names to ``Status`` using a read-only table."""

    __slots__ = ("_status_by_name",)

    def __init__(self, status_by_name: Mapping[str, Status]):
        self._status_by_name = status_by_name

    def resolve(self, name: str, issue_key: str | None = None) -> Status:
        """Return the category/detail for ``name``.

        Unknown names never fail the issue: they fall back to a status whose
        category and detail are both the raw name, and a warning is logged.
        """
        status = self._status_by_name.get(normalize_status_name(name))
        if status is not None:
            return status
        logger.warning(
            "Issue %s: status '%s' not found in statuses, reverting to original status",
            issue_key,
            name,
        )
        return Status(category=name, detail=name)
