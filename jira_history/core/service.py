"""IssueService: converts batches of raw Jira issues into Issue aggregates."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pandas as pd

from .config import CONVERSION_MAX_WORKERS, CONVERSION_MIN_PARALLEL, TransformerConfig
from .mappers import issues_to_dataframe, map_issue
from .models import Issue

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


class IssueService:
    """Run ``map_issue`` over many issues sharing one read-only config.

    Conversions carry no state between issues, so they may run on a thread
    pool. A failure on one issue is logged with its key and the issue is
    skipped; the rest of the batch is unaffected.
    """

    def __init__(
        self,
        config: TransformerConfig,
        *,
        max_workers: int = CONVERSION_MAX_WORKERS,
        min_parallel: int = CONVERSION_MIN_PARALLEL,
    ):
        self.config = config
        self.max_workers = max(1, max_workers)
        self.min_parallel = min_parallel

    def convert(self, raw: dict[str, Any]) -> Issue | None:
        key = raw.get("key") if isinstance(raw, dict) else None
        try:
            return map_issue(raw, self.config)
        except Exception as exc:
            logger.warning("Failed to convert issue %s, skipping: %s", key, exc)
            return None

    def convert_all(
        self,
        raw_issues: Sequence[dict[str, Any]],
        *,
        progress: ProgressCallback | None = None,
    ) -> list[Issue]:
        """Convert ``raw_issues`` preserving input order.

        Parameters
        ----------
        raw_issues : Sequence[dict]
            Raw issue JSON objects with ``changelog`` expanded.
        progress : callback, optional
            Called as ``progress(message, done, total)``.
        """
        total = len(raw_issues)
        if not total:
            return []
        if progress:
            progress("Reconstructing issue histories", 0, total)

        # Sequential short-circuit
        if total < self.min_parallel or self.max_workers == 1:
            results = []
            for idx, raw in enumerate(raw_issues, start=1):
                results.append(self.convert(raw))
                if progress:
                    progress("Reconstructing issue histories", idx, total)
            return [issue for issue in results if issue is not None]

        converted: list[Issue | None] = [None] * total
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for idx, issue in enumerate(pool.map(self.convert, raw_issues)):
                converted[idx] = issue
                if progress:
                    progress("Reconstructing issue histories", idx + 1, total)
        return [issue for issue in converted if issue is not None]

    def to_dataframe(self, raw_issues: Sequence[dict[str, Any]]) -> pd.DataFrame:
        return issues_to_dataframe(self.convert_all(raw_issues))
