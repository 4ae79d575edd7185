"""Assignment of closed issues to a release interval."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from ghchangelog.core.labels import LabelClassifier
from ghchangelog.core.merge import MergeVerifier
from ghchangelog.core.models import Category, Issue, IssuePool

logger = logging.getLogger(__name__)


class MergePolicy(str, Enum):
    """Which classified issues must pass merge verification."""

    PULL_REQUESTS = "pull_requests"  # pull requests and the pull-request category
    ALL = "all"  # every classified issue


class IssueCollector:
    """Takes the issues of one release interval out of the pending pool.

    Issues that fall in the interval leave the pool whether or not they end
    up in the changelog: an unlabelled issue or an unmerged pull request is
    dropped for good rather than offered to an older release.
    """

    def __init__(
        self,
        classifier: LabelClassifier,
        verifier: MergeVerifier,
        merge_policy: MergePolicy = MergePolicy.PULL_REQUESTS,
    ) -> None:
        self.classifier = classifier
        self.verifier = verifier
        self.merge_policy = merge_policy

    @staticmethod
    def in_interval(issue: Issue, interval_start: datetime | None, interval_end: datetime | None = None) -> bool:
        """Whether the issue was closed after interval_start (and not after interval_end)."""
        if interval_start is not None and issue.closed_at <= interval_start:
            return False
        return interval_end is None or issue.closed_at <= interval_end

    def categorize(self, issue: Issue) -> Category | None:
        """Category from labels, falling back to the pull-request marker."""
        category = self.classifier.classify(issue.labels)
        if category is None and issue.is_pull_request:
            category = Category.PULL_REQUEST
        return category

    def needs_verification(self, issue: Issue, category: Category) -> bool:
        """Whether the issue must show a merge event to be kept."""
        if self.merge_policy is MergePolicy.ALL:
            return True
        return issue.is_pull_request or category is Category.PULL_REQUEST

    async def collect(
        self,
        pool: IssuePool,
        interval_start: datetime | None,
        interval_end: datetime | None = None,
    ) -> dict[Category, list[Issue]]:
        """Collect the issues closed in an interval, grouped by category.

        Args:
            pool: Pending issues; every issue in the interval is removed.
            interval_start: Publish time of the previous release, or None
                when there is no earlier release.
            interval_end: Optional upper bound; issues closed after it stay
                in the pool.

        Returns:
            Category to issues in pool order. Empty categories are absent.
        """
        candidates = pool.take(lambda issue: self.in_interval(issue, interval_start, interval_end))
        grouped: dict[Category, list[Issue]] = {}

        for issue in candidates:
            category = self.categorize(issue)
            if category is None:
                logger.debug(f"Dropping #{issue.number}: no matching label")
                continue

            if self.needs_verification(issue, category):
                if not await self.verifier.is_merged(issue.number):
                    logger.info(f"Dropping #{issue.number} ({issue.title}): closed without merge")
                    continue

            grouped.setdefault(category, []).append(issue)

        logger.debug(
            f"Collected {sum(len(v) for v in grouped.values())} of {len(candidates)} issues "
            f"closed after {interval_start.isoformat() if interval_start else 'the beginning'}"
        )
        return grouped
