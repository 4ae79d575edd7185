"""Release-by-release changelog aggregation.

Releases come from the API newest first. Each release owns the issues closed
after the release that precedes it chronologically, which is the next entry
in the list. The oldest release has no lower bound and takes whatever is
still pending.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ghchangelog.core.collector import IssueCollector, MergePolicy
from ghchangelog.core.labels import LabelClassifier
from ghchangelog.core.merge import MergeVerifier
from ghchangelog.core.models import IssuePool, Release

if TYPE_CHECKING:
    from ghchangelog.sync.github_client import GitHubClient

logger = logging.getLogger(__name__)


class NoReleasesError(Exception):
    """The repository has no published releases."""


def previous_release_date(releases: list[Release], index: int) -> datetime | None:
    """Publish date of the release chronologically before releases[index]."""
    if index + 1 < len(releases):
        return releases[index + 1].published_at
    return None


class ReleaseAggregator:
    """Builds the list of releases with their categorized issues."""

    def __init__(
        self,
        client: GitHubClient,
        classifier: LabelClassifier | None = None,
        merge_policy: MergePolicy = MergePolicy.PULL_REQUESTS,
        exclude_unreleased: bool = False,
    ) -> None:
        """Initialize the aggregator.

        Args:
            client: Open GitHubClient.
            classifier: Label classifier (default mapping if None).
            merge_policy: Which issues need merge verification.
            exclude_unreleased: Leave issues closed after the newest release
                out of the changelog instead of filing them under it.
        """
        self.client = client
        self.classifier = classifier or LabelClassifier()
        self.merge_policy = merge_policy
        self.exclude_unreleased = exclude_unreleased

    async def aggregate(self, owner: str, repo: str, since: datetime | None = None) -> list[Release]:
        """Collect issues for every release of a repository.

        Args:
            owner: Repository owner.
            repo: Repository name.
            since: Only releases published strictly after this are returned.
                Older releases still bound the interval of their successor.

        Returns:
            Releases newest first, each with its issues populated.

        Raises:
            NoReleasesError: If the repository has no published releases.
        """
        releases = [release for release in await self.client.list_releases(owner, repo) if not release.is_draft]
        if not releases:
            raise NoReleasesError(f"No releases found for {owner}/{repo}")

        logger.info(f"Found {len(releases)} releases for {owner}/{repo}")
        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        verifier = MergeVerifier(self.client, owner, repo)
        collector = IssueCollector(self.classifier, verifier, self.merge_policy)
        pool: IssuePool | None = None
        result: list[Release] = []

        for index, release in enumerate(releases):
            if since is not None and not (release.published_at and release.published_at > since):
                logger.debug(f"Skipping {release.tag_name}: published before {since.isoformat()}")
                continue

            if pool is None:
                pool = IssuePool(await self.client.list_closed_issues(owner, repo))
                logger.info(f"Fetched {len(pool)} closed issues for {owner}/{repo}")

            interval_start = previous_release_date(releases, index)
            interval_end = release.published_at if self.exclude_unreleased else None
            release.issues = await collector.collect(pool, interval_start, interval_end)
            logger.info(f"{release.tag_name}: {release.issue_count} issues")
            result.append(release)

        return result
