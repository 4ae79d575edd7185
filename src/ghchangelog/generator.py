"""End-to-end changelog generation for one repository."""

from __future__ import annotations

import logging
from datetime import datetime

from ghchangelog.config import ChangelogConfig
from ghchangelog.core.aggregator import ReleaseAggregator
from ghchangelog.core.cancellation import CancelToken
from ghchangelog.core.labels import LabelClassifier
from ghchangelog.core.models import Release
from ghchangelog.render.markdown import render_changelog
from ghchangelog.sync.github_client import GitHubClient

logger = logging.getLogger(__name__)


async def collect_releases(
    config: ChangelogConfig,
    owner: str,
    repo: str,
    since: datetime | None = None,
    cancel_token: CancelToken | None = None,
) -> list[Release]:
    """Fetch releases and file their issues.

    Args:
        config: Loaded configuration.
        owner: Repository owner.
        repo: Repository name.
        since: Only include releases published after this.
        cancel_token: Cancellation signal; built from config.run_timeout if None.

    Returns:
        Releases newest first with categorized issues.
    """
    if cancel_token is None:
        cancel_token = CancelToken(timeout=config.run_timeout)

    client = GitHubClient(
        token=config.resolved_token(),
        base_url=config.api_url,
        timeout=config.timeout,
        per_page=config.per_page,
        cancel_token=cancel_token,
    )
    if not client.authenticated:
        logger.warning("No GitHub token configured; using anonymous access (60 requests/hour)")

    aggregator = ReleaseAggregator(
        client,
        classifier=LabelClassifier(config.label_mapping()),
        merge_policy=config.merge_policy,
        exclude_unreleased=config.exclude_unreleased,
    )
    async with client:
        return await aggregator.aggregate(owner, repo, since=since)


async def generate_changelog(
    config: ChangelogConfig,
    owner: str,
    repo: str,
    since: datetime | None = None,
    cancel_token: CancelToken | None = None,
) -> str:
    """Build the Markdown changelog for a repository."""
    releases = await collect_releases(config, owner, repo, since=since, cancel_token=cancel_token)
    return render_changelog(releases, title=config.title)
