"""Merge verification for pull-request-like issues.

The issues endpoint reports pull requests as closed whether or not they
were merged. The event timeline tells them apart: a merged pull request has
a ``merged`` (or ``referenced``) event that carries a commit SHA.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghchangelog.core.cancellation import CancelToken

if TYPE_CHECKING:
    from ghchangelog.sync.github_client import GitHubClient

logger = logging.getLogger(__name__)

MERGE_EVENTS = frozenset({"merged", "referenced"})


class MergeVerifier:
    """Checks an issue's event history for a merge."""

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        cancel_token: CancelToken | None = None,
    ) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self.cancel_token = cancel_token or client.cancel_token

    async def is_merged(self, issue_number: int) -> bool:
        """Whether the issue was merged.

        Args:
            issue_number: The issue or pull request number.

        Returns:
            True if any merged/referenced event carries a commit id.
        """
        self.cancel_token.raise_if_cancelled(f"fetching events of #{issue_number}")

        events = await self.client.list_issue_events(self.owner, self.repo, issue_number)
        for event in events:
            if event.event in MERGE_EVENTS and event.has_commit:
                logger.debug(f"#{issue_number} merged via '{event.event}' event ({event.commit_id})")
                return True

        logger.debug(f"#{issue_number} has no merge event among {len(events)} events")
        return False
