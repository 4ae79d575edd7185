"""GitHub API client using httpx for changelog data collection.

This module provides an async HTTP client for the read-only GitHub API
operations a changelog needs: listing releases, closed issues and issue
events. Every list endpoint is paginated by following the
``Link: <...>; rel="next"`` response header.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from ghchangelog.core.cancellation import CancelToken
from ghchangelog.core.models import Event, Issue, MalformedResponseError, Release

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PER_PAGE = 100
USER_AGENT = "ghchangelog"


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""


class ApiError(GitHubClientError):
    """HTTP transport or status failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(ApiError):
    """Authentication with GitHub failed."""


class GitHubRateLimitError(ApiError):
    """GitHub API rate limit exceeded."""

    def __init__(self, message: str, reset_at: int | None = None) -> None:
        super().__init__(message, status_code=403)
        self.reset_at = reset_at  # Unix timestamp when rate limit resets


class GitHubNotFoundError(ApiError):
    """Requested resource not found."""


class GitHubClient:
    """Async GitHub API client for release and issue retrieval.

    Authentication is optional: without a token requests are anonymous and
    subject to the lower unauthenticated rate limit. Requests are never
    retried; failures propagate to the caller.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GITHUB_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        per_page: int = DEFAULT_PER_PAGE,
        cancel_token: CancelToken | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub token. If None, reads from GITHUB_TOKEN env var;
                if that is unset too, requests are anonymous.
            base_url: API root URL.
            timeout: Request timeout in seconds.
            per_page: Page size requested from list endpoints (max 100).
            cancel_token: Checked before every page fetch.
            transport: Custom httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.per_page = per_page
        self.cancel_token = cancel_token or CancelToken()
        self._transport = transport

        # Empty string means explicitly anonymous
        self._token = token if token is not None else os.getenv("GITHUB_TOKEN")

        # Build headers - never log the token!
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

        self._client: httpx.AsyncClient | None = None

    @property
    def authenticated(self) -> bool:
        """Whether requests carry a token."""
        return bool(self._token)

    async def __aenter__(self) -> GitHubClient:
        """Enter async context manager."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, ensuring it's initialized."""
        if self._client is None:
            raise RuntimeError("GitHubClient must be used as async context manager")
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make a single HTTP request and map failures to client errors.

        Args:
            method: HTTP method.
            endpoint: API endpoint path or absolute URL (pagination links).
            **kwargs: Additional arguments passed to httpx request.

        Returns:
            httpx.Response object.

        Raises:
            GitHubAuthError: If authentication fails.
            GitHubRateLimitError: If the rate limit is exhausted.
            GitHubNotFoundError: If resource is not found.
            ApiError: For transport failures and other error statuses.
        """
        try:
            response = await self.client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiError(f"Request timeout for {endpoint}") from e
        except httpx.HTTPError as e:
            raise ApiError(f"HTTP error for {endpoint}: {e}") from e

        # Handle rate limiting
        if response.status_code in (403, 429):
            remaining = response.headers.get("X-RateLimit-Remaining")
            if remaining == "0" or response.status_code == 429:
                reset_header = response.headers.get("X-RateLimit-Reset", "")
                reset_at = int(reset_header) if reset_header.isdigit() else None
                message = "GitHub API rate limit exceeded."
                if reset_at is not None:
                    message += f" Resets at {reset_at}"
                raise GitHubRateLimitError(
                    message,
                    reset_at=reset_at,
                )

        # Handle auth errors
        if response.status_code == 401:
            raise GitHubAuthError("GitHub authentication failed. Check your token.", status_code=401)

        # Handle not found
        if response.status_code == 404:
            raise GitHubNotFoundError(f"Resource not found: {endpoint}", status_code=404)

        # Handle other errors
        if response.status_code >= 400:
            error_body = response.text
            logger.error(f"GitHub API error {response.status_code}: {error_body[:200]}")
            raise ApiError(
                f"GitHub API error {response.status_code}: {error_body[:200]}",
                status_code=response.status_code,
            )

        return response

    @staticmethod
    def _decode_page(response: httpx.Response, endpoint: str) -> list[dict[str, Any]]:
        """Decode one page of a list endpoint.

        An empty body is an empty page. Anything else must be a JSON array of
        objects.
        """
        if not response.content.strip():
            return []

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(f"Response from {endpoint} is not valid JSON") from e

        if not isinstance(data, list):
            raise MalformedResponseError(f"Expected a JSON array from {endpoint}, got {type(data).__name__}")
        for item in data:
            if not isinstance(item, dict):
                raise MalformedResponseError(f"Expected JSON objects in array from {endpoint}, got {type(item).__name__}")
        return data

    # =========================================================================
    # Pagination
    # =========================================================================

    async def fetch_paginated(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint.

        Starts at page 1 and follows the ``rel="next"`` link until the
        server stops advertising one. Records are returned in page order.

        Args:
            endpoint: API endpoint (e.g., "/repos/owner/repo/issues").
            params: Extra query parameters for the first page.

        Returns:
            Concatenated records from all pages.

        Raises:
            OperationCancelledError: If the cancel token fires between pages.
        """
        query: dict[str, str] | None = {**(params or {}), "page": "1", "per_page": str(self.per_page)}
        records: list[dict[str, Any]] = []
        url: str | None = endpoint
        page = 1

        while url is not None:
            self.cancel_token.raise_if_cancelled(f"fetching page {page} of {endpoint}")

            response = await self._request("GET", url, params=query)
            records.extend(self._decode_page(response, endpoint))
            logger.debug(f"Fetched page {page} of {endpoint} ({len(records)} records so far)")

            next_link = response.links.get("next")
            # The next link carries the full query string already
            url = next_link.get("url") if next_link else None
            query = None
            page += 1

        return records

    # =========================================================================
    # Resource Operations
    # =========================================================================

    async def list_releases(self, owner: str, repo: str) -> list[Release]:
        """List a repository's releases, newest first.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            Releases in the order GitHub returns them.
        """
        data = await self.fetch_paginated(f"/repos/{owner}/{repo}/releases")
        return [Release.from_api(item) for item in data]

    async def list_closed_issues(self, owner: str, repo: str) -> list[Issue]:
        """List every closed issue and pull request in a repository.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            Closed issues in API order.
        """
        data = await self.fetch_paginated(f"/repos/{owner}/{repo}/issues", {"state": "closed"})
        return [Issue.from_api(item) for item in data]

    async def list_issue_events(self, owner: str, repo: str, issue_number: int) -> list[Event]:
        """List the timeline events of a single issue.

        Args:
            owner: Repository owner.
            repo: Repository name.
            issue_number: The issue number.

        Returns:
            Events in API order.
        """
        data = await self.fetch_paginated(f"/repos/{owner}/{repo}/issues/{issue_number}/events")
        return [Event.from_api(item) for item in data]
