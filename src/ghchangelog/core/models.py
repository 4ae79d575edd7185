"""Data models for releases, issues and issue events.

Records are decoded from GitHub REST API v3 payloads:
https://docs.github.com/en/rest/releases and https://docs.github.com/en/rest/issues
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class MalformedResponseError(Exception):
    """The API returned a payload with an unexpected shape."""


class Category(str, Enum):
    """Changelog section an issue is filed under."""

    BUG = "bug"
    FEATURE = "feature"
    PULL_REQUEST = "pull_request"

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Parse a category name, ignoring case and '-' vs '_'."""
        if isinstance(value, Category):
            return value
        normalized = value.strip().casefold().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown category '{value}'. Expected one of: {valid}") from None


def parse_timestamp(value: Any, field_name: str) -> datetime:
    """Parse an ISO 8601 API timestamp into an aware datetime."""
    if not isinstance(value, str):
        raise MalformedResponseError(f"Expected ISO 8601 string for '{field_name}', got {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedResponseError(f"Invalid timestamp for '{field_name}': {value!r}") from e
    if parsed.tzinfo is None:
        # GitHub always sends UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: dict[str, Any], key: str, kind: str, expected: type | None = None) -> Any:
    if key not in data:
        raise MalformedResponseError(f"{kind} record is missing '{key}'")
    value = data[key]
    if expected is not None and not isinstance(value, expected):
        raise MalformedResponseError(f"{kind} field '{key}' should be {expected.__name__}, got {value!r}")
    return value


def _require_int(data: dict[str, Any], key: str, kind: str) -> int:
    value = _require(data, key, kind, int)
    # bool is an int subclass
    if isinstance(value, bool):
        raise MalformedResponseError(f"{kind} field '{key}' should be int, got {value!r}")
    return value


@dataclass(frozen=True)
class Issue:
    """A closed issue or pull request."""

    number: int
    title: str
    url: str
    closed_at: datetime
    labels: tuple[str, ...] = ()
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Issue:
        """Build an Issue from a /issues record."""
        raw_labels = data.get("labels") or []
        if not isinstance(raw_labels, list):
            raise MalformedResponseError(f"Issue field 'labels' should be list, got {raw_labels!r}")
        labels = []
        for label in raw_labels:
            # Labels come back as objects, but older payloads used bare names
            if isinstance(label, dict):
                labels.append(_require(label, "name", "Label", str))
            else:
                labels.append(str(label))

        return cls(
            number=_require_int(data, "number", "Issue"),
            title=str(data.get("title") or ""),
            url=str(data.get("html_url") or ""),
            closed_at=parse_timestamp(_require(data, "closed_at", "Issue"), "closed_at"),
            labels=tuple(labels),
            is_pull_request=data.get("pull_request") is not None,
        )


@dataclass(frozen=True)
class Event:
    """An entry in an issue's event timeline."""

    event: str
    commit_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Event:
        """Build an Event from an /issues/{number}/events record."""
        return cls(event=_require(data, "event", "Event", str), commit_id=data.get("commit_id"))

    @property
    def has_commit(self) -> bool:
        """Whether the event references a commit."""
        return bool(self.commit_id)


@dataclass
class Release:
    """A published release and the issues filed under it."""

    tag_name: str
    url: str
    published_at: datetime | None
    draft: bool = False
    issues: dict[Category, list[Issue]] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Release:
        """Build a Release from a /releases record."""
        published = data.get("published_at")
        return cls(
            tag_name=_require(data, "tag_name", "Release", str),
            url=str(data.get("html_url") or ""),
            published_at=parse_timestamp(published, "published_at") if published is not None else None,
            draft=bool(data.get("draft", False)),
        )

    @property
    def is_draft(self) -> bool:
        """Drafts are flagged by the API and have no publish date."""
        return self.draft or self.published_at is None

    @property
    def issue_count(self) -> int:
        """Total number of issues across all categories."""
        return sum(len(issues) for issues in self.issues.values())


class IssuePool:
    """Pending issues not yet assigned to a release.

    Issues are kept in API order. take() hands matching issues over to the
    caller and removes them, so each issue is handed out at most once.
    """

    def __init__(self, issues: Iterable[Issue] = ()) -> None:
        self._issues: dict[int, Issue] = {}
        for issue in issues:
            self._issues.setdefault(issue.number, issue)

    def __len__(self) -> int:
        return len(self._issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(list(self._issues.values()))

    def __contains__(self, number: object) -> bool:
        return number in self._issues

    def take(self, predicate: Callable[[Issue], bool]) -> list[Issue]:
        """Remove and return every issue matching predicate, in pool order."""
        taken = [issue for issue in self._issues.values() if predicate(issue)]
        for issue in taken:
            del self._issues[issue.number]
        return taken
