"""Markdown rendering of aggregated releases."""

from __future__ import annotations

from collections.abc import Iterable

from ghchangelog.core.models import Category, Issue, Release

SECTION_TITLES: dict[Category, str] = {
    Category.BUG: "**Fixed bugs:**",
    Category.FEATURE: "**New features:**",
    Category.PULL_REQUEST: "**Merged pull requests:**",
}


def render_issue(issue: Issue) -> str:
    """One bullet line for an issue."""
    return f"- {issue.title} [\\#{issue.number}]({issue.url})"


def render_release(release: Release) -> str:
    """Heading and category sections for one release."""
    published = release.published_at.isoformat() if release.published_at else "unpublished"
    lines = [f"## [{release.tag_name}]({release.url}) ({published})", ""]

    for category in Category:
        issues = release.issues.get(category)
        if not issues:
            continue
        lines.append(SECTION_TITLES[category])
        lines.append("")
        lines.extend(render_issue(issue) for issue in issues)
        lines.append("")

    return "\n".join(lines)


def render_changelog(releases: Iterable[Release], title: str = "Change Log") -> str:
    """Render the full changelog document."""
    parts = [f"# {title}", ""]
    parts.extend(render_release(release) for release in releases)
    return "\n".join(parts).rstrip("\n") + "\n"
