"""Configuration management for ghchangelog."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from ghchangelog.core.collector import MergePolicy
from ghchangelog.core.labels import DEFAULT_LABEL_MAPPING, LabelMapping
from ghchangelog.sync.github_client import DEFAULT_PER_PAGE, DEFAULT_TIMEOUT, GITHUB_API_BASE

DEFAULT_CONFIG_PATH = Path(".ghchangelog.yaml")


class ChangelogConfig(BaseModel):
    """ghchangelog configuration.

    Label mapping:
        labels maps a category (bug, feature, pull_request) to a label name,
        a list of entries, or a mapping of named groups of entries. Nesting
        depth is unlimited and matching ignores case.
    """

    token: str | None = Field(default=None, description="GitHub token (default: GITHUB_TOKEN env var, else anonymous)")
    api_url: str = Field(default=GITHUB_API_BASE, description="GitHub API root URL")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-request timeout in seconds")
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=100, description="Page size for list endpoints")
    run_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Abort the run between requests after this many seconds",
    )
    labels: dict[str, Any] = Field(
        default_factory=lambda: copy.deepcopy(DEFAULT_LABEL_MAPPING),
        description="Category to label mapping",
    )
    merge_policy: MergePolicy = Field(
        default=MergePolicy.PULL_REQUESTS,
        description="Verify merges for pull requests only, or for every classified issue",
    )
    exclude_unreleased: bool = Field(
        default=False,
        description="Leave out issues closed after the newest release",
    )
    output: Path = Field(default=Path("CHANGELOG.md"), description="Changelog file to write")
    title: str = Field(default="Change Log", description="Top-level heading of the changelog")

    @field_validator("labels")
    @classmethod
    def _check_labels(cls, value: dict[str, Any]) -> dict[str, Any]:
        # Fail at load time rather than halfway through a run
        try:
            LabelMapping.from_raw(value)
        except TypeError as e:
            raise ValueError(str(e)) from e
        return value

    def label_mapping(self) -> LabelMapping:
        """The validated label tree."""
        return LabelMapping.from_raw(self.labels)

    def resolved_token(self) -> str | None:
        """Token from config, then GITHUB_TOKEN; None for anonymous access."""
        return self.token or os.getenv("GITHUB_TOKEN") or None

    @classmethod
    def load(cls, config_path: Path | None = None) -> ChangelogConfig:
        """Load configuration from file or use defaults."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path) -> None:
        """Save configuration to file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.dump(self.model_dump(mode="json", exclude={"token"}), f, default_flow_style=False)
