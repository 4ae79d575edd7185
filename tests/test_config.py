"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from ghchangelog.config import ChangelogConfig
from ghchangelog.core.collector import MergePolicy
from ghchangelog.core.models import Category


class TestChangelogConfig:
    """Test ChangelogConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Test default values."""
        config = ChangelogConfig()
        assert config.api_url == "https://api.github.com"
        assert config.per_page == 100
        assert config.merge_policy is MergePolicy.PULL_REQUESTS
        assert config.exclude_unreleased is False
        assert config.output == Path("CHANGELOG.md")
        assert config.labels == {"bug": ["bug"], "feature": ["enhancement", "feature"]}

    def test_default_labels_not_shared(self) -> None:
        """Test each config gets its own copy of the default mapping."""
        first = ChangelogConfig()
        first.labels["bug"] = ["defect"]
        assert ChangelogConfig().labels["bug"] == ["bug"]

    def test_label_mapping(self) -> None:
        """Test the raw mapping converts to a label tree."""
        config = ChangelogConfig(labels={"bug": ["Bug", {"crashes": ["segfault"]}], "pull-request": ["deps"]})
        mapping = config.label_mapping()
        assert mapping.lookup("segfault") is Category.BUG
        assert mapping.lookup("DEPS") is Category.PULL_REQUEST

    def test_unknown_category_rejected(self) -> None:
        """Test unknown category keys fail validation."""
        with pytest.raises(ValidationError, match="Unknown category"):
            ChangelogConfig(labels={"docs": ["documentation"]})

    def test_bad_entry_rejected(self) -> None:
        """Test non-string leaves fail validation."""
        with pytest.raises(ValidationError, match="strings, lists or mappings"):
            ChangelogConfig(labels={"bug": [1, 2]})

    def test_per_page_bounds(self) -> None:
        """Test per_page is limited to GitHub's maximum."""
        with pytest.raises(ValidationError):
            ChangelogConfig(per_page=500)

    def test_resolved_token_prefers_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an explicit token wins over the environment."""
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert ChangelogConfig(token="cfg-token").resolved_token() == "cfg-token"
        assert ChangelogConfig().resolved_token() == "env-token"

    def test_resolved_token_anonymous(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test no token anywhere means anonymous access."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        assert ChangelogConfig().resolved_token() is None


class TestConfigFile:
    """Test loading and saving YAML config."""

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test a missing file yields defaults."""
        config = ChangelogConfig.load(tmp_path / "nope.yaml")
        assert config == ChangelogConfig()

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file yields defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert ChangelogConfig.load(path) == ChangelogConfig()

    def test_load_nested_labels(self, tmp_path: Path) -> None:
        """Test nested label mappings load from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            """
merge_policy: all
exclude_unreleased: true
title: Release History
labels:
  bug:
    - bug
    - regressions:
        - regression
        - crash
  feature: [enhancement, feature]
"""
        )

        config = ChangelogConfig.load(path)

        assert config.merge_policy is MergePolicy.ALL
        assert config.exclude_unreleased is True
        assert config.title == "Release History"
        assert config.label_mapping().lookup("Crash") is Category.BUG

    def test_load_invalid_labels(self, tmp_path: Path) -> None:
        """Test invalid label config in a file fails validation."""
        path = tmp_path / "config.yaml"
        path.write_text("labels:\n  chores: [chore]\n")
        with pytest.raises(ValidationError):
            ChangelogConfig.load(path)

    def test_save_omits_token(self, tmp_path: Path) -> None:
        """Test saved config round-trips without the token."""
        path = tmp_path / "nested" / "config.yaml"
        ChangelogConfig(token="secret", title="History").save(path)

        data = yaml.safe_load(path.read_text())
        assert "token" not in data
        assert data["title"] == "History"
        assert ChangelogConfig.load(path).title == "History"
