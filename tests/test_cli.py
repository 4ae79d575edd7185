"""Tests for the ghchangelog CLI."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from ghchangelog.cli import app
from ghchangelog.config import ChangelogConfig
from ghchangelog.core.aggregator import NoReleasesError
from ghchangelog.core.cancellation import OperationCancelledError
from ghchangelog.core.collector import MergePolicy
from ghchangelog.sync.github_client import GitHubAuthError

runner = CliRunner()

CHANGELOG = "# Change Log\n\n## [v1.0](u) (2024-01-01T00:00:00+00:00)\n"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test in an empty directory so no stray config is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return tmp_path


class TestCliBasics:
    """Test help and version output."""

    def test_help(self) -> None:
        """Test the generate command documents its options."""
        result = runner.invoke(app, ["generate", "--help"])
        assert result.exit_code == 0
        assert "--since" in result.output
        assert "--token" in result.output

    def test_version(self) -> None:
        """Test the version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "ghchangelog" in result.output


class TestGenerateCommand:
    """Test the generate command."""

    def test_writes_file(self, isolated_cwd: Path) -> None:
        """Test the changelog is written to the default output path."""
        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            mock_generate.return_value = CHANGELOG
            result = runner.invoke(app, ["generate", "octo", "hello"])

        assert result.exit_code == 0, result.output
        assert (isolated_cwd / "CHANGELOG.md").read_text() == CHANGELOG
        args = mock_generate.call_args
        assert args.args[1:] == ("octo", "hello")
        assert args.kwargs["since"] is None

    def test_stdout(self, isolated_cwd: Path) -> None:
        """Test --stdout prints instead of writing."""
        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            mock_generate.return_value = CHANGELOG
            result = runner.invoke(app, ["generate", "octo", "hello", "--stdout"])

        assert result.exit_code == 0
        assert CHANGELOG in result.output
        assert not (isolated_cwd / "CHANGELOG.md").exists()

    def test_options_override_config(self, isolated_cwd: Path) -> None:
        """Test CLI options land in the config passed to the generator."""
        (isolated_cwd / ".ghchangelog.yaml").write_text("title: History\n")

        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            mock_generate.return_value = CHANGELOG
            result = runner.invoke(
                app,
                [
                    "generate",
                    "octo",
                    "hello",
                    "--token",
                    "abc",
                    "--since",
                    "2024-02-01",
                    "--output",
                    "docs/CHANGES.md",
                    "--merge-policy",
                    "all",
                    "--exclude-unreleased",
                    "--timeout",
                    "60",
                ],
            )

        assert result.exit_code == 0, result.output
        config: ChangelogConfig = mock_generate.call_args.args[0]
        assert config.title == "History"
        assert config.token == "abc"
        assert config.merge_policy is MergePolicy.ALL
        assert config.exclude_unreleased is True
        assert config.run_timeout == 60
        assert mock_generate.call_args.kwargs["since"].isoformat().startswith("2024-02-01")
        assert (isolated_cwd / "docs" / "CHANGES.md").exists()

    @pytest.mark.parametrize(
        ("error", "message"),
        [
            (NoReleasesError("No releases found for octo/hello"), "No releases found"),
            (GitHubAuthError("GitHub authentication failed. Check your token."), "authentication failed"),
            (OperationCancelledError("Changelog run deadline exceeded"), "deadline exceeded"),
        ],
    )
    def test_errors_exit_nonzero(self, isolated_cwd: Path, error: Exception, message: str) -> None:
        """Test pipeline errors exit with status 1 and write nothing."""
        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            mock_generate.side_effect = error
            result = runner.invoke(app, ["generate", "octo", "hello"])

        assert result.exit_code == 1
        assert message in result.output
        assert not (isolated_cwd / "CHANGELOG.md").exists()

    @pytest.mark.parametrize("timeout", ["0", "-5"])
    def test_non_positive_timeout_rejected(self, timeout: str) -> None:
        """Test --timeout is validated like the config file value."""
        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            result = runner.invoke(app, ["generate", "octo", "hello", f"--timeout={timeout}"])

        assert result.exit_code == 1
        assert "Invalid option" in result.output
        mock_generate.assert_not_called()

    def test_invalid_config_exits(self, isolated_cwd: Path) -> None:
        """Test a bad config file exits before any API call."""
        (isolated_cwd / ".ghchangelog.yaml").write_text("labels:\n  chores: [chore]\n")

        with patch("ghchangelog.cli.generate_changelog", new_callable=AsyncMock) as mock_generate:
            result = runner.invoke(app, ["generate", "octo", "hello"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_generate.assert_not_called()
