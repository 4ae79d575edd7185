"""CLI interface for ghchangelog."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from ghchangelog import __version__
from ghchangelog.config import ChangelogConfig
from ghchangelog.core.aggregator import NoReleasesError
from ghchangelog.core.cancellation import OperationCancelledError
from ghchangelog.core.collector import MergePolicy
from ghchangelog.core.models import MalformedResponseError
from ghchangelog.generator import generate_changelog
from ghchangelog.sync.github_client import GitHubClientError

app = typer.Typer(
    name="ghchangelog",
    help="Generate a changelog from GitHub releases, issues and merged pull requests.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_path: Path | None) -> ChangelogConfig:
    try:
        return ChangelogConfig.load(config_path)
    except (ValidationError, yaml.YAMLError) as e:
        err_console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def generate(
    owner: Annotated[str, typer.Argument(help="Repository owner (user or organization)")],
    repo: Annotated[str, typer.Argument(help="Repository name")],
    token: Annotated[
        str | None,
        typer.Option("--token", "-t", help="GitHub token (default: GITHUB_TOKEN env var)"),
    ] = None,
    since: Annotated[
        datetime | None,
        typer.Option("--since", "-s", formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"], help="Only releases published after this date"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (default: .ghchangelog.yaml)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Changelog file to write (default: CHANGELOG.md)"),
    ] = None,
    stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Print the changelog instead of writing a file"),
    ] = False,
    merge_policy: Annotated[
        MergePolicy | None,
        typer.Option("--merge-policy", help="Which issues need a merge event: pull_requests or all"),
    ] = None,
    exclude_unreleased: Annotated[
        bool,
        typer.Option("--exclude-unreleased", help="Leave out issues closed after the newest release"),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Abort the run after this many seconds"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Generate a changelog for OWNER/REPO.

    Examples:
        ghchangelog generate octocat hello-world
        ghchangelog generate octocat hello-world --since 2024-01-01 --stdout
    """
    _configure_logging(verbose)
    config = _load_config(config_path)

    overrides: dict[str, object] = {}
    if token is not None:
        overrides["token"] = token
    if output is not None:
        overrides["output"] = output
    if merge_policy is not None:
        overrides["merge_policy"] = merge_policy
    if exclude_unreleased:
        overrides["exclude_unreleased"] = True
    if timeout is not None:
        overrides["run_timeout"] = timeout
    if overrides:
        try:
            config = ChangelogConfig.model_validate({**config.model_dump(), **overrides})
        except ValidationError as e:
            err_console.print(f"[red]Invalid option:[/red] {e}")
            raise typer.Exit(1) from e

    if not stdout:
        console.print(f"[bold]Generating changelog for[/bold] {owner}/{repo}")

    try:
        changelog = asyncio.run(generate_changelog(config, owner, repo, since=since))
    except NoReleasesError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except OperationCancelledError as e:
        err_console.print(f"[yellow]Cancelled:[/yellow] {e}")
        raise typer.Exit(1) from e
    except (GitHubClientError, MalformedResponseError) as e:
        err_console.print(f"[red]GitHub API error:[/red] {e}")
        raise typer.Exit(1) from e

    if stdout:
        typer.echo(changelog, nl=False)
        return

    config.output.parent.mkdir(parents=True, exist_ok=True)
    config.output.write_text(changelog, encoding="utf-8")
    console.print(f"[green]Changelog written to[/green] {config.output}")


@app.command()
def version() -> None:
    """Show the ghchangelog version."""
    console.print(f"ghchangelog {__version__}")


if __name__ == "__main__":
    app()
