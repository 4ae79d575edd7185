"""Changelog generation from GitHub releases, issues and pull requests."""

__version__ = "0.1.0"
