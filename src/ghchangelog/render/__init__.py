"""Changelog renderers."""

from ghchangelog.render.markdown import render_changelog, render_release

__all__ = ["render_changelog", "render_release"]
