# File: site_digest/report/__init__.py
"""site_digest.report: JSON and HTML report writers used by the CLI."""

from __future__ import annotations

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
