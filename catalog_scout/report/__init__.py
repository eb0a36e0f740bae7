"""catalog_scout.report: result stream and summary reports (JSON and HTML) used by the CLI."""

from __future__ import annotations

from .html_report import render_html
from .json_report import ResultStream, render_json

__all__ = ["ResultStream", "render_json", "render_html"]
