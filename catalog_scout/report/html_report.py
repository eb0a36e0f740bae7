# File: catalog_scout/report/html_report.py
"""catalog_scout.report.html_report: HTML crawl summary rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from catalog_scout.aggregator import CrawlStats

#: templates shipped with the package
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    stats: CrawlStats,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Render ``summary.html.j2`` for *stats* and save it to *output_path*.

    Args:
        stats: counters of the finished crawl.
        template_dir: directory with Jinja2 templates (packaged ones when None).
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.
    """
    template_dir = Path(template_dir) if template_dir is not None else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("summary.html.j2")

    context: dict[str, Any] = stats.to_dict()
    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
