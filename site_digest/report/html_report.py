"""site_digest.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_digest.aggregator import CrawlReport

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    report: CrawlReport,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
    *,
    preview_size: int = 300,
) -> Path:
    """Render the report template and save it at *output_path*.

    Args:
        report: the CrawlReport.
        template_dir: directory holding ``report.html.j2``; *None* uses the bundled one.
        output_path: where the HTML file goes.
        preview_size: characters of content shown per page.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from site_digest.report.html_report import render_html
    html_path = render_html(report, template_dir=None, output_path='reports/report.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    summary: Optional[str] = report.summary
    context: dict[str, Any] = {
        "query": report.query,
        "timestamp": report.timestamp,
        "total_pages": report.total_pages,
        "max_depth": report.max_depth,
        "depth_groups": report.depth_groups,
        "summary": summary,
        "preview_size": preview_size,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
