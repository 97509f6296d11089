"""Static HTML report generator — renders a comparison to a self-contained HTML file."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from roadmap_history.diff.engine import priority_level
from roadmap_history.schemas.delta import ComparisonExport

_TEMPLATE_DIR = Path(__file__).parent / "templates"

_PRIORITY_CLASSES = {3: "high", 2: "medium", 1: "low"}


def _priority_class(priority: str) -> str:
    return _PRIORITY_CLASSES.get(priority_level(priority), "unknown")


def render_comparison_html(export: ComparisonExport) -> str:
    """Render a comparison export into a printable HTML report."""
    env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)
    env.filters["priority_class"] = _priority_class
    template = env.get_template("comparison.html")

    return template.render(
        before=export.before,
        after=export.after,
        delta=export.comparison,
        stats=export.comparison.statistics,
        metrics=export.metrics,
        exported_at=export.exported_at,
    )
