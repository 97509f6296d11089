"""Markdown report builder — renders a roadmap comparison to Markdown."""

from __future__ import annotations

from roadmap_history.schemas.delta import ComparisonExport, PhaseChange

_PRIORITY_ICONS = {"high": "🔴", "medium": "🟡", "low": "🟢"}


def _priority_icon(priority: str) -> str:
    return _PRIORITY_ICONS.get(priority.lower(), "⚪")


def _render_phase_change(change: PhaseChange) -> list[str]:
    lines = [f"### {change.name}\n"]

    if change.priority_changed:
        p = change.priority_changed
        direction = "escalated" if change.metadata.priority_change > 0 else (
            "de-escalated" if change.metadata.priority_change < 0 else "relabelled"
        )
        lines.append(
            f"- **Priority:** {_priority_icon(p.from_)} {p.from_} → "
            f"{_priority_icon(p.to)} {p.to} ({direction})"
        )
    if change.duration_changed:
        lines.append(f"- **Duration:** {change.duration_changed.from_} → {change.duration_changed.to}")
    if change.description_changed:
        lines.append("- **Description** changed")
    if change.dependencies_changed:
        deps = change.dependencies_changed
        if deps.added or deps.removed:
            lines.append("- **Dependencies:**")
            for d in deps.added:
                lines.append(f"  - ➕ {d}")
            for d in deps.removed:
                lines.append(f"  - ➖ {d}")
        else:
            lines.append("- **Dependencies** changed")

    tasks = change.task_changes
    if tasks.added or tasks.removed:
        meta = change.metadata
        lines.append(
            f"- **Tasks:** {meta.task_count.before} → {meta.task_count.after} "
            f"({meta.task_change_percentage:.0f}% changed)"
        )
        for t in tasks.added:
            lines.append(f"  - ➕ {t}")
        for t in tasks.removed:
            lines.append(f"  - ➖ {t}")

    lines.append("")
    return lines


def render_markdown_comparison(export: ComparisonExport) -> str:
    """Render a comparison export into a Markdown string."""
    delta = export.comparison
    metrics = export.metrics
    stats = delta.statistics
    sections: list[str] = []

    sections.append(f"# Roadmap Comparison: {export.before.name} → {export.after.name}\n")
    sections.append(f"*Generated: {export.exported_at}*\n")

    # Overview
    sections.append("## Overview\n")
    sections.append("| | Before | After |")
    sections.append("|---|---|---|")
    sections.append(f"| Phases | {stats.phase_count.before} | {stats.phase_count.after} |")
    sections.append(f"| Tasks | {stats.task_count.before} | {stats.task_count.after} |")
    sections.append("")
    sections.append(f"- **Tasks added:** {stats.added_tasks_count}")
    sections.append(f"- **Tasks removed:** {stats.removed_tasks_count}")
    sections.append(f"- **Task change:** {stats.change_percentage:.1f}%")
    sections.append(f"- **Overall phase change:** {metrics.overall_change_percent:.1f}%")
    sections.append(f"- **Priority changes:** {metrics.priority_changes}")
    sections.append(f"- **Duration changes:** {metrics.duration_changes}")
    sections.append(f"- **Summary changed:** {'yes' if delta.summary_changed else 'no'}")
    sections.append("")

    if delta.summary_changed:
        sections.append("### Summary\n")
        sections.append(f"**Before:** {export.before.roadmap_data.summary}\n")
        sections.append(f"**After:** {export.after.roadmap_data.summary}\n")

    if delta.added_phases:
        sections.append("## Added Phases\n")
        for phase in delta.added_phases:
            sections.append(
                f"- {_priority_icon(phase.priority)} **{phase.name}** "
                f"({phase.duration}, {len(phase.tasks)} tasks): {phase.description}"
            )
        sections.append("")

    if delta.removed_phases:
        sections.append("## Removed Phases\n")
        for phase in delta.removed_phases:
            sections.append(
                f"- {_priority_icon(phase.priority)} **{phase.name}** "
                f"({phase.duration}, {len(phase.tasks)} tasks)"
            )
        sections.append("")

    if delta.modified_phases:
        sections.append("## Modified Phases\n")
        for change in delta.modified_phases:
            sections.extend(_render_phase_change(change))

    if not (delta.added_phases or delta.removed_phases or delta.modified_phases):
        sections.append("*No phase changes between these roadmaps.*\n")

    return "\n".join(sections)
