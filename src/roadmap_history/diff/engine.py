"""Roadmap comparison engine — pure diffing of two roadmap versions.

Phases are matched by ``name``; tasks and dependencies by exact string
equality.  Nothing here performs I/O or mutates its arguments, so the
functions are safe to call from any thread or event loop.

Precondition: both roadmaps are well-formed ``Roadmap`` models.  Missing
fields are rejected by pydantic when the models are built, not here.

When a roadmap repeats a phase name, the first phase with that name is
the one compared.  ``duplicate_phase_names`` reports such names so callers
can warn or reject.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from roadmap_history.schemas.delta import (
    ChangeKind,
    ComparisonExport,
    ComparisonMetrics,
    ComparisonSide,
    CountPair,
    DependencyChanges,
    DiffStatistics,
    PhaseChange,
    PhaseMetadata,
    RoadmapDelta,
    TaskChanges,
    ValueChange,
)
from roadmap_history.schemas.roadmap import Phase, Roadmap

logger = logging.getLogger(__name__)

_PRIORITY_LEVELS = {"high": 3, "medium": 2, "low": 1}

_DiffFn = Callable[[Sequence[str], Sequence[str]], TaskChanges]


def priority_level(priority: str) -> int:
    """Map a priority label to a number: high=3, medium=2, low=1, else 0."""
    return _PRIORITY_LEVELS.get(priority.lower(), 0)


def _presence_diff(before: Sequence[str], after: Sequence[str]) -> TaskChanges:
    """Membership-based diff.  Duplicate entries are not counted separately."""
    before_set = set(before)
    after_set = set(after)
    return TaskChanges(
        added=[item for item in after if item not in before_set],
        removed=[item for item in before if item not in after_set],
        unchanged=[item for item in before if item in after_set],
    )


def _multiset_diff(before: Sequence[str], after: Sequence[str]) -> TaskChanges:
    """Count-aware diff: two copies before and one after is one removal."""
    available = Counter(after)
    removed: list[str] = []
    unchanged: list[str] = []
    for item in before:
        if available[item] > 0:
            available[item] -= 1
            unchanged.append(item)
        else:
            removed.append(item)

    matched = Counter(unchanged)
    added: list[str] = []
    for item in after:
        if matched[item] > 0:
            matched[item] -= 1
        else:
            added.append(item)

    return TaskChanges(added=added, removed=removed, unchanged=unchanged)


def _dependency_changes(
    before: list[str] | None,
    after: list[str] | None,
    diff: _DiffFn,
) -> DependencyChanges | None:
    """Return the dependency delta, or ``None`` when dependencies are unchanged."""
    if before is not None and after is not None:
        # sorted() copies; the phases' own lists keep their order.
        if sorted(before) == sorted(after):
            return None
        changes = diff(before, after)
        return DependencyChanges(added=changes.added, removed=changes.removed)
    if before is not None or after is not None:
        return DependencyChanges()
    return None


def _compare_phase(name: str, phase1: Phase, phase2: Phase, diff: _DiffFn) -> PhaseChange | None:
    task_changes = diff(phase1.tasks, phase2.tasks)

    priority_changed = phase1.priority != phase2.priority
    duration_changed = phase1.duration != phase2.duration
    description_changed = phase1.description != phase2.description
    dependency_changes = _dependency_changes(phase1.dependencies, phase2.dependencies, diff)

    if not (
        task_changes.added
        or task_changes.removed
        or priority_changed
        or duration_changed
        or description_changed
        or dependency_changes is not None
    ):
        return None

    level_before = priority_level(phase1.priority)
    level_after = priority_level(phase2.priority)
    tasks_before = len(phase1.tasks)
    touched = len(task_changes.added) + len(task_changes.removed)

    return PhaseChange(
        name=name,
        task_changes=task_changes,
        priority_changed=(
            ValueChange(from_=phase1.priority, to=phase2.priority) if priority_changed else None
        ),
        duration_changed=(
            ValueChange(from_=phase1.duration, to=phase2.duration) if duration_changed else None
        ),
        description_changed=description_changed,
        dependencies_changed=dependency_changes,
        metadata=PhaseMetadata(
            task_count=CountPair(before=tasks_before, after=len(phase2.tasks)),
            task_change_percentage=(touched / tasks_before * 100) if tasks_before else 0.0,
            priority_level=CountPair(before=level_before, after=level_after),
            priority_change=level_after - level_before,
        ),
    )


def _first_by_name(phases: Iterable[Phase]) -> dict[str, Phase]:
    index: dict[str, Phase] = {}
    for phase in phases:
        index.setdefault(phase.name, phase)
    return index


def _total_tasks(phases: Iterable[Phase]) -> int:
    return sum(len(phase.tasks) for phase in phases)


def compare_roadmaps(older: Roadmap, newer: Roadmap, *, multiset: bool = False) -> RoadmapDelta:
    """Compare two roadmap versions and return the structured delta.

    ``multiset=True`` switches task and dependency diffs to count-aware
    matching.  The default keeps membership semantics, where repeated
    identical tasks collapse into one.
    """
    diff: _DiffFn = _multiset_diff if multiset else _presence_diff

    older_index = _first_by_name(older.phases)
    newer_index = _first_by_name(newer.phases)

    added_phases = [p for p in newer.phases if p.name not in older_index]
    removed_phases = [p for p in older.phases if p.name not in newer_index]

    modified_phases: list[PhaseChange] = []
    for name, phase1 in older_index.items():
        phase2 = newer_index.get(name)
        if phase2 is None:
            continue
        change = _compare_phase(name, phase1, phase2, diff)
        if change is not None:
            modified_phases.append(change)

    tasks_before = _total_tasks(older.phases)
    tasks_after = _total_tasks(newer.phases)

    added_tasks = _total_tasks(added_phases) + sum(
        len(change.task_changes.added) for change in modified_phases
    )
    removed_tasks = _total_tasks(removed_phases) + sum(
        len(change.task_changes.removed) for change in modified_phases
    )

    logger.debug(
        "Compared roadmaps: +%d -%d ~%d phases, +%d -%d tasks",
        len(added_phases), len(removed_phases), len(modified_phases),
        added_tasks, removed_tasks,
    )

    return RoadmapDelta(
        added_phases=[p.model_copy(deep=True) for p in added_phases],
        removed_phases=[p.model_copy(deep=True) for p in removed_phases],
        modified_phases=modified_phases,
        summary_changed=older.summary != newer.summary,
        statistics=DiffStatistics(
            phase_count=CountPair(before=len(older.phases), after=len(newer.phases)),
            task_count=CountPair(before=tasks_before, after=tasks_after),
            added_tasks_count=added_tasks,
            removed_tasks_count=removed_tasks,
            change_percentage=(
                (added_tasks + removed_tasks) / tasks_before * 100 if tasks_before else 0.0
            ),
        ),
    )


def duplicate_phase_names(roadmap: Roadmap) -> list[str]:
    """Names that appear on more than one phase, in first-seen order."""
    counts = Counter(phase.name for phase in roadmap.phases)
    return [name for name in dict.fromkeys(p.name for p in roadmap.phases) if counts[name] > 1]


def _percent(part: int, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def comparison_metrics(older: Roadmap, newer: Roadmap, delta: RoadmapDelta) -> ComparisonMetrics:
    """Headline percentages for a comparison.

    The overall change is the number of touched phases relative to the
    mean phase count of both versions, capped at 100.
    """
    phases_before = len(older.phases)
    phases_after = len(newer.phases)
    touched = len(delta.added_phases) + len(delta.removed_phases) + len(delta.modified_phases)

    return ComparisonMetrics(
        total_phases_before=phases_before,
        total_phases_after=phases_after,
        total_tasks_before=delta.statistics.task_count.before,
        total_tasks_after=delta.statistics.task_count.after,
        added_phases_percent=_percent(len(delta.added_phases), phases_after),
        removed_phases_percent=_percent(len(delta.removed_phases), phases_before),
        modified_phases_percent=_percent(len(delta.modified_phases), phases_before),
        added_tasks=delta.statistics.added_tasks_count,
        removed_tasks=delta.statistics.removed_tasks_count,
        priority_changes=sum(1 for c in delta.modified_phases if c.priority_changed),
        duration_changes=sum(1 for c in delta.modified_phases if c.duration_changed),
        overall_change_percent=min(_percent(touched, (phases_before + phases_after) / 2), 100.0),
    )


def filter_changes(changes: Sequence[PhaseChange], kind: ChangeKind | None) -> list[PhaseChange]:
    """Keep only the phase changes that include a change of ``kind``."""
    if kind is None:
        return list(changes)

    def _matches(change: PhaseChange) -> bool:
        if kind == "priority":
            return change.priority_changed is not None
        if kind == "duration":
            return change.duration_changed is not None
        if kind == "tasks":
            return bool(change.task_changes.added or change.task_changes.removed)
        if kind == "description":
            return change.description_changed
        if kind == "dependencies":
            return change.dependencies_changed is not None
        return False

    return [change for change in changes if _matches(change)]


def build_comparison(
    before: ComparisonSide,
    after: ComparisonSide,
    *,
    multiset: bool = False,
) -> ComparisonExport:
    """Compare two saved roadmaps and bundle the delta with its metrics."""
    delta = compare_roadmaps(before.roadmap_data, after.roadmap_data, multiset=multiset)
    return ComparisonExport(
        comparison=delta,
        metrics=comparison_metrics(before.roadmap_data, after.roadmap_data, delta),
        before=before,
        after=after,
    )
