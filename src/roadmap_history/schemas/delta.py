"""Pydantic models for roadmap comparison results."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from roadmap_history.schemas.roadmap import CamelModel, Phase, Roadmap

ChangeKind = Literal["priority", "duration", "tasks", "description", "dependencies"]


class CountPair(CamelModel):
    """A before/after pair of counts or levels."""

    before: int
    after: int


class ValueChange(CamelModel):
    """A scalar field that changed between two phase versions."""

    from_: str = Field(alias="from")
    to: str


class TaskChanges(CamelModel):
    added: list[str] = []
    removed: list[str] = []
    unchanged: list[str] = []


class DependencyChanges(CamelModel):
    # Both lists stay empty when only one side declared dependencies.
    added: list[str] = []
    removed: list[str] = []


class PhaseMetadata(CamelModel):
    """Derived numbers computed for every compared phase pair."""

    task_count: CountPair
    task_change_percentage: float
    priority_level: CountPair
    priority_change: int  # positive = escalated


class PhaseChange(CamelModel):
    """A phase present in both roadmaps with at least one detected change."""

    name: str
    task_changes: TaskChanges
    priority_changed: ValueChange | None = None
    duration_changed: ValueChange | None = None
    description_changed: bool = False
    dependencies_changed: DependencyChanges | None = None
    metadata: PhaseMetadata


class DiffStatistics(CamelModel):
    phase_count: CountPair
    task_count: CountPair
    added_tasks_count: int
    removed_tasks_count: int
    change_percentage: float


class RoadmapDelta(CamelModel):
    """The structured difference between an older and a newer roadmap."""

    added_phases: list[Phase] = []
    removed_phases: list[Phase] = []
    modified_phases: list[PhaseChange] = []
    summary_changed: bool = False
    statistics: DiffStatistics


class ComparisonMetrics(CamelModel):
    """Headline numbers shown alongside a comparison."""

    total_phases_before: int
    total_phases_after: int
    total_tasks_before: int
    total_tasks_after: int
    added_phases_percent: float
    removed_phases_percent: float
    modified_phases_percent: float
    added_tasks: int
    removed_tasks: int
    priority_changes: int
    duration_changes: int
    overall_change_percent: float  # capped at 100


class ComparisonSide(CamelModel):
    """One of the two roadmaps taking part in a comparison."""

    id: str = ""
    name: str
    created_at: str = ""
    roadmap_data: Roadmap


class ComparisonExport(CamelModel):
    """Envelope written when a comparison is exported as JSON."""

    comparison: RoadmapDelta
    metrics: ComparisonMetrics
    before: ComparisonSide
    after: ComparisonSide
    exported_at: str = Field(default_factory=lambda: datetime.now().isoformat())
