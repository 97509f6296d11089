"""Pydantic models for roadmap documents and their saved history records."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

RoadmapStatus = Literal["active", "archived", "deleted"]


class CamelModel(BaseModel):
    """Serializes with camelCase keys; accepts snake_case or camelCase input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Phase(CamelModel):
    """A named stage of a roadmap.

    ``name`` is the identity used to match phases across two roadmap
    versions.  ``dependencies`` distinguishes "not given" (``None``) from
    an empty list.
    """

    name: str
    description: str
    duration: str  # free text, e.g. "4 weeks"
    priority: str  # "high", "medium", "low"
    dependencies: list[str] | None = None
    tasks: list[str]


class Risk(CamelModel):
    """A delivery risk attached to a generated roadmap."""

    description: str
    mitigation: str = ""
    impact: str = ""  # "low", "medium", "high"


class Roadmap(CamelModel):
    """A structured development plan made of ordered phases."""

    summary: str = ""
    phases: list[Phase]
    generated_date: str = ""

    # Informational fields produced by roadmap generation; never compared.
    estimated_completion: str = ""
    focus_areas: list[str] = []
    risks: list[Risk] = []


class RoadmapHistoryItem(CamelModel):
    """A saved roadmap as persisted in the ``project_roadmaps`` table."""

    id: str
    name: str
    description: str = ""
    roadmap_data: Roadmap
    created_at: str
    created_by: str = ""
    status: RoadmapStatus = "active"

    @field_validator("description", "created_by", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        """Nullable columns in the hosted table arrive as None."""
        return "" if v is None else v
