"""RoadmapStore ABC — the persistence contract for saved roadmaps."""

from __future__ import annotations

from abc import ABC, abstractmethod

from roadmap_history.schemas.roadmap import Roadmap, RoadmapHistoryItem


class RoadmapStore(ABC):
    """Persists and retrieves saved roadmaps.

    Implementations never raise for backend trouble.  Reads degrade to an
    empty list or ``None``; writes report success through their return
    value.  Records are never removed: ``delete_roadmap`` only flips the
    status to ``"deleted"``.  There are no retries; wrap the store if you
    need them.
    """

    @abstractmethod
    async def get_saved_roadmaps(self) -> list[RoadmapHistoryItem]:
        """All saved roadmaps, newest first."""

    @abstractmethod
    async def get_roadmap_by_id(self, roadmap_id: str) -> RoadmapHistoryItem | None:
        """The roadmap with ``roadmap_id``, or ``None``."""

    @abstractmethod
    async def archive_roadmap(self, roadmap_id: str) -> bool:
        """Mark a roadmap as archived."""

    @abstractmethod
    async def delete_roadmap(self, roadmap_id: str) -> bool:
        """Mark a roadmap as deleted (the record is kept)."""

    @abstractmethod
    async def save_roadmap(
        self,
        roadmap: Roadmap,
        name: str,
        description: str = "",
        *,
        created_by: str = "system",
    ) -> str | None:
        """Save a new active roadmap and return its id, or ``None`` on failure."""

    async def aclose(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "RoadmapStore":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
