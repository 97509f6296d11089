"""RoadmapStore backed by a local JSON file."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from roadmap_history.schemas.roadmap import Roadmap, RoadmapHistoryItem, RoadmapStatus
from roadmap_history.store.base import RoadmapStore

logger = logging.getLogger(__name__)

_ITEMS = TypeAdapter(list[RoadmapHistoryItem])

# Allowed status transitions: target -> statuses it may be reached from
_TRANSITIONS: dict[RoadmapStatus, set[RoadmapStatus]] = {
    "archived": {"active"},
    "deleted": {"active", "archived"},
}


class LocalRoadmapStore(RoadmapStore):
    """Keeps saved roadmaps in a single JSON file.

    A missing file reads as an empty store.  Writes go to a temp file that
    replaces the original, so a crash never leaves half-written JSON.
    Unlike the hosted table, this backend enforces the status lifecycle.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> list[RoadmapHistoryItem]:
        if not self.path.exists():
            return []
        return _ITEMS.validate_json(self.path.read_text())

    def _dump(self, items: list[RoadmapHistoryItem]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = [item.model_dump(by_alias=True, mode="json") for item in items]
        tmp.write_text(json.dumps(payload, indent=2))
        tmp.replace(self.path)

    async def get_saved_roadmaps(self) -> list[RoadmapHistoryItem]:
        try:
            items = self._load()
        except (OSError, ValidationError) as exc:
            logger.error("Error reading roadmap store %s: %s", self.path, exc)
            return []
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    async def get_roadmap_by_id(self, roadmap_id: str) -> RoadmapHistoryItem | None:
        for item in await self.get_saved_roadmaps():
            if item.id == roadmap_id:
                return item
        return None

    async def _set_status(self, roadmap_id: str, status: RoadmapStatus) -> bool:
        try:
            items = self._load()
        except (OSError, ValidationError) as exc:
            logger.error("Error reading roadmap store %s: %s", self.path, exc)
            return False

        for item in items:
            if item.id != roadmap_id:
                continue
            if item.status not in _TRANSITIONS[status]:
                logger.warning(
                    "Cannot mark roadmap %s as %s (currently %s)", roadmap_id, status, item.status,
                )
                return False
            item.status = status
            break
        else:
            logger.warning("Roadmap %s not found", roadmap_id)
            return False

        try:
            self._dump(items)
        except OSError as exc:
            logger.error("Error writing roadmap store %s: %s", self.path, exc)
            return False
        logger.info("Roadmap %s marked %s", roadmap_id, status)
        return True

    async def archive_roadmap(self, roadmap_id: str) -> bool:
        return await self._set_status(roadmap_id, "archived")

    async def delete_roadmap(self, roadmap_id: str) -> bool:
        return await self._set_status(roadmap_id, "deleted")

    async def save_roadmap(
        self,
        roadmap: Roadmap,
        name: str,
        description: str = "",
        *,
        created_by: str = "system",
    ) -> str | None:
        try:
            items = self._load()
        except (OSError, ValidationError) as exc:
            logger.error("Error reading roadmap store %s: %s", self.path, exc)
            return None

        item = RoadmapHistoryItem(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            roadmap_data=roadmap.model_copy(deep=True),
            created_at=datetime.now(timezone.utc).isoformat(),
            created_by=created_by,
            status="active",
        )
        items.append(item)
        try:
            self._dump(items)
        except OSError as exc:
            logger.error("Error writing roadmap store %s: %s", self.path, exc)
            return None
        logger.info("Saved roadmap %r as %s", name, item.id)
        return item.id
