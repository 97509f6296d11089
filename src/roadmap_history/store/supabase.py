"""RoadmapStore backed by the hosted ``project_roadmaps`` table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from roadmap_history.schemas.roadmap import Roadmap, RoadmapHistoryItem
from roadmap_history.store.base import RoadmapStore
from roadmap_history.store.postgrest import PostgrestClient, PostgrestError

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "project_roadmaps"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseRoadmapStore(RoadmapStore):
    """Talks to the backend-as-a-service over its REST table API.

    Rows use snake_case columns (``roadmap_data``, ``created_at``, ...),
    which the history model accepts directly.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        table: str = DEFAULT_TABLE,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.table = table
        self.client = PostgrestClient(url, key, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _table_ready(self) -> bool:
        """Check that the table exists and the credentials work."""
        try:
            await self.client.request("GET", self.table, params={"select": "id", "limit": "1"})
        except PostgrestError as exc:
            if exc.unprovisioned:
                logger.warning(
                    "%s table does not exist yet or credentials issue: %s", self.table, exc,
                )
                return False
            # Anything else surfaces again on the real query.
            logger.debug("Table check failed: %s", exc)
        return True

    async def get_saved_roadmaps(self) -> list[RoadmapHistoryItem]:
        if not await self._table_ready():
            return []
        try:
            rows = await self.client.request(
                "GET", self.table, params={"select": "*", "order": "created_at.desc"},
            )
        except (PostgrestError, ValueError) as exc:
            logger.error("Error fetching saved roadmaps: %s", exc)
            return []

        items: list[RoadmapHistoryItem] = []
        for row in rows or []:
            try:
                items.append(RoadmapHistoryItem.model_validate(row))
            except ValidationError as exc:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning("Skipping malformed roadmap row %s: %s", row_id, exc)
        return items

    async def get_roadmap_by_id(self, roadmap_id: str) -> RoadmapHistoryItem | None:
        try:
            row = await self.client.request(
                "GET",
                self.table,
                params={"select": "*", "id": f"eq.{roadmap_id}"},
                single=True,
            )
            return RoadmapHistoryItem.model_validate(row)
        except (PostgrestError, ValueError) as exc:
            logger.error("Error fetching roadmap %s: %s", roadmap_id, exc)
            return None

    async def _set_status(self, roadmap_id: str, status: str, allowed_from: str) -> bool:
        """PATCH the status of a row whose current status matches ``allowed_from``.

        The filter keeps the status lifecycle on the server side: an unknown id
        or a disallowed transition matches no row and reports ``False``.
        """
        try:
            rows = await self.client.request(
                "PATCH",
                self.table,
                params={"id": f"eq.{roadmap_id}", "status": allowed_from},
                json={"status": status, "updated_at": _now()},
                returning=True,
            )
        except (PostgrestError, ValueError) as exc:
            logger.error("Error marking roadmap %s as %s: %s", roadmap_id, status, exc)
            return False
        if not rows:
            logger.warning("Roadmap %s not found or cannot be marked %s", roadmap_id, status)
            return False
        logger.info("Roadmap %s marked %s", roadmap_id, status)
        return True

    async def archive_roadmap(self, roadmap_id: str) -> bool:
        return await self._set_status(roadmap_id, "archived", "eq.active")

    async def delete_roadmap(self, roadmap_id: str) -> bool:
        return await self._set_status(roadmap_id, "deleted", "in.(active,archived)")

    async def save_roadmap(
        self,
        roadmap: Roadmap,
        name: str,
        description: str = "",
        *,
        created_by: str = "system",
    ) -> str | None:
        if not await self._table_ready():
            return None
        now = _now()
        try:
            row = await self.client.request(
                "POST",
                self.table,
                json={
                    "name": name,
                    "description": description,
                    "roadmap_data": roadmap.model_dump(by_alias=True, mode="json"),
                    "created_at": now,
                    "updated_at": now,
                    "created_by": created_by,
                    "status": "active",
                },
                single=True,
                returning=True,
            )
            return str(row["id"])
        except (PostgrestError, KeyError, TypeError, ValueError) as exc:
            logger.error("Error saving roadmap %r: %s", name, exc)
            return None
