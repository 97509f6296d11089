"""Build the configured RoadmapStore backend."""

from __future__ import annotations

from roadmap_history.schemas.config import AppConfig
from roadmap_history.store.base import RoadmapStore
from roadmap_history.store.local import LocalRoadmapStore
from roadmap_history.store.supabase import SupabaseRoadmapStore


def open_store(cfg: AppConfig) -> RoadmapStore:
    if cfg.backend == "supabase":
        return SupabaseRoadmapStore(
            cfg.supabase_url,
            cfg.supabase_key,
            table=cfg.table,
            timeout=cfg.request_timeout,
        )
    return LocalRoadmapStore(cfg.local_path)
