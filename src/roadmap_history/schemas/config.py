"""Configuration schema — validates roadmap-history.yml."""

import os
from typing import Literal

from pydantic import BaseModel, model_validator


class GenerationSettings(BaseModel):
    """Settings for AI roadmap generation."""

    model: str = "gpt-4o"
    cache_ttl_seconds: float = 3600.0
    cache_capacity: int = 64


class AppConfig(BaseModel):
    """Top-level configuration loaded from roadmap-history.yml.

    The supabase backend needs a URL and an API key; either may come from
    the ``SUPABASE_URL`` / ``SUPABASE_ANON_KEY`` environment variables.
    """

    # Storage
    backend: Literal["local", "supabase"] = "local"
    local_path: str = "./roadmaps.json"
    supabase_url: str = ""
    supabase_key: str = ""
    table: str = "project_roadmaps"
    request_timeout: float = 15.0

    # Comparison
    multiset_diff: bool = False  # count duplicate tasks separately

    # Output
    output_directory: str = "./output"

    generation: GenerationSettings = GenerationSettings()

    @model_validator(mode="after")
    def fill_credentials_from_env(self) -> "AppConfig":
        if not self.supabase_url:
            self.supabase_url = os.environ.get("SUPABASE_URL", "")
        if not self.supabase_key:
            self.supabase_key = os.environ.get("SUPABASE_ANON_KEY", "")
        return self

    @model_validator(mode="after")
    def check_supabase_credentials(self) -> "AppConfig":
        if self.backend == "supabase" and not (self.supabase_url and self.supabase_key):
            raise ValueError(
                "The supabase backend requires 'supabase_url' and 'supabase_key' "
                "(or SUPABASE_URL / SUPABASE_ANON_KEY in the environment)"
            )
        return self
