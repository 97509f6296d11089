"""AI roadmap generation with a cached result and a built-in fallback."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from roadmap_history.generation.fallback import default_roadmap
from roadmap_history.generation.prompts import ROADMAP_SYSTEM_PROMPT
from roadmap_history.schemas.roadmap import Roadmap
from roadmap_history.shared.ai_client import AIClient
from roadmap_history.shared.cache import ExpiringCache, content_key

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def extract_json(text: str) -> dict[str, Any]:
    """Parse the JSON object in a model reply, unwrapping a markdown fence if present.

    JSON mode returns a bare object; the fence case covers models that ignore it.
    """
    text = text.strip()
    match = _FENCE.fullmatch(text)
    if match:
        text = match.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Could not extract JSON from model response (length={len(text)}): {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class RoadmapGenerator:
    """Generates roadmaps from project data through the text-generation endpoint.

    Successful results are cached by a hash of the request, so asking twice
    for the same project snapshot costs one API call.  Any failure yields
    ``default_roadmap()`` instead of an exception; fallbacks are not cached.
    """

    def __init__(self, client: AIClient, *, cache: ExpiringCache[Roadmap] | None = None) -> None:
        self.client = client
        self.cache = cache

    def _build_message(self, project_data: dict[str, Any], context: str) -> str:
        parts = [
            "## Project data",
            json.dumps(project_data, indent=2, sort_keys=True, default=str),
        ]
        if context:
            parts += ["", "## Context", context]
        return "\n".join(parts)

    async def generate(self, project_data: dict[str, Any], context: str = "") -> Roadmap:
        user_message = self._build_message(project_data, context)
        key = content_key(user_message)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("Roadmap cache hit (%s)", key)
                return cached.model_copy(deep=True)

        try:
            raw = await self.client.simple_completion(
                system=ROADMAP_SYSTEM_PROMPT,
                user_message=user_message,
            )
            roadmap = Roadmap.model_validate(extract_json(raw))
        except Exception as exc:
            logger.error("Roadmap generation failed, using fallback roadmap: %s", exc)
            return default_roadmap()

        if not roadmap.generated_date:
            roadmap.generated_date = datetime.now().isoformat()

        logger.info("Generated roadmap with %d phases", len(roadmap.phases))
        if self.cache is not None:
            self.cache.set(key, roadmap.model_copy(deep=True))
        return roadmap
