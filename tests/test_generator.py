"""Tests for AI roadmap generation — the completion client is mocked."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from roadmap_history.generation.fallback import default_roadmap
from roadmap_history.generation.generator import RoadmapGenerator, extract_json
from roadmap_history.schemas.roadmap import Roadmap
from roadmap_history.shared.ai_client import AIClient, DryRunClient
from roadmap_history.shared.cache import ExpiringCache

ROADMAP_JSON = json.dumps({
    "summary": "Two phases",
    "phases": [
        {
            "name": "Build",
            "description": "Build it",
            "duration": "2 weeks",
            "priority": "high",
            "tasks": ["api"],
        },
        {
            "name": "Ship",
            "description": "Ship it",
            "duration": "1 week",
            "priority": "medium",
            "dependencies": ["Build"],
            "tasks": ["deploy"],
        },
    ],
    "focusAreas": ["delivery"],
})


def _mock_client(*responses: str) -> AsyncMock:
    client = AsyncMock()
    client.simple_completion = AsyncMock(side_effect=list(responses))
    return client


class TestExtractJson:
    def test_plain(self) -> None:
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced(self) -> None:
        assert extract_json('```json\n{"a": [1, 2]}\n```\n') == {"a": [1, 2]}

    def test_prose_around_json_rejected(self) -> None:
        with pytest.raises(ValueError, match="Could not extract JSON"):
            extract_json('Here you go: {"a": 1} hope this helps')

    def test_array_rejected(self) -> None:
        with pytest.raises(ValueError, match="Expected a JSON object"):
            extract_json("[1, 2]")

    def test_no_json(self) -> None:
        with pytest.raises(ValueError, match="Could not extract JSON"):
            extract_json("no braces here")


class TestGenerate:
    @pytest.mark.asyncio
    async def test_parses_model_output(self) -> None:
        client = _mock_client(ROADMAP_JSON)
        roadmap = await RoadmapGenerator(client).generate({"name": "demo"}, "focus on launch")

        assert [p.name for p in roadmap.phases] == ["Build", "Ship"]
        assert roadmap.phases[1].dependencies == ["Build"]
        assert roadmap.focus_areas == ["delivery"]
        assert roadmap.generated_date

        kwargs = client.simple_completion.call_args.kwargs
        assert '"name": "demo"' in kwargs["user_message"]
        assert "focus on launch" in kwargs["user_message"]

    @pytest.mark.asyncio
    async def test_invalid_output_falls_back(self) -> None:
        roadmap = await RoadmapGenerator(_mock_client("not json")).generate({})
        assert [p.name for p in roadmap.phases] == [p.name for p in default_roadmap().phases]

    @pytest.mark.asyncio
    async def test_schema_mismatch_falls_back(self) -> None:
        roadmap = await RoadmapGenerator(_mock_client('{"phases": [{"name": "x"}]}')).generate({})
        assert len(roadmap.phases) == 5

    @pytest.mark.asyncio
    async def test_client_error_falls_back(self) -> None:
        client = AsyncMock()
        client.simple_completion = AsyncMock(side_effect=RuntimeError("API down"))

        roadmap = await RoadmapGenerator(client).generate({})
        assert roadmap.phases[0].name == "Project Setup & Planning"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_client(self) -> None:
        client = _mock_client(ROADMAP_JSON)
        generator = RoadmapGenerator(client, cache=ExpiringCache())

        first = await generator.generate({"name": "demo"})
        first.phases.clear()
        second = await generator.generate({"name": "demo"})

        assert client.simple_completion.await_count == 1
        assert len(second.phases) == 2

    @pytest.mark.asyncio
    async def test_fallback_not_cached(self) -> None:
        client = _mock_client("not json", ROADMAP_JSON)
        cache: ExpiringCache[Roadmap] = ExpiringCache()
        generator = RoadmapGenerator(client, cache=cache)

        await generator.generate({"name": "demo"})
        assert len(cache) == 0

        roadmap = await generator.generate({"name": "demo"})
        assert len(roadmap.phases) == 2
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_dry_run_client(self) -> None:
        roadmap = await RoadmapGenerator(DryRunClient()).generate({"name": "demo"})
        assert len(roadmap.phases) == 3
        assert roadmap.risks[0].impact == "high"


class TestDefaultRoadmap:
    def test_five_phases_with_dependencies(self) -> None:
        roadmap = default_roadmap()
        assert len(roadmap.phases) == 5
        assert roadmap.phases[0].dependencies is None
        assert all(p.dependencies for p in roadmap.phases[1:])

    def test_dependencies_name_earlier_phases(self) -> None:
        names: set[str] = set()
        for phase in default_roadmap().phases:
            assert set(phase.dependencies or []) <= names
            names.add(phase.name)


class TestAIClient:
    @pytest.mark.asyncio
    async def test_simple_completion_json_mode(self) -> None:
        client = AIClient.__new__(AIClient)
        client.model = "gpt-4o"
        client._client = AsyncMock()
        message = SimpleNamespace(content='{"ok": true}')
        usage = SimpleNamespace(prompt_tokens=10, completion_tokens=5)
        client._client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)
        )
        seen: list[tuple[int, int]] = []

        result = await client.simple_completion(
            system="sys", user_message="hi", on_tokens=lambda i, o: seen.append((i, o)),
        )

        assert result == '{"ok": true}'
        assert seen == [(10, 5)]
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
