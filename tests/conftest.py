"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from roadmap_history.schemas.roadmap import Phase, Roadmap


def make_phase(name: str = "P1", **overrides) -> Phase:
    """Build a phase with sensible defaults."""
    data = {
        "name": name,
        "description": "d",
        "duration": "1w",
        "priority": "low",
        "tasks": ["t1", "t2"],
    }
    data.update(overrides)
    return Phase(**data)


@pytest.fixture
def older() -> Roadmap:
    return Roadmap(summary="S1", phases=[make_phase("P1", priority="low", tasks=["t1", "t2"])])


@pytest.fixture
def newer() -> Roadmap:
    return Roadmap(summary="S1", phases=[make_phase("P1", priority="high", tasks=["t1", "t3"])])


@pytest.fixture
def release_plan() -> Roadmap:
    """A three-phase roadmap with dependencies."""
    return Roadmap(
        summary="Ship the MVP",
        phases=[
            make_phase("Setup", priority="high", duration="2 weeks", tasks=["repo", "ci"]),
            make_phase(
                "Build",
                priority="medium",
                duration="6 weeks",
                dependencies=["Setup"],
                tasks=["api", "ui", "auth"],
            ),
            make_phase(
                "Launch",
                priority="high",
                duration="1 week",
                dependencies=["Build", "Setup"],
                tasks=["deploy"],
            ),
        ],
    )


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        """\
backend: local
local_path: "{store}"
output_directory: "{out}"
""".format(store=str(tmp_path / "roadmaps.json"), out=str(tmp_path / "output"))
    )
    return cfg


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, object], Path]:
    """Write a JSON document under tmp_path and return its path."""

    def _write(name: str, data: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)
