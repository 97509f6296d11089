"""Tests for the roadmap-history CLI."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import make_phase
from roadmap_history.cli import app
from roadmap_history.schemas.roadmap import Roadmap

runner = CliRunner()


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep rich from wrapping tables and messages at 80 columns."""
    monkeypatch.setattr("roadmap_history.cli.console", Console(width=200))


@pytest.fixture
def roadmap_files(
    older: Roadmap, newer: Roadmap, write_json: Callable[[str, object], Path],
) -> tuple[Path, Path]:
    return (
        write_json("v1.json", older.model_dump(by_alias=True)),
        write_json("v2.json", newer.model_dump(by_alias=True)),
    )


def _saved_ids(tmp_path: Path) -> list[str]:
    rows = json.loads((tmp_path / "roadmaps.json").read_text())
    return [row["id"] for row in rows]


class TestValidate:
    def test_valid_config(self, tmp_config: Path) -> None:
        result = runner.invoke(app, ["validate", "--config", str(tmp_config)])
        assert result.exit_code == 0
        assert "Config is valid!" in result.output

    def test_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", "--config", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1
        assert "Config validation failed" in result.output


class TestCompare:
    def test_markdown_to_stdout(self, roadmap_files: tuple[Path, Path]) -> None:
        v1, v2 = roadmap_files
        result = runner.invoke(app, ["compare", str(v1), str(v2)])

        assert result.exit_code == 0
        assert "# Roadmap Comparison: v1 → v2" in result.output
        assert "### P1" in result.output

    def test_json_to_file(self, roadmap_files: tuple[Path, Path], tmp_path: Path) -> None:
        v1, v2 = roadmap_files
        out = tmp_path / "out" / "comparison.json"
        result = runner.invoke(app, ["compare", str(v1), str(v2), "--format", "json", "-o", str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        change = data["comparison"]["modifiedPhases"][0]
        assert change["priorityChanged"] == {"from": "low", "to": "high"}
        assert data["metrics"]["priorityChanges"] == 1

    def test_html(self, roadmap_files: tuple[Path, Path], tmp_path: Path) -> None:
        v1, v2 = roadmap_files
        out = tmp_path / "comparison.html"
        result = runner.invoke(app, ["compare", str(v1), str(v2), "-f", "html", "-o", str(out)])

        assert result.exit_code == 0
        assert "Roadmap Comparison Report" in out.read_text()

    def test_history_item_file(
        self, older: Roadmap, newer: Roadmap, write_json: Callable[[str, object], Path],
    ) -> None:
        saved = write_json("saved.json", {
            "id": "abc",
            "name": "Saved v1",
            "roadmapData": older.model_dump(by_alias=True),
            "createdAt": "2024-01-01T00:00:00+00:00",
        })
        current = write_json("current.json", newer.model_dump(by_alias=True))

        result = runner.invoke(app, ["compare", str(saved), str(current)])

        assert result.exit_code == 0
        assert "Saved v1 → current" in result.output

    def test_multiset_flag(self, write_json: Callable[[str, object], Path]) -> None:
        v1 = write_json("a.json", Roadmap(phases=[make_phase("P", tasks=["x", "x"])]).model_dump(by_alias=True))
        v2 = write_json("b.json", Roadmap(phases=[make_phase("P", tasks=["x"])]).model_dump(by_alias=True))

        plain = runner.invoke(app, ["compare", str(v1), str(v2), "-f", "json"])
        counted = runner.invoke(app, ["compare", str(v1), str(v2), "-f", "json", "--multiset"])

        assert json.loads(plain.output)["comparison"]["modifiedPhases"] == []
        changes = json.loads(counted.output)["comparison"]["modifiedPhases"]
        assert changes[0]["taskChanges"]["removed"] == ["x"]

    def test_only_filter(self, release_plan: Roadmap, write_json: Callable[[str, object], Path]) -> None:
        changed = release_plan.model_copy(deep=True)
        changed.phases[0].priority = "low"
        changed.phases[1].duration = "9 weeks"
        v1 = write_json("a.json", release_plan.model_dump(by_alias=True))
        v2 = write_json("b.json", changed.model_dump(by_alias=True))

        result = runner.invoke(app, ["compare", str(v1), str(v2), "-f", "json", "--only", "duration"])

        data = json.loads(result.output)
        names = [c["name"] for c in data["comparison"]["modifiedPhases"]]
        assert names == ["Build"]
        # Metrics describe the full comparison, not the filtered list
        assert data["metrics"]["priorityChanges"] == 1
        assert data["metrics"]["durationChanges"] == 1
    def test_duplicate_phase_warning(self, newer: Roadmap, write_json: Callable[[str, object], Path]) -> None:
        dupes = write_json(
            "dupes.json",
            Roadmap(phases=[make_phase("P1"), make_phase("P1")]).model_dump(by_alias=True),
        )
        v2 = write_json("v2.json", newer.model_dump(by_alias=True))

        result = runner.invoke(app, ["compare", str(dupes), str(v2)])

        assert result.exit_code == 0
        assert "repeats phase names" in result.output

    def test_invalid_file(self, write_json: Callable[[str, object], Path]) -> None:
        bad = write_json("bad.json", {"phases": [{"name": "P"}]})
        result = runner.invoke(app, ["compare", str(bad), str(bad)])
        assert result.exit_code == 1

    def test_unknown_source(self, tmp_config: Path) -> None:
        result = runner.invoke(app, ["compare", "missing-id", "other-id", "-c", str(tmp_config)])
        assert result.exit_code == 1
        assert "No roadmap file or saved roadmap found" in result.output

    def test_unknown_format(self, roadmap_files: tuple[Path, Path]) -> None:
        v1, v2 = roadmap_files
        result = runner.invoke(app, ["compare", str(v1), str(v2), "--format", "pdf"])
        assert result.exit_code == 1


class TestStoreCommands:
    def test_save_list_show_archive_delete(
        self, tmp_config: Path, tmp_path: Path, roadmap_files: tuple[Path, Path],
    ) -> None:
        v1, _ = roadmap_files
        result = runner.invoke(app, ["save", str(v1), "--name", "First", "-c", str(tmp_config)])
        assert result.exit_code == 0
        (roadmap_id,) = _saved_ids(tmp_path)

        result = runner.invoke(app, ["list", "-c", str(tmp_config)])
        assert result.exit_code == 0
        assert "First" in result.output

        result = runner.invoke(app, ["show", roadmap_id, "-c", str(tmp_config)])
        assert result.exit_code == 0
        assert json.loads(result.output)["name"] == "First"

        assert runner.invoke(app, ["archive", roadmap_id, "-c", str(tmp_config)]).exit_code == 0
        assert runner.invoke(app, ["delete", roadmap_id, "-c", str(tmp_config)]).exit_code == 0
        # Already deleted
        assert runner.invoke(app, ["archive", roadmap_id, "-c", str(tmp_config)]).exit_code == 1

        rows = json.loads((tmp_path / "roadmaps.json").read_text())
        assert rows[0]["status"] == "deleted"

    def test_compare_saved_ids(self, tmp_config: Path, tmp_path: Path, roadmap_files: tuple[Path, Path]) -> None:
        v1, v2 = roadmap_files
        runner.invoke(app, ["save", str(v1), "--name", "Old", "-c", str(tmp_config)])
        runner.invoke(app, ["save", str(v2), "--name", "New", "-c", str(tmp_config)])
        old_id, new_id = _saved_ids(tmp_path)

        result = runner.invoke(app, ["compare", old_id, new_id, "-c", str(tmp_config)])

        assert result.exit_code == 0
        assert "# Roadmap Comparison: Old → New" in result.output

    def test_list_empty(self, tmp_config: Path) -> None:
        result = runner.invoke(app, ["list", "-c", str(tmp_config)])
        assert result.exit_code == 0
        assert "No saved roadmaps" in result.output

    def test_show_missing(self, tmp_config: Path) -> None:
        result = runner.invoke(app, ["show", "missing", "-c", str(tmp_config)])
        assert result.exit_code == 1

    def test_save_invalid_file(self, tmp_config: Path, write_json: Callable[[str, object], Path]) -> None:
        bad = write_json("bad.json", {"summary": "no phases"})
        result = runner.invoke(app, ["save", str(bad), "--name", "Bad", "-c", str(tmp_config)])
        assert result.exit_code == 1


class TestGenerate:
    def test_dry_run_and_save(self, tmp_config: Path, tmp_path: Path) -> None:
        out = tmp_path / "generated.json"
        result = runner.invoke(
            app,
            ["generate", "--dry-run", "--save", "Generated", "-o", str(out), "-c", str(tmp_config)],
        )

        assert result.exit_code == 0
        generated = Roadmap.model_validate_json(out.read_text())
        assert len(generated.phases) == 3
        assert len(_saved_ids(tmp_path)) == 1

    def test_unreadable_project_data(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["generate", "--dry-run", "--project-data", str(tmp_path / "missing.json")],
        )
        assert result.exit_code == 1


class TestAnalytics:
    def test_requires_supabase_backend(self, tmp_config: Path) -> None:
        result = runner.invoke(app, ["analytics", "r1", "-c", str(tmp_config)])
        assert result.exit_code == 1
        assert "supabase backend" in result.output

    def test_compare_to_rejects_csv(self, tmp_config: Path) -> None:
        result = runner.invoke(
            app, ["analytics", "r1", "--compare-to", "r2", "--format", "csv", "-c", str(tmp_config)],
        )
        assert result.exit_code == 1
        assert "--compare-to only supports --format json" in result.output
