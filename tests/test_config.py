"""Tests for config loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from roadmap_history.config import load_config
from roadmap_history.schemas.config import AppConfig, GenerationSettings


@pytest.fixture(autouse=True)
def _clear_supabase_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)


class TestAppConfig:
    """Test the AppConfig Pydantic model directly."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.backend == "local"
        assert cfg.local_path == "./roadmaps.json"
        assert cfg.table == "project_roadmaps"
        assert cfg.multiset_diff is False
        assert cfg.output_directory == "./output"
        assert cfg.generation == GenerationSettings()

    def test_supabase_requires_credentials(self) -> None:
        with pytest.raises(ValidationError, match="supabase_url.*supabase_key"):
            AppConfig(backend="supabase")

    def test_supabase_with_credentials(self) -> None:
        cfg = AppConfig(backend="supabase", supabase_url="https://x.supabase.co", supabase_key="k")
        assert cfg.supabase_url == "https://x.supabase.co"

    def test_credentials_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")

        cfg = AppConfig(backend="supabase")

        assert cfg.supabase_url == "https://env.supabase.co"
        assert cfg.supabase_key == "env-key"

    def test_explicit_credentials_win_over_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
        cfg = AppConfig(supabase_url="https://file.supabase.co")
        assert cfg.supabase_url == "https://file.supabase.co"

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(backend="sqlite")


class TestLoadConfig:
    """Test YAML file loading."""

    def test_load_valid_file(self, tmp_config: Path, tmp_path: Path) -> None:
        cfg = load_config(tmp_config)
        assert cfg.backend == "local"
        assert cfg.local_path == str(tmp_path / "roadmaps.json")

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("just a string")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(bad)

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yml"
        empty.write_text("")
        assert load_config(empty) == AppConfig()

    def test_generation_section(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yml"
        cfg_file.write_text(
            """\
multiset_diff: true
generation:
  model: "gpt-4o-mini"
  cache_ttl_seconds: 60
"""
        )
        cfg = load_config(cfg_file)
        assert cfg.multiset_diff is True
        assert cfg.generation.model == "gpt-4o-mini"
        assert cfg.generation.cache_ttl_seconds == 60
        assert cfg.generation.cache_capacity == 64

    def test_null_generation_section_uses_defaults(self, tmp_path: Path) -> None:
        """A section with every key commented out loads as None."""
        cfg_file = tmp_path / "config.yml"
        cfg_file.write_text(
            """\
backend: local
generation:
  # model: "gpt-4o"
"""
        )
        assert load_config(cfg_file).generation == GenerationSettings()
