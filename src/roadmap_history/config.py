"""YAML config loader — reads roadmap-history.yml into AppConfig."""

from pathlib import Path

import yaml

from roadmap_history.schemas.config import AppConfig


def load_config(path: str | Path) -> AppConfig:
    """Load and validate a config file.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A section with every key commented out loads as None; fall back to defaults.
    if raw.get("generation") is None:
        raw.pop("generation", None)

    return AppConfig(**raw)
