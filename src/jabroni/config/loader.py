"""YAML configuration loader with multi-level priority merging.

Priority (highest wins):
  1. Environment variables (JABRONI_* prefix)
  2. Project-level .jabroni/settings.yaml
  3. User-level ~/.jabroni/settings.yaml
  4. Built-in defaults
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jabroni.config.settings import Settings

SETTINGS_DIRNAME = ".jabroni"
SETTINGS_FILENAME = "settings.yaml"

# Environment variable mappings: env_var -> (field, type_converter)
_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "JABRONI_EXTENSIONS_DIRNAME": ("extensions_dirname", str),
    "JABRONI_SUFFIX": ("suffix", str),
    "JABRONI_ROOT": ("root", str),
    "JABRONI_VERBOSE": ("verbose", bool),
}

# Settings the library falls back to, read once per process
_default_settings: Settings | None = None
_default_lock = threading.Lock()


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    try:
        text = path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected mapping in {path}, got {type(data).__name__}")
        return data
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides to the config dict."""
    result = dict(data)
    for env_var, (field, type_conv) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is not None:
            result[field] = _parse_bool(value) if type_conv is bool else value
    return result


def load_settings(
    project_dir: Path | None = None,
    user_dir: Path | None = None,
) -> Settings:
    """Load settings from YAML files with priority merging.

    Priority: env vars > project .jabroni/settings.yaml > user ~/.jabroni/settings.yaml > defaults.
    """
    merged: dict[str, Any] = {}

    for base in (user_dir, project_dir):
        if base is None:
            continue
        settings_file = base / SETTINGS_DIRNAME / SETTINGS_FILENAME
        if settings_file.exists():
            merged.update(_load_yaml_file(settings_file))

    merged = _apply_env_overrides(merged)

    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ValueError(f"Invalid settings: {e}") from e


def default_settings() -> Settings:
    """Settings used when a caller passes none.

    Reads the working directory's and the home directory's settings files plus
    the environment, the same sources as the CLI, once per process.
    """
    global _default_settings
    with _default_lock:
        if _default_settings is None:
            _default_settings = load_settings(project_dir=Path.cwd(), user_dir=Path.home())
        return _default_settings


def reset_default_settings() -> None:
    """Forget the cached defaults so the next call re-reads them (for tests)."""
    global _default_settings
    with _default_lock:
        _default_settings = None
