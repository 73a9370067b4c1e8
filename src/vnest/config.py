"""Configuration loading for vnest (YAML file plus environment overrides)."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from vnest.exceptions import ConfigError

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "keyvalue")

# Environment variable -> Config field
ENV_VARS: dict[str, str] = {
    "VNEST_BACKEND": "backend",
    "VNEST_DB_PATH": "db_path",
    "VNEST_KV_PATH": "kv_path",
    "VNEST_PROGRESS_PATH": "progress_path",
    "VNEST_DATA_DIR": "data_dir",
}


@dataclass(frozen=True)
class Config:
    """Runtime settings for storage and game rules."""

    backend: str = "sqlite"
    db_path: str = ":memory:"
    kv_path: str | None = None
    progress_path: str | None = None
    data_dir: str | None = None

    correct_threshold: int = 10
    max_sets: int = 6
    validate_delay: float = 0.8
    congrats_delay: float = 2.0
    fitting_cards: int = 1
    unfitting_cards: int = 2

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"storage.backend must be one of {', '.join(BACKENDS)}; "
                f"got {self.backend!r}"
            )
        for name in ("correct_threshold", "max_sets", "fitting_cards"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if (
            not isinstance(self.unfitting_cards, int)
            or isinstance(self.unfitting_cards, bool)
            or self.unfitting_cards < 0
        ):
            raise ConfigError(
                f"unfitting_cards must be a non-negative integer, "
                f"got {self.unfitting_cards!r}"
            )
        for name in ("validate_delay", "congrats_delay"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number, got {value!r}")


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from a YAML file, then apply ``VNEST_*`` overrides.

    Args:
        path: Optional YAML file. Missing sections fall back to defaults.
        env: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid.
    """
    values: dict[str, Any] = {}
    if path is not None:
        values.update(_flatten(_load_yaml_file(Path(path))))

    env = os.environ if env is None else env
    for var, field_name in ENV_VARS.items():
        if env.get(var):
            values[field_name] = env[var]

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    try:
        config = replace(Config(), **values)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    logger.debug("Loaded configuration: %s", config)
    return config


def _load_yaml_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML in {path}{where}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping (dictionary)")
    return data


def _flatten(data: Mapping[str, Any]) -> dict[str, Any]:
    """Lift the ``storage`` and ``game`` sections to top-level keys."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("storage", "game"):
            if not isinstance(value, dict):
                raise ConfigError(f"Section {key!r} must be a mapping")
            flat.update(value)
        else:
            flat[key] = value
    return flat
