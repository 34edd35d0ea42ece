"""Configuration management for the mentorship registry service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service and its database."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        unknown = set(data.keys()) - {"database_path", "host", "port", "log_level"}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        raw_path = data.get("database_path")
        if raw_path:
            candidate = Path(str(raw_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        return Settings(
            database_path=database_path,
            host=str(data.get("host") or DEFAULT_HOST),
            port=_parse_port(data.get("port", DEFAULT_PORT)),
            log_level=_parse_log_level(data.get("log_level", DEFAULT_LOG_LEVEL)),
        )


def _parse_port(value: object) -> int:
    try:
        port = int(str(value))
    except ValueError as exc:
        raise ValueError(f"Port must be an integer, got {value!r}") from exc
    if not 1 <= port <= 65535:
        raise ValueError(f"Port must be between 1 and 65535, got {port}")
    return port


def _parse_log_level(value: object) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level {value!r}")
    return level


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "config" / "mentorship.yaml").resolve(strict=False)


def _read_config_file(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return raw


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from YAML (when present) and apply environment overrides."""

    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("MENTORSHIP_CONFIG"))

    data: Dict[str, object] = {}
    base_path: Path | None = None
    if path.exists():
        data.update(_read_config_file(path))
        base_path = path.parent

    overrides = {
        "database_path": env.get("MENTORSHIP_DB_PATH"),
        "host": env.get("MENTORSHIP_HOST"),
        "port": env.get("MENTORSHIP_PORT"),
        "log_level": env.get("MENTORSHIP_LOG_LEVEL"),
    }
    for key, value in overrides.items():
        if value:
            data[key] = value
    if overrides["database_path"]:
        data["database_path"] = str(resolve_database_path(overrides["database_path"]))

    return Settings.from_dict(data, base_path=base_path)


__all__ = ["Settings", "load_settings", "resolve_config_path"]
