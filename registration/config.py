"""Configuration management for the registration service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from .database import resolve_database_path

DEFAULT_TITLE = "User Registration"
DEFAULT_API_PREFIX = "/api"


def _split_origins(raw: object) -> List[str]:
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        raise ValueError("cors_origins must be a string or a list of strings")
    return [item.strip() for item in items if item.strip()]


def _normalise_prefix(raw: str) -> str:
    cleaned = raw.strip().rstrip("/")
    if not cleaned:
        raise ValueError("api_prefix must not be empty")
    if not cleaned.startswith("/"):
        cleaned = "/" + cleaned
    return cleaned


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the registration service."""

    database_path: Path
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    api_prefix: str = DEFAULT_API_PREFIX
    title: str = DEFAULT_TITLE

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        unknown = set(data.keys()) - {"database_path", "cors_origins", "api_prefix", "title"}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        origins = _split_origins(data["cors_origins"]) if data.get("cors_origins") is not None else ["*"]

        return Settings(
            database_path=database_path,
            cors_origins=origins or ["*"],
            api_prefix=_normalise_prefix(str(data.get("api_prefix") or DEFAULT_API_PREFIX)),
            title=str(data.get("title") or DEFAULT_TITLE),
        )


def _read_yaml(config_path: Path) -> Dict[str, object]:
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"Unable to read configuration file {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    return raw


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file and ``REGISTRATION_*`` variables."""

    env = os.environ if environ is None else environ

    if config_path is None and env.get("REGISTRATION_CONFIG"):
        config_path = Path(env["REGISTRATION_CONFIG"]).expanduser()

    data: Dict[str, object] = {}
    base_path: Path | None = None
    if config_path is not None:
        data = _read_yaml(config_path)
        base_path = config_path.resolve(strict=False).parent

    settings = Settings.from_dict(data, base_path=base_path)

    overrides: Dict[str, object] = {}
    if env.get("REGISTRATION_DB_PATH"):
        overrides["database_path"] = resolve_database_path(env["REGISTRATION_DB_PATH"])
    if env.get("REGISTRATION_CORS_ORIGINS"):
        overrides["cors_origins"] = _split_origins(env["REGISTRATION_CORS_ORIGINS"]) or ["*"]
    if env.get("REGISTRATION_API_PREFIX"):
        overrides["api_prefix"] = _normalise_prefix(env["REGISTRATION_API_PREFIX"])
    if env.get("REGISTRATION_TITLE"):
        overrides["title"] = env["REGISTRATION_TITLE"]

    if not overrides:
        return settings
    return replace(settings, **overrides)  # type: ignore[arg-type]


__all__ = ["Settings", "load_settings"]
