"""Configuration loading for the RentSwipe auth service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .security import DEFAULT_PASSWORD_SCHEME, SUPPORTED_PASSWORD_SCHEMES

_FILE_KEYS = {"database_path", "allowed_origin", "password_scheme", "log_level"}

_ENV_KEYS = {
    "RENTSWIPE_DB_PATH": "database_path",
    "RENTSWIPE_ALLOWED_ORIGIN": "allowed_origin",
    "RENTSWIPE_PASSWORD_SCHEME": "password_scheme",
    "RENTSWIPE_LOG_LEVEL": "log_level",
}


def default_database_path() -> Path:
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "rentswipe.sqlite3").resolve(strict=False)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the auth service."""

    database_path: Path
    allowed_origin: str = "*"
    password_scheme: str = DEFAULT_PASSWORD_SCHEME
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.password_scheme not in SUPPORTED_PASSWORD_SCHEMES:
            raise ValueError(
                f"Unsupported password scheme '{self.password_scheme}'. "
                f"Expected one of: {', '.join(SUPPORTED_PASSWORD_SCHEMES)}"
            )
        if not self.allowed_origin.strip():
            raise ValueError("allowed_origin must not be empty")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level '{self.log_level}'")

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _resolve_path(raw: str, base_path: Path | None) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute() and base_path is not None:
        candidate = base_path / candidate
    return candidate.resolve(strict=False)


def _load_file(config_path: Path) -> Dict[str, str]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")

    unknown = set(raw) - _FILE_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    values = {key: str(value) for key, value in raw.items() if value is not None}
    if "database_path" in values:
        values["database_path"] = str(_resolve_path(values["database_path"], config_path.parent))
    return values


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from an optional YAML file and the environment.

    Environment variables take precedence over values from the file. When
    ``config_path`` is ``None`` the ``RENTSWIPE_CONFIG`` variable is consulted.
    """

    env = os.environ if environ is None else environ

    if config_path is None and env.get("RENTSWIPE_CONFIG"):
        config_path = Path(env["RENTSWIPE_CONFIG"]).expanduser()

    values: Dict[str, str] = {}
    if config_path is not None:
        values.update(_load_file(config_path))

    for env_name, key in _ENV_KEYS.items():
        raw = env.get(env_name)
        if raw is not None and raw.strip():
            values[key] = raw.strip()

    if "database_path" in values:
        database_path = _resolve_path(values.pop("database_path"), None)
    else:
        database_path = default_database_path()

    return Settings(database_path=database_path, **values)


__all__ = ["Settings", "default_database_path", "load_settings"]
