"""
Environment parsing helpers and startup directory checks.
"""

import os
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError


def parse_bool_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int, minimum: int = 0) -> int:
    """Read an integer env var, raising ConfigurationError on junk or out-of-range values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def assert_directory_writable(path: Path, *, create: bool = True) -> None:
    if create:
        path.mkdir(parents=True, exist_ok=True)
    if not path.exists() or not path.is_dir():
        raise ConfigurationError(f"Required directory is missing: {path}")

    marker = path / f".write_check_{os.getpid()}.tmp"
    try:
        with open(marker, "w", encoding="utf-8") as f:
            f.write("ok")
        marker.unlink(missing_ok=True)
    except OSError as exc:
        raise ConfigurationError(f"Directory is not writable: {path}") from exc
