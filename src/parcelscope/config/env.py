"""Environment variable readers; blank values count as unset everywhere."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def optional_env_var(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, "").strip()
    return value or default


def optional_int_env_var(name: str) -> int | None:
    raw = optional_env_var(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
