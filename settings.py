from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_LOG_LEVEL_ENV = "LOG_LEVEL"
_THEME_ENV = "SENSOR_THEME"

_THEMES = {"dark", "light"}


@dataclass(frozen=True)
class Settings:
    log_level: str
    theme: Optional[str]


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_theme() -> Optional[str]:
    value = os.getenv(_THEME_ENV)
    if value is None:
        return None
    candidate = value.strip().lower()
    return candidate if candidate in _THEMES else None


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        theme=_read_theme(),
    )
