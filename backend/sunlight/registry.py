from __future__ import annotations

from typing import Optional

from .config import SunlightSettings
from .engine import SunlightEngine

_engine_cache: Optional[SunlightEngine] = None


def load_engine(settings: Optional[SunlightSettings] = None) -> SunlightEngine:
    global _engine_cache
    if _engine_cache and settings is None:
        return _engine_cache
    _engine_cache = SunlightEngine(settings or SunlightSettings.from_env())
    return _engine_cache


def get_engine() -> SunlightEngine:
    return load_engine()


def reload_engine(settings: Optional[SunlightSettings] = None) -> SunlightEngine:
    global _engine_cache
    _engine_cache = None
    return load_engine(settings)
