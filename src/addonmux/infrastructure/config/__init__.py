from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EngineConfig, EnvOverrides

__all__ = ["AppConfig", "EngineConfig", "EnvOverrides", "load_config"]
