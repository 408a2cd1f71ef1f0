from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, RelayConfig, StoreConfig

__all__ = ["AppConfig", "EnvOverrides", "RelayConfig", "StoreConfig", "load_config"]
