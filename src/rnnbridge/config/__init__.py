"""
Configuration module for rnnbridge.
Provides engine and network configuration with validation and defaults.
"""

from .base import (
    BaseConfig,
    EngineConfig,
    NetworkConfig,
    Precision,
    get_engine_config,
    set_engine_config,
    real_dtype
)

__all__ = [
    "BaseConfig",
    "EngineConfig",
    "NetworkConfig",
    "Precision",
    "get_engine_config",
    "set_engine_config",
    "real_dtype"
]
