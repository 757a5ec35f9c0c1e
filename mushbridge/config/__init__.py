"""Configuration management for the MUSH bridge."""

from .loader import load_config, split_address
from .models import (
    APIConfig,
    LoggingConfig,
    MushConfig,
    PollingConfig,
    ReconnectConfig,
    Settings,
)


__all__ = [
    "APIConfig",
    "LoggingConfig",
    "MushConfig",
    "PollingConfig",
    "ReconnectConfig",
    "Settings",
    "load_config",
    "split_address",
]
