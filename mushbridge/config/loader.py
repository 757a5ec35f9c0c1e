"""Configuration loader for the MUSH bridge."""

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .models import Settings


def expand_env_vars(config: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(config, dict):
        result = {}
        for key, value in config.items():
            result[key] = expand_env_vars(value)
        return result
    elif isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    elif isinstance(config, str):
        # ${VAR} or ${VAR:default}
        if config.startswith("${") and "}" in config:
            var_expr = config[2:config.index("}")]
            if ":" in var_expr:
                var_name, default_value = var_expr.split(":", 1)
                return os.environ.get(var_name, default_value)
            else:
                return os.environ.get(var_expr, config)
    return config


def merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``overrides`` into a copy of ``base``.

    ``None`` values in ``overrides`` are skipped so unset command line
    options never clobber values from the file.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_overrides(result[key], value)
        elif isinstance(value, dict):
            result[key] = merge_overrides({}, value)
        else:
            result[key] = value
    return result


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts.

    An empty host (``":8080"``) means all interfaces.
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"Address must be in host:port form: {address!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address {address!r}") from None
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


def load_config(
    config_path: Path | None = None, overrides: Dict[str, Any] | None = None
) -> Settings:
    """Load configuration from YAML file with environment variable expansion.

    Args:
        config_path: YAML file to read, or None to build settings from
            ``overrides`` alone
        overrides: Nested values (typically from the command line) applied
            on top of the file

    Returns:
        Validated settings
    """
    raw_config: Dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")
        raw_config = loaded

    config = expand_env_vars(raw_config)
    config = merge_overrides(config, overrides or {})

    try:
        return Settings(**config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")
