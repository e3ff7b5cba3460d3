"""
Configuration loader for the Nexus report wizard.

Resolution order for load_config():
1. explicit path argument
2. NEXUS_CONFIG environment variable
3. config/nexus.yaml, found by walking up from this file
4. built-in defaults (NexusConfig())
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from nexus.config.schema import NexusConfig

CONFIG_ENV_VAR = "NEXUS_CONFIG"
DEFAULT_CONFIG_NAME = "nexus.yaml"

# Module-level cache: resolved path (or "<defaults>") -> NexusConfig
_loaded_configs: dict[str, NexusConfig] = {}


def find_config_file() -> Optional[Path]:
    """Locate config/nexus.yaml relative to the project root, if any."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        candidate = parent / "config" / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[str | Path] = None) -> NexusConfig:
    """
    Load and validate the configuration.

    Raises:
        FileNotFoundError: An explicit or NEXUS_CONFIG path doesn't exist.
        ValueError: The file doesn't validate against NexusConfig.
    """
    if path is None and os.environ.get(CONFIG_ENV_VAR):
        path = os.environ[CONFIG_ENV_VAR]

    if path is not None:
        config_path: Optional[Path] = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config not found: {config_path}")
    else:
        config_path = find_config_file()

    cache_key = str(config_path.resolve()) if config_path else "<defaults>"
    if cache_key in _loaded_configs:
        return _loaded_configs[cache_key]

    if config_path is None:
        config = NexusConfig()
    else:
        with open(config_path, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config must be a mapping: {config_path}")
        try:
            config = NexusConfig(**raw)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {config_path}:\n{e}") from e

    _loaded_configs[cache_key] = config
    return config


def clear_cache() -> None:
    """Clear the config cache. Useful for testing."""
    _loaded_configs.clear()
