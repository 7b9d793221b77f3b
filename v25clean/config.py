"""
Loading of the extension config file (YAML).

The file maps a file extension to an entry that may carry the minimum number
of lines a file of that type must have::

    OSC:
      min_n_lines: 6
    LOG:            # configured, minimum defaults to 2

Malformed files fail fast instead of silently changing what gets deleted.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ExtensionEntry
from .policy import ExtensionPolicy

CONFIG_ENV_VAR = "V25CLEAN_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "cfg" / "v25_data_cfg.yml"


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    """
    Load the first YAML document of ``path``.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If the file cannot be parsed or its top level is not a mapping.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            docs = list(yaml.safe_load_all(f))
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML config file: {path}") from e

    config = docs[0] if docs else None
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"Invalid config format (expected a mapping at top level): {path}"
        )
    return config


def parse_extension_entries(config: Dict[str, Any], source: str = "<config>") -> Dict[str, Optional[int]]:
    """Validate raw config entries; returns upper-cased extension -> min lines."""
    entries: Dict[str, Optional[int]] = {}
    for ext, raw in config.items():
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid entry for extension '{ext}' in {source}: expected a mapping")
        try:
            entry = ExtensionEntry.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid entry for extension '{ext}' in {source}: {e}") from e
        entries[str(ext).upper()] = entry.min_n_lines
    return entries


def load_policy(path: str | Path | None = None) -> ExtensionPolicy:
    path = Path(path) if path is not None else default_config_path()
    config = load_yaml_config(path)
    return ExtensionPolicy(parse_extension_entries(config, source=str(path)))
