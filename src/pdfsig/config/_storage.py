"""
Low-level config file I/O for pdfsig.

Handles reading and validating the on-disk config.json.  Used by
config.py; the file is optional and never written by pdfsig itself.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "load_config",
    "load_raw_config",
]

import json
import logging
from pathlib import Path
from typing import Any, TypedDict, cast

from ..constants import MAX_ESTIMATED_SIZE, MIN_ESTIMATED_SIZE

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".pdfsig"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ConfigDict(TypedDict, total=False):
    """Type definition for the config file structure."""

    estimated_size: int
    algorithm: str
    log_level: str


def load_raw_config(path: Path | None = None) -> dict[str, object]:
    """Load raw config dict from disk, preserving all keys."""
    config_file = path if path is not None else CONFIG_FILE
    try:
        data: Any = json.loads(config_file.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
        _logger.warning("Config file %s is not a JSON object, ignoring", config_file)
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _validate_config_dict(data: dict[str, object]) -> ConfigDict:
    """Validate and return config dict, picking only known keys with correct types."""
    result: ConfigDict = {}
    for key in ("algorithm", "log_level"):
        val = data.get(key)
        if isinstance(val, str) and val.strip():
            result[key] = val.strip()  # type: ignore[literal-required]  # dynamic key from known set
    size_val = data.get("estimated_size")
    # bool is an int subclass; reject it explicitly
    if isinstance(size_val, int) and not isinstance(size_val, bool):
        if MIN_ESTIMATED_SIZE <= size_val <= MAX_ESTIMATED_SIZE:
            result["estimated_size"] = size_val
        else:
            _logger.warning(
                "Config estimated_size=%d out of range [%d, %d], ignoring",
                size_val,
                MIN_ESTIMATED_SIZE,
                MAX_ESTIMATED_SIZE,
            )
    return result


def load_config(path: Path | None = None) -> ConfigDict:
    """Load config from disk, returning only known typed keys."""
    return _validate_config_dict(load_raw_config(path))
