"""
Configuration management.

Unified API for config-related functionality. Instead of importing
from individual submodules, import from this package directly.
"""

from __future__ import annotations

from ._storage import CONFIG_DIR, CONFIG_FILE, load_config
from .config import SigningDefaults, get_log_level, get_signing_defaults

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "SigningDefaults",
    "get_log_level",
    "get_signing_defaults",
    "load_config",
]
