"""
Configuration management for pdfsig.

Resolves signing defaults (placeholder size, digest algorithm) and the
log level from three layers: environment variables, the optional
~/.pdfsig/config.json file, and built-in constants.
"""

from __future__ import annotations

__all__ = [
    "SigningDefaults",
    "get_log_level",
    "get_signing_defaults",
]

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_ESTIMATED_SIZE,
    DEFAULT_LOG_LEVEL,
    ENV_ALGORITHM,
    ENV_ESTIMATED_SIZE,
    ENV_LOG_LEVEL,
    MAX_ESTIMATED_SIZE,
    MIN_ESTIMATED_SIZE,
)
from ..core.digest import resolve_algorithm
from ..errors import UnsupportedAlgorithmError
from ._storage import load_config

_logger = logging.getLogger(__name__)

_LOG_LEVELS = frozenset(("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"))


@dataclass(frozen=True)
class SigningDefaults:
    """Resolved defaults for the signing pipeline.

    Attributes:
        estimated_size: Signature payload capacity in bytes.
        algorithm: Canonical digest algorithm name (e.g. "SHA-512").
    """

    estimated_size: int = DEFAULT_ESTIMATED_SIZE
    algorithm: str = DEFAULT_ALGORITHM


def _env_estimated_size() -> int | None:
    raw = os.environ.get(ENV_ESTIMATED_SIZE, "").strip()
    if not raw:
        return None
    try:
        size = int(raw)
    except ValueError:
        _logger.warning("Invalid %s value %r, ignoring", ENV_ESTIMATED_SIZE, raw)
        return None
    if size < MIN_ESTIMATED_SIZE or size > MAX_ESTIMATED_SIZE:
        _logger.warning(
            "%s=%d out of range [%d, %d], ignoring",
            ENV_ESTIMATED_SIZE,
            size,
            MIN_ESTIMATED_SIZE,
            MAX_ESTIMATED_SIZE,
        )
        return None
    return size


def _checked_algorithm(raw: str | None, source: str) -> str | None:
    if not raw:
        return None
    try:
        return resolve_algorithm(raw)
    except UnsupportedAlgorithmError:
        _logger.warning("Unsupported algorithm %r in %s, ignoring", raw, source)
        return None


def get_signing_defaults(config_path: Path | None = None) -> SigningDefaults:
    """
    Resolve the placeholder size and digest algorithm defaults.

    Priority: env vars > config file > built-in constants.
    """
    config = load_config(config_path)

    estimated_size = _env_estimated_size()
    if estimated_size is None:
        estimated_size = config.get("estimated_size", DEFAULT_ESTIMATED_SIZE)

    algorithm = _checked_algorithm(os.environ.get(ENV_ALGORITHM, "").strip(), ENV_ALGORITHM)
    if algorithm is None:
        algorithm = _checked_algorithm(config.get("algorithm"), "config file")
    if algorithm is None:
        algorithm = DEFAULT_ALGORITHM

    return SigningDefaults(estimated_size=estimated_size, algorithm=algorithm)


def get_log_level(config_path: Path | None = None) -> str:
    """Resolve the CLI log level name (env var > config file > WARNING)."""
    for raw, source in (
        (os.environ.get(ENV_LOG_LEVEL, ""), ENV_LOG_LEVEL),
        (load_config(config_path).get("log_level", ""), "config file"),
    ):
        level = raw.strip().upper()
        if not level:
            continue
        if level in _LOG_LEVELS:
            return level
        _logger.warning("Unknown log level %r in %s, ignoring", raw, source)
    return DEFAULT_LOG_LEVEL
