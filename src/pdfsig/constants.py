"""
Application-wide constants for pdfsig.

Size defaults, PDF markers, and environment variable names are
centralized here for easy maintenance and configuration.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("pdfsig")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.2.0"

__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_ESTIMATED_SIZE",
    "DEFAULT_LOG_LEVEL",
    "ENV_ALGORITHM",
    "ENV_ESTIMATED_SIZE",
    "ENV_LOG_LEVEL",
    "MAX_ESTIMATED_SIZE",
    "MIN_ESTIMATED_SIZE",
    "PDF_MAGIC",
    "SIGNATURE_FIELD_PREFIX",
    "SIGNATURE_FILTER",
    "SIGNATURE_SUBFILTER",
    "__version__",
]

# ── Signature defaults ──────────────────────────────────────────────

# Signature payload capacity in bytes reserved by a placeholder
DEFAULT_ESTIMATED_SIZE = 30000

# Digest algorithm used when none is given
DEFAULT_ALGORITHM = "SHA-512"

# Bounds for a configured or requested estimated size (bytes)
MIN_ESTIMATED_SIZE = 1
MAX_ESTIMATED_SIZE = 8 * 1024 * 1024

SIGNATURE_FILTER = "/Adobe.PPKLite"
SIGNATURE_SUBFILTER = "/adbe.pkcs7.detached"

# New signature fields are named Signature1, Signature2, ...
SIGNATURE_FIELD_PREFIX = "Signature"


# ── Logging ─────────────────────────────────────────────────────────

DEFAULT_LOG_LEVEL = "WARNING"


# ── Environment variable names ──────────────────────────────────────

ENV_ESTIMATED_SIZE = "PDFSIG_ESTIMATED_SIZE"
ENV_ALGORITHM = "PDFSIG_ALGORITHM"
ENV_LOG_LEVEL = "PDFSIG_LOG_LEVEL"


# PDF file magic bytes
PDF_MAGIC = b"%PDF-"
