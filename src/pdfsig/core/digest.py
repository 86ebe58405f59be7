"""Digest calculation over a document's hashable bytes."""

from __future__ import annotations

__all__ = ["SUPPORTED_ALGORITHMS", "calculate", "resolve_algorithm"]

import hashlib

from ..constants import DEFAULT_ALGORITHM
from ..errors import UnsupportedAlgorithmError

# Canonical algorithm name -> hashlib name
SUPPORTED_ALGORITHMS: dict[str, str] = {
    "SHA-256": "sha256",
    "SHA-384": "sha384",
    "SHA-512": "sha512",
}


def resolve_algorithm(name: str | None) -> str:
    """Resolve an algorithm name to its canonical form ("SHA-512" etc.).

    Accepts the canonical names case-insensitively, with or without the
    dash ("sha512", "SHA512").  None resolves to the default.

    Raises:
        UnsupportedAlgorithmError: If the name is not recognized.
    """
    if name is None:
        return DEFAULT_ALGORITHM
    key = name.strip().upper()
    if key.startswith("SHA") and not key.startswith("SHA-"):
        key = "SHA-" + key[3:]
    if key not in SUPPORTED_ALGORITHMS:
        raise UnsupportedAlgorithmError(
            f"Unsupported digest algorithm {name!r}; "
            f"expected one of {', '.join(SUPPORTED_ALGORITHMS)}"
        )
    return key


def calculate(data: bytes, algorithm: str | None = None) -> bytes:
    """Compute the digest of ``data``.

    Args:
        data: Bytes to hash.
        algorithm: "SHA-256", "SHA-384" or "SHA-512" (default).

    Returns:
        Raw digest bytes (32, 48 or 64 bytes).
    """
    hash_name = SUPPORTED_ALGORITHMS[resolve_algorithm(algorithm)]
    try:
        return hashlib.new(hash_name, data).digest()
    except ValueError as e:
        raise UnsupportedAlgorithmError(
            f"Digest algorithm {hash_name} is not available: {e}"
        ) from e
