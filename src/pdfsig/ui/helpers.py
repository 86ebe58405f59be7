"""
Input decoding and file output shared by the CLI and the file-level API.
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from ..errors import ArgumentError, DocumentError

__all__ = [
    "atomic_write",
    "decode_base64",
    "parse_iso_date",
    "require",
]


def require(value: str | None, flag: str) -> str:
    """Return ``value`` or raise ArgumentError naming the missing flag."""
    if not value:
        raise ArgumentError(f"Missing required argument --{flag}")
    return value


def decode_base64(value: str, what: str) -> bytes:
    """Decode standard base64, raising ArgumentError on malformed input."""
    try:
        data = base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ArgumentError(f"Invalid base64 in {what}: {e}") from e
    if not data:
        raise ArgumentError(f"Empty {what}")
    return data


def parse_iso_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ArgumentError(f"Invalid ISO-8601 date {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def atomic_write(path: str | Path, data: bytes) -> None:
    """Write data to a file atomically using temp file + rename.

    Prevents partial writes from leaving corrupt output files if
    the process is interrupted mid-write (e.g., disk full, Ctrl-C).

    Raises:
        DocumentError: If the file cannot be written.
    """
    target = Path(path)
    try:
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
    except OSError as e:
        raise DocumentError(f"Cannot write {target}: {e}") from e
    tmp = Path(tmp_path)
    try:
        os.write(fd, data)
        os.fsync(fd)
        os.close(fd)
        fd = -1
        tmp.replace(target)
    except OSError as e:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise DocumentError(f"Cannot write {target}: {e}") from e
