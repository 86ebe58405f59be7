"""ByteRange model and hashable-bytes derivation.

A signature's ByteRange is kept as four absolute offsets into the
document content::

    [c0, c1)   hashable content before the signature blob
    [c1, c2)   the blob, including its "<" and ">" markers
    [c2, c3)   hashable content after the blob

The PDF ``/ByteRange [off1 len1 off2 len2]`` array maps onto this as
``c0 = off1``, ``c1 = off1 + len1``, ``c2 = off2``, ``c3 = off2 + len2``.
"""

from __future__ import annotations

__all__ = ["ByteRange", "hashable_bytes"]

from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import DocumentError


@dataclass(frozen=True)
class ByteRange:
    """Four monotonically non-decreasing offsets into document content."""

    c0: int
    c1: int
    c2: int
    c3: int

    def __post_init__(self) -> None:
        if not 0 <= self.c0 <= self.c1 <= self.c2 <= self.c3:
            raise DocumentError(
                f"Invalid ByteRange offsets: {self.c0}, {self.c1}, {self.c2}, {self.c3}"
            )

    @classmethod
    def from_pdf_array(cls, values: Iterable[int]) -> ByteRange:
        """Build from a PDF ``/ByteRange [off1 len1 off2 len2]`` array."""
        items = [int(v) for v in values]
        if len(items) != 4:
            raise DocumentError(f"ByteRange must have 4 entries, got {len(items)}")
        off1, len1, off2, len2 = items
        if min(items) < 0:
            raise DocumentError(f"ByteRange entries must be non-negative: {items}")
        return cls(off1, off1 + len1, off2, off2 + len2)

    def to_pdf_array(self) -> tuple[int, int, int, int]:
        """Return the ``[off1 len1 off2 len2]`` form."""
        return (self.c0, self.c1 - self.c0, self.c2, self.c3 - self.c2)

    @property
    def hex_start(self) -> int:
        """Offset of the first hex digit (just after "<")."""
        return self.c1 + 1

    @property
    def hex_capacity(self) -> int:
        """Number of hex digits the blob can hold (markers excluded)."""
        return max(self.c2 - self.c1 - 2, 0)

    def check_bounds(self, content: bytes) -> None:
        """Raise DocumentError if the range does not fit ``content``."""
        if self.c3 > len(content):
            raise DocumentError(
                f"ByteRange extends beyond EOF: {self.c3} > {len(content)}"
            )

    def check_markers(self, content: bytes) -> None:
        """Raise DocumentError unless the blob is delimited by "<" and ">"."""
        self.check_bounds(content)
        if self.c2 - self.c1 < 2:
            raise DocumentError(f"Signature blob too short: [{self.c1}, {self.c2})")
        if content[self.c1 : self.c1 + 1] != b"<":
            raise DocumentError(
                f"Expected '<' at offset {self.c1}, got {content[self.c1 : self.c1 + 1]!r}"
            )
        if content[self.c2 - 1 : self.c2] != b">":
            raise DocumentError(
                f"Expected '>' at offset {self.c2 - 1}, got {content[self.c2 - 1 : self.c2]!r}"
            )

    def covered(self, content: bytes) -> bytes:
        """Return the hashable bytes this range covers in ``content``."""
        self.check_bounds(content)
        return content[self.c0 : self.c1] + content[self.c2 : self.c3]

    def blob_hex(self, content: bytes) -> bytes:
        """Return the hex digits between the markers."""
        self.check_bounds(content)
        return content[self.hex_start : self.c2 - 1]


def hashable_bytes(content: bytes, ranges: Iterable[ByteRange]) -> bytes:
    """Concatenate the covered bytes of every range, in order."""
    return b"".join(byte_range.covered(content) for byte_range in ranges)
