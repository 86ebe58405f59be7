"""Value types shared by the signing pipeline."""

from __future__ import annotations

__all__ = ["CertificationLevel", "SignatureField", "SignatureMetadata"]

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING

from ..errors import ArgumentError

if TYPE_CHECKING:
    from .byterange import ByteRange


class CertificationLevel(IntEnum):
    """Document certification level.

    Values match the DocMDP ``/P`` permission numbers, except
    NOT_CERTIFIED which means no DocMDP signature exists.
    """

    NOT_CERTIFIED = 0
    CERTIFIED_NO_CHANGES_ALLOWED = 1
    CERTIFIED_FORM_FILLING = 2
    CERTIFIED_FORM_FILLING_AND_ANNOTATIONS = 3

    @classmethod
    def from_value(cls, value: int | str) -> CertificationLevel:
        """Parse a level from its integer form (0-3)."""
        try:
            return cls(int(value))
        except ValueError as e:
            raise ArgumentError(
                f"Invalid certification level {value!r}; expected an integer 0-3"
            ) from e


@dataclass(frozen=True)
class SignatureMetadata:
    """Signer-supplied entries of the signature dictionary.

    Every entry is optional; omitted entries are not written.
    """

    reason: str | None = None
    location: str | None = None
    contact: str | None = None
    date: datetime | None = None


@dataclass(frozen=True)
class SignatureField:
    """A signature field as seen by the core.

    Attributes:
        name: Fully qualified field name.
        byte_range: Offsets delimiting hashable content and the blob.
    """

    name: str
    byte_range: ByteRange

    @property
    def capacity(self) -> int:
        """Reserved signature capacity in bytes."""
        return self.byte_range.hex_capacity // 2
