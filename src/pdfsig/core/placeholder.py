"""Signature placeholder reservation.

A placeholder is a new incremental revision holding an invisible
signature field whose /Contents slot is reserved but not yet filled.
The bytes the eventual signature must cover are fixed at this point.
"""

from __future__ import annotations

__all__ = ["PlaceholderBuilder", "reserved_slot_size"]

import logging

from ..constants import DEFAULT_ESTIMATED_SIZE, MAX_ESTIMATED_SIZE, MIN_ESTIMATED_SIZE
from ..errors import ArgumentError
from .document import Document
from .types import CertificationLevel, SignatureField, SignatureMetadata

_logger = logging.getLogger(__name__)


def reserved_slot_size(estimated_size: int) -> int:
    """Bytes reserved for /Contents: two hex digits per byte plus "<" and ">"."""
    return 2 * estimated_size + 2


class PlaceholderBuilder:
    """Reserve a zero-filled signature slot in a new revision.

    Args:
        metadata: Reason, location, contact and date to record.
        estimated_size: Signature capacity to reserve, in bytes.
        certification_level: Non-zero levels make this the certifying
            (DocMDP) signature.
    """

    def __init__(
        self,
        metadata: SignatureMetadata | None = None,
        estimated_size: int = DEFAULT_ESTIMATED_SIZE,
        certification_level: CertificationLevel = CertificationLevel.NOT_CERTIFIED,
    ) -> None:
        if not MIN_ESTIMATED_SIZE <= estimated_size <= MAX_ESTIMATED_SIZE:
            raise ArgumentError(
                f"Estimated size must be between {MIN_ESTIMATED_SIZE} and "
                f"{MAX_ESTIMATED_SIZE} bytes, got {estimated_size}"
            )
        self.metadata = metadata or SignatureMetadata()
        self.estimated_size = estimated_size
        self.certification_level = CertificationLevel(certification_level)

    def apply(self, document: Document) -> SignatureField:
        """Append the placeholder revision to ``document``.

        Sets ``document.hashable`` to the range bytes of the new field,
        captured before the slot filler is written.

        Returns:
            The new signature field.
        """
        revision = document.engine.begin_revision(
            self.metadata,
            reserved_slot_size(self.estimated_size),
            self.certification_level,
        )
        hashable = revision.pre_close()
        content = revision.close()

        original_len = len(document.content)
        document.replace_content(content)
        document.hashable = hashable
        _logger.info(
            "Reserved %d-byte signature slot in field %s (document grew by %d bytes)",
            self.estimated_size,
            revision.field_name,
            len(content) - original_len,
        )
        return SignatureField(revision.field_name, revision.byte_range)
