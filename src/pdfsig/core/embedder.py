"""In-place embedding of an externally produced signature."""

from __future__ import annotations

__all__ = ["SignatureEmbedder"]

import logging

from ..errors import ArgumentError, DocumentError, SignatureTooLargeError
from .document import Document
from .types import SignatureField

_logger = logging.getLogger(__name__)


class SignatureEmbedder:
    """Hex-encode a signature and patch it into the newest placeholder.

    The document length never changes: the slot keeps its zero filler
    after the signature's hex digits.
    """

    def __init__(self, signature: bytes) -> None:
        if not signature:
            raise ArgumentError("Signature is empty.")
        self.signature = bytes(signature)

    def apply(self, document: Document) -> SignatureField:
        fields = document.signature_fields()
        if not fields:
            raise ArgumentError("Document has no signature placeholder.")
        target = fields[-1]
        byte_range = target.byte_range
        content = document.content

        byte_range.check_markers(content)
        hex_digits = self.signature.hex().encode("ascii")
        capacity = byte_range.hex_capacity
        if len(hex_digits) > capacity:
            raise SignatureTooLargeError(
                f"Signature needs {len(hex_digits)} hex characters but field "
                f"{target.name} reserves {capacity}. Use a larger estimated size.",
                required=len(hex_digits),
                capacity=capacity,
            )

        start = byte_range.hex_start
        patched = content[:start] + hex_digits + content[start + len(hex_digits) :]
        if len(patched) != len(content):
            raise DocumentError(
                f"Document length changed while embedding ({len(content)} -> {len(patched)})."
            )

        document.replace_content(patched)
        document.recompute_hashable()
        _logger.info(
            "Embedded %d-byte signature into field %s (capacity %d bytes)",
            len(self.signature),
            target.name,
            target.capacity,
        )
        return target
