"""
Signing pipeline orchestration.

A :class:`Signer` wraps one :class:`Document` and moves it through the
placeholder, sign and ltv stages.  The legality of each stage is decided
by the guard functions below, which run before any stage touches the
document.
"""

from __future__ import annotations

__all__ = [
    "Signer",
    "SigningState",
    "check_digest_allowed",
    "check_ltv_allowed",
    "check_placeholder_allowed",
    "check_sign_allowed",
]

import logging
from collections.abc import Iterable
from enum import Enum

from ..constants import DEFAULT_ESTIMATED_SIZE
from ..errors import (
    ArgumentError,
    CertificationLevelError,
    ValidationError,
    WriteNotAllowedError,
)
from . import digest as _digest
from .document import Document
from .embedder import SignatureEmbedder
from .ltv import LtvEmbedder, ValidationRecord
from .placeholder import PlaceholderBuilder
from .types import CertificationLevel, SignatureField, SignatureMetadata

_logger = logging.getLogger(__name__)


class SigningState(Enum):
    UNSIGNED = "unsigned"
    PLACEHOLDERED = "placeholdered"
    SIGNED = "signed"
    SIGNED_LTV = "signed_ltv"


def _last_slot_is_empty(document: Document) -> bool:
    fields = document.signature_fields()
    if not fields:
        return False
    blob = fields[-1].byte_range.blob_hex(document.content)
    return not blob.strip(b"0")


def derive_state(document: Document) -> SigningState:
    """Derive the pipeline state from the document structure."""
    if not document.engine.signature_field_names():
        return SigningState.UNSIGNED
    if _last_slot_is_empty(document):
        return SigningState.PLACEHOLDERED
    if document.engine.has_dss():
        return SigningState.SIGNED_LTV
    return SigningState.SIGNED


# ── Guards ───────────────────────────────────────────────────────────


def _is_frozen(document: Document) -> bool:
    return document.engine.certification_level() == CertificationLevel.CERTIFIED_NO_CHANGES_ALLOWED


def check_placeholder_allowed(document: Document, requested: CertificationLevel) -> None:
    current = document.engine.certification_level()
    if requested != CertificationLevel.NOT_CERTIFIED and current != CertificationLevel.NOT_CERTIFIED:
        raise CertificationLevelError(
            f"Document is already certified ({current.name}); "
            "a certifying signature cannot be added."
        )
    if _is_frozen(document):
        raise WriteNotAllowedError("Document is certified with no changes allowed.")


def check_sign_allowed(document: Document) -> None:
    """Signing needs a placeholder and a document that is not frozen.

    The certifying signature's own unfilled slot is exempt: filling it
    is how certification completes.
    """
    names = document.engine.signature_field_names()
    if not names:
        raise ArgumentError("Document has no signature placeholder.")
    if not _is_frozen(document):
        return
    if document.engine.certifying_field_name() == names[-1] and _last_slot_is_empty(document):
        return
    raise WriteNotAllowedError("Document is certified with no changes allowed.")


def check_ltv_allowed(document: Document) -> None:
    if _is_frozen(document):
        raise ValidationError(
            "Document is certified with no changes allowed; validation data cannot be added."
        )


def check_digest_allowed(document: Document) -> None:
    if not document.engine.signature_field_names():
        raise ArgumentError("Document has no signature placeholder to digest.")


# ── Orchestrator ─────────────────────────────────────────────────────


class Signer:
    """Run the signing stages against one document.

    Args:
        document: Document to operate on; mutated in place by each stage.
        algorithm: Default digest algorithm for :meth:`digest`.
    """

    def __init__(self, document: Document, algorithm: str | None = None) -> None:
        self.document = document
        self.algorithm = _digest.resolve_algorithm(algorithm)

    @property
    def state(self) -> SigningState:
        return derive_state(self.document)

    def placeholder(
        self,
        metadata: SignatureMetadata | None = None,
        estimated_size: int = DEFAULT_ESTIMATED_SIZE,
        certification_level: CertificationLevel = CertificationLevel.NOT_CERTIFIED,
    ) -> SignatureField:
        check_placeholder_allowed(self.document, certification_level)
        builder = PlaceholderBuilder(metadata, estimated_size, certification_level)
        return builder.apply(self.document)

    def digest(self, algorithm: str | None = None) -> bytes:
        """Digest the document's current hashable bytes."""
        check_digest_allowed(self.document)
        name = _digest.resolve_algorithm(algorithm) if algorithm else self.algorithm
        value = _digest.calculate(self.document.hashable, name)
        _logger.debug("%s over %d hashable bytes", name, len(self.document.hashable))
        return value

    def sign(self, signature: bytes) -> SignatureField:
        check_sign_allowed(self.document)
        return SignatureEmbedder(signature).apply(self.document)

    def ltv(self, ocsps: Iterable[bytes] = (), crls: Iterable[bytes] = ()) -> int:
        check_ltv_allowed(self.document)
        record = ValidationRecord.from_der(ocsps, crls)
        return LtvEmbedder(record).apply(self.document)
