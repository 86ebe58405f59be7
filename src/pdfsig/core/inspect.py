# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Read-back of embedded signatures.

Reports each signature field with its byte range and metadata, and checks
whether the CMS ``messageDigest`` attribute matches the digest of the bytes
the field covers.  This is an integrity check only; certificate chains and
the CMS signature value are not verified.
"""

from __future__ import annotations

__all__ = ["SignatureReport", "inspect_document", "inspect_signatures"]

import hashlib
import logging
from dataclasses import dataclass

from asn1crypto import cms as asn1_cms

from .byterange import ByteRange
from .document import Document
from .types import SignatureMetadata

_logger = logging.getLogger(__name__)

# Digest algorithm identifiers (asn1crypto .native) -> hashlib names.
# Some signers put the signature algorithm in the digest algorithm field.
_DIGEST_ALGO_MAP: dict[str, str] = {
    "sha1": "sha1",
    "sha256": "sha256",
    "sha384": "sha384",
    "sha512": "sha512",
    "sha1_rsa": "sha1",
    "sha256_rsa": "sha256",
    "sha384_rsa": "sha384",
    "sha512_rsa": "sha512",
}


@dataclass(frozen=True)
class SignatureReport:
    """What is known about one signature field.

    Attributes:
        name: Field name.
        byte_range: Offsets of the covered bytes and the blob.
        metadata: /Reason, /Location, /ContactInfo and /M as read back.
        filled: False while the slot still holds only its zero filler.
        digest_algorithm: hashlib name from the CMS, if it could be read.
        digest_matches: Whether the CMS messageDigest equals the digest of
            the covered bytes; None when there is nothing to compare.
    """

    name: str
    byte_range: ByteRange
    metadata: SignatureMetadata
    filled: bool
    digest_algorithm: str | None = None
    digest_matches: bool | None = None

    @property
    def valid(self) -> bool:
        return self.filled and self.digest_matches is True


def _message_digest(signature: bytes) -> tuple[str, bytes] | None:
    """Extract (hashlib name, messageDigest) from a zero-padded CMS blob."""
    try:
        # strict=False tolerates the zero padding after the DER value
        content_info = asn1_cms.ContentInfo.load(signature, strict=False)
        if content_info["content_type"].native != "signed_data":
            return None
        signer_infos = content_info["content"]["signer_infos"]
        if not len(signer_infos):
            return None
        signer_info = signer_infos[0]
        algo_name = _DIGEST_ALGO_MAP.get(signer_info["digest_algorithm"]["algorithm"].native)
        if algo_name is None:
            return None
        signed_attrs = signer_info["signed_attrs"]
        if not signed_attrs.native:
            return None
        for attr in signed_attrs:
            if attr["type"].native == "message_digest":
                return algo_name, attr["values"][0].native
        return None  # noqa: TRY300 -- no messageDigest attribute present
    except (ValueError, TypeError, KeyError, IndexError):
        _logger.debug("Could not extract messageDigest from CMS", exc_info=True)
        return None


def inspect_document(document: Document) -> list[SignatureReport]:
    """Report every signature field of an open document, in engine order."""
    engine = document.engine
    content = document.content
    reports: list[SignatureReport] = []
    for name in engine.signature_field_names():
        byte_range = engine.byte_range(name)
        metadata = engine.signature_metadata(name)
        signature = engine.signature_contents(name)
        filled = bool(signature.strip(b"\x00"))
        if not filled:
            reports.append(SignatureReport(name, byte_range, metadata, filled=False))
            continue

        extracted = _message_digest(signature)
        if extracted is None:
            reports.append(SignatureReport(name, byte_range, metadata, filled=True))
            continue
        algo_name, expected = extracted
        actual = hashlib.new(algo_name, byte_range.covered(content)).digest()
        matches = actual == expected
        _logger.debug("Field %s: %s digest %s", name, algo_name, "matches" if matches else "differs")
        reports.append(
            SignatureReport(
                name,
                byte_range,
                metadata,
                filled=True,
                digest_algorithm=algo_name,
                digest_matches=matches,
            )
        )
    return reports


def inspect_signatures(content: bytes, password: str | None = None) -> list[SignatureReport]:
    """Open ``content`` and report every signature field."""
    return inspect_document(Document.from_bytes(content, password))
