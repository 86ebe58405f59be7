"""High-level file-based API for the signing pipeline.

Each function loads a document from disk, runs one pipeline stage through
:class:`~pdfsig.core.signing.Signer`, and writes the result atomically to
the output path only after the stage succeeded.

For in-memory control, use :class:`~pdfsig.core.document.Document` and
:class:`~pdfsig.core.signing.Signer` directly.
"""

from __future__ import annotations

__all__ = [
    "add_ltv_to_pdf",
    "add_placeholder",
    "compute_digest",
    "prepare_pdf",
    "sign_pdf",
    "verify_pdf",
]

import base64
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from .config import get_signing_defaults
from .core.document import Document
from .core.inspect import SignatureReport, inspect_document
from .core.signing import Signer
from .core.types import CertificationLevel, SignatureMetadata
from .errors import ArgumentError
from .ui.helpers import atomic_write, decode_base64, parse_iso_date

_logger = logging.getLogger(__name__)

PathLike = str | Path


def _require_path(value: PathLike | None, name: str) -> PathLike:
    if not value:
        raise ArgumentError(f"'{name}' is mandatory")
    return value


def _as_bytes(value: bytes | str, what: str) -> bytes:
    """Accept raw bytes or a base64 string."""
    if isinstance(value, str):
        return decode_base64(value, what)
    return bytes(value)


def _metadata(
    reason: str | None,
    location: str | None,
    contact: str | None,
    date: datetime | str | None,
) -> SignatureMetadata:
    if isinstance(date, str):
        date = parse_iso_date(date)
    return SignatureMetadata(reason=reason, location=location, contact=contact, date=date)


def _placeholder(
    file: PathLike | None,
    out: PathLike | None,
    estimated_size: int | None,
    certification_level: int | CertificationLevel,
    password: str | None,
    metadata: SignatureMetadata,
) -> tuple[Signer, PathLike]:
    source = _require_path(file, "file")
    target = _require_path(out, "out")
    defaults = get_signing_defaults()
    if estimated_size is None:
        estimated_size = defaults.estimated_size
    level = CertificationLevel.from_value(certification_level)

    signer = Signer(Document.load(source, password), defaults.algorithm)
    signer.placeholder(metadata, estimated_size, level)
    atomic_write(target, signer.document.content)
    return signer, target


def add_placeholder(
    file: PathLike | None,
    out: PathLike | None,
    *,
    estimated_size: int | None = None,
    certification_level: int | CertificationLevel = CertificationLevel.NOT_CERTIFIED,
    password: str | None = None,
    reason: str | None = None,
    location: str | None = None,
    contact: str | None = None,
    date: datetime | str | None = None,
) -> str:
    """Write ``file`` with a new signature placeholder to ``out``.

    Returns:
        The output path.
    """
    metadata = _metadata(reason, location, contact, date)
    _, target = _placeholder(file, out, estimated_size, certification_level, password, metadata)
    _logger.info("Placeholder written to %s", target)
    return str(target)


def prepare_pdf(
    file: PathLike | None,
    out: PathLike | None,
    *,
    estimated_size: int | None = None,
    certification_level: int | CertificationLevel = CertificationLevel.NOT_CERTIFIED,
    password: str | None = None,
    algorithm: str | None = None,
    reason: str | None = None,
    location: str | None = None,
    contact: str | None = None,
    date: datetime | str | None = None,
) -> str:
    """Add a placeholder and return the base64 digest the signer must sign.

    The placeholdered document is written to ``out``.
    """
    metadata = _metadata(reason, location, contact, date)
    signer, target = _placeholder(file, out, estimated_size, certification_level, password, metadata)
    digest = signer.digest(algorithm)
    _logger.info("Prepared %s for signing", target)
    return base64.b64encode(digest).decode("ascii")


def compute_digest(
    file: PathLike | None,
    *,
    password: str | None = None,
    algorithm: str | None = None,
) -> str:
    """Return the base64 digest of a placeholdered document's hashable bytes."""
    source = _require_path(file, "file")
    signer = Signer(Document.load(source, password), algorithm or get_signing_defaults().algorithm)
    return base64.b64encode(signer.digest()).decode("ascii")


def sign_pdf(
    file: PathLike | None,
    out: PathLike | None,
    signature: bytes | str | None,
    *,
    password: str | None = None,
) -> str:
    """Embed an external signature (raw DER or base64) and write ``out``.

    Returns:
        The output path.
    """
    source = _require_path(file, "file")
    target = _require_path(out, "out")
    if not signature:
        raise ArgumentError("'signature' is mandatory")
    signer = Signer(Document.load(source, password))
    signer.sign(_as_bytes(signature, "signature"))
    atomic_write(target, signer.document.content)
    _logger.info("Signed document written to %s", target)
    return str(target)


def add_ltv_to_pdf(
    file: PathLike | None,
    out: PathLike | None,
    *,
    crl: Iterable[bytes | str] = (),
    ocsp: Iterable[bytes | str] = (),
    password: str | None = None,
) -> str:
    """Embed OCSP responses and CRLs (raw DER or base64) and write ``out``.

    Returns:
        The output path.
    """
    source = _require_path(file, "file")
    target = _require_path(out, "out")
    if isinstance(crl, (str, bytes)) or isinstance(ocsp, (str, bytes)):
        raise ArgumentError("'crl' and 'ocsp' must be sequences")
    crls = [_as_bytes(item, "CRL") for item in crl]
    ocsps = [_as_bytes(item, "OCSP response") for item in ocsp]
    signer = Signer(Document.load(source, password))
    signer.ltv(ocsps=ocsps, crls=crls)
    atomic_write(target, signer.document.content)
    _logger.info("LTV document written to %s", target)
    return str(target)


def verify_pdf(file: PathLike | None, *, password: str | None = None) -> list[SignatureReport]:
    """Report every signature field of ``file`` with its digest check."""
    source = _require_path(file, "file")
    return inspect_document(Document.load(source, password))
