"""
pdfsig -- PDF detached signatures with an external signer.

Reserves a signature slot in a PDF, computes the digest the external
signer must sign, embeds the returned PKCS#7 signature in place, and
optionally embeds OCSP/CRL material for long-term validation.
"""

from __future__ import annotations

from .api import (
    add_ltv_to_pdf,
    add_placeholder,
    compute_digest,
    prepare_pdf,
    sign_pdf,
    verify_pdf,
)
from .constants import __version__
from .core.digest import calculate
from .core.document import Document
from .core.inspect import SignatureReport, inspect_signatures
from .core.ltv import ValidationRecord
from .core.signing import Signer, SigningState
from .core.types import CertificationLevel, SignatureField, SignatureMetadata
from .errors import (
    ArgumentError,
    CertificationLevelError,
    DocumentError,
    PdfSigError,
    SignatureError,
    SignatureTooLargeError,
    UnsupportedAlgorithmError,
    ValidationError,
    WriteNotAllowedError,
)

__all__ = [
    "ArgumentError",
    "CertificationLevel",
    "CertificationLevelError",
    "Document",
    "DocumentError",
    "PdfSigError",
    "SignatureError",
    "SignatureField",
    "SignatureMetadata",
    "SignatureReport",
    "SignatureTooLargeError",
    "Signer",
    "SigningState",
    "UnsupportedAlgorithmError",
    "ValidationError",
    "ValidationRecord",
    "WriteNotAllowedError",
    "__version__",
    "add_ltv_to_pdf",
    "add_placeholder",
    "calculate",
    "compute_digest",
    "inspect_signatures",
    "prepare_pdf",
    "sign_pdf",
    "verify_pdf",
]
