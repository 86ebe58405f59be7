"""pdfsig error types."""

from __future__ import annotations

__all__ = [
    "ArgumentError",
    "CertificationLevelError",
    "DocumentError",
    "PdfSigError",
    "SignatureError",
    "SignatureTooLargeError",
    "UnsupportedAlgorithmError",
    "ValidationError",
    "WriteNotAllowedError",
]


class PdfSigError(Exception):
    """Base error for pdfsig operations."""


class DocumentError(PdfSigError):
    """Document is unreadable, corrupt, or the password is wrong."""


class SignatureError(PdfSigError):
    """Placeholder creation or signature embedding was refused."""


class CertificationLevelError(SignatureError):
    """Certification level may not be changed on this document."""


class WriteNotAllowedError(SignatureError):
    """Document is certified with no changes allowed."""


class SignatureTooLargeError(SignatureError):
    """External signature does not fit the reserved placeholder.

    Args:
        message: Human-readable error description.
        required: Hex characters the signature needs.
        capacity: Hex characters reserved in the placeholder.
    """

    def __init__(self, message: str, *, required: int = 0, capacity: int = 0) -> None:
        super().__init__(message)
        self.required = required
        self.capacity = capacity

    def __reduce__(self) -> tuple[type[SignatureTooLargeError], tuple[str], dict[str, int]]:
        """Preserve sizes across pickle/unpickle."""
        return (type(self), (str(self),), {"required": self.required, "capacity": self.capacity})

    def __setstate__(self, state: dict[str, int] | None) -> None:
        if state is None:
            return
        self.required = state.get("required", 0)
        self.capacity = state.get("capacity", 0)


class ValidationError(PdfSigError):
    """OCSP/CRL material could not be parsed or embedded."""


class UnsupportedAlgorithmError(PdfSigError):
    """Digest algorithm name is not recognized."""


class ArgumentError(PdfSigError):
    """Required input is missing or invalid."""
