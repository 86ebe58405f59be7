# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Long-term validation (LTV) material embedding.

Caller-supplied OCSP responses and CRLs are parsed with asn1crypto and
written into a Document Security Store revision covering every signature
in the document.  Nothing is fetched from the network.
"""

from __future__ import annotations

__all__ = ["LtvEmbedder", "ValidationRecord"]

import logging
from collections.abc import Iterable

from asn1crypto import crl as asn1_crl
from asn1crypto import ocsp as asn1_ocsp

from ..errors import ArgumentError, ValidationError
from .document import Document

_logger = logging.getLogger(__name__)


def _parse_ocsp(der: bytes) -> asn1_ocsp.BasicOCSPResponse:
    """Parse an OCSPResponse and return its inner BasicOCSPResponse."""
    try:
        response = asn1_ocsp.OCSPResponse.load(der)
        status = response["response_status"].native
        if status != "successful":
            raise ValidationError(f"OCSP response status is {status!r}, not 'successful'.")
        response_bytes = response["response_bytes"]
        if response_bytes["response_type"].native != "basic_ocsp_response":
            raise ValidationError(
                f"Unsupported OCSP response type {response_bytes['response_type'].native!r}."
            )
        basic = response_bytes["response"].parsed
        # Force a full parse so malformed content fails here, not at embed time
        _ = basic.native
    except (ValueError, TypeError, KeyError) as e:
        raise ValidationError(f"Cannot parse OCSP response: {e}") from e
    return basic


def _parse_crl(der: bytes) -> asn1_crl.CertificateList:
    try:
        certificate_list = asn1_crl.CertificateList.load(der)
        _ = certificate_list.native
    except (ValueError, TypeError, KeyError) as e:
        raise ValidationError(f"Cannot parse CRL: {e}") from e
    return certificate_list


class ValidationRecord:
    """Parsed revocation material ready for embedding.

    OCSP responses are embedded as their inner BasicOCSPResponse; CRLs
    are embedded unchanged.
    """

    def __init__(
        self,
        ocsp_responses: list[asn1_ocsp.BasicOCSPResponse],
        crls: list[asn1_crl.CertificateList],
    ) -> None:
        self.ocsp_responses = ocsp_responses
        self.crls = crls

    @classmethod
    def from_der(cls, ocsps: Iterable[bytes] = (), crls: Iterable[bytes] = ()) -> ValidationRecord:
        """Parse DER-encoded OCSP responses and CRLs.

        Raises:
            ValidationError: If any blob fails to parse.
        """
        return cls([_parse_ocsp(der) for der in ocsps], [_parse_crl(der) for der in crls])

    def __bool__(self) -> bool:
        return bool(self.ocsp_responses or self.crls)

    def ocsp_encodings(self) -> list[bytes]:
        return [basic.dump() for basic in self.ocsp_responses]

    def crl_encodings(self) -> list[bytes]:
        return [certificate_list.dump() for certificate_list in self.crls]

    def certificate_encodings(self) -> list[bytes]:
        """Responder certificates shipped inside the OCSP responses."""
        certs: list[bytes] = []
        for basic in self.ocsp_responses:
            if basic["certs"].native is None:
                continue
            certs.extend(cert.dump() for cert in basic["certs"])
        return certs


class LtvEmbedder:
    """Append a DSS revision with the record's material for every signature."""

    def __init__(self, record: ValidationRecord) -> None:
        if not record:
            raise ArgumentError("No OCSP responses or CRLs were supplied.")
        self.record = record

    def apply(self, document: Document) -> int:
        """Embed the validation material.

        All signatures receive the material or none do.  The engine's
        queue is emptied whether or not the merge succeeds.

        Returns:
            Number of signatures the material was attached to.
        """
        engine = document.engine
        names = engine.signature_field_names()
        if not names:
            raise ValidationError("Document has no signatures to attach validation data to.")

        ocsps = self.record.ocsp_encodings()
        crls = self.record.crl_encodings()
        certs = self.record.certificate_encodings()
        try:
            for name in names:
                if not engine.attach_validation(name, ocsps, crls, certs):
                    raise ValidationError(f"Cannot attach validation data to signature {name}.")
            content = engine.merge_revision()
        finally:
            engine.discard_validation()

        original_len = len(document.content)
        document.replace_content(content)
        document.recompute_hashable()
        _logger.info(
            "Embedded %d OCSP response(s) and %d CRL(s) for %d signature(s) (+%d bytes)",
            len(ocsps),
            len(crls),
            len(names),
            len(content) - original_len,
        )
        return len(names)
