"""Shared test fixtures for the pdfsig test suite."""

from __future__ import annotations

import hashlib
import io
from datetime import datetime, timezone

import pytest

ISSUER_NAME = {"common_name": "pdfsig test CA"}


# ── PDF builders ────────────────────────────────────────────────────


def make_pdf(pages: int = 1, **save_kwargs) -> bytes:
    """Create a minimal PDF with blank pages using pikepdf."""
    import pikepdf

    pdf = pikepdf.Pdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    buf = io.BytesIO()
    pdf.save(buf, **save_kwargs)
    return buf.getvalue()


def make_pdf_with_text_field(name: str = "Comments") -> bytes:
    """Create a PDF whose AcroForm already holds one text field."""
    import pikepdf

    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    field = pdf.make_indirect(
        pikepdf.Dictionary(
            FT=pikepdf.Name.Tx,
            T=pikepdf.String(name),
            Rect=pikepdf.Array([10, 10, 200, 40]),
            Type=pikepdf.Name.Annot,
            Subtype=pikepdf.Name.Widget,
            P=pdf.pages[0].obj,
        )
    )
    pdf.pages[0].obj.Annots = pikepdf.Array([field])
    pdf.Root.AcroForm = pikepdf.Dictionary(
        Fields=pikepdf.Array([field]),
        DA=pikepdf.String("/Helv 0 Tf 0 g"),
    )
    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def make_pdf_with_signature_value(encryption=None, **sig_entries) -> bytes:
    """Create a PDF with one /Sig field whose /V holds ``sig_entries`` verbatim.

    Lets tests build signature dictionaries no signer would produce.
    """
    import pikepdf

    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    value = pdf.make_indirect(pikepdf.Dictionary(Type=pikepdf.Name.Sig, **sig_entries))
    field = pdf.make_indirect(
        pikepdf.Dictionary(
            FT=pikepdf.Name.Sig,
            T=pikepdf.String("Signature1"),
            V=value,
            Rect=pikepdf.Array([0, 0, 0, 0]),
            Type=pikepdf.Name.Annot,
            Subtype=pikepdf.Name.Widget,
            P=pdf.pages[0].obj,
        )
    )
    pdf.pages[0].obj.Annots = pikepdf.Array([field])
    pdf.Root.AcroForm = pikepdf.Dictionary(Fields=pikepdf.Array([field]), SigFlags=3)
    buf = io.BytesIO()
    pdf.save(buf, encryption=encryption or False)
    return buf.getvalue()


# ── ASN.1 builders ──────────────────────────────────────────────────


def build_fake_cms(message_digest: bytes, digest_algorithm: str = "sha512") -> bytes:
    """Build a CMS SignedData whose signed attributes carry ``message_digest``.

    The signature value is junk; only the structure matters to pdfsig.
    """
    from asn1crypto import algos, cms, x509

    signed_attrs = cms.CMSAttributes(
        [
            cms.CMSAttribute({"type": "content_type", "values": ["data"]}),
            cms.CMSAttribute({"type": "message_digest", "values": [message_digest]}),
        ]
    )
    sid = cms.SignerIdentifier(
        name="issuer_and_serial_number",
        value=cms.IssuerAndSerialNumber(
            {"issuer": x509.Name.build(ISSUER_NAME), "serial_number": 1}
        ),
    )
    signer_info = cms.SignerInfo(
        {
            "version": "v1",
            "sid": sid,
            "digest_algorithm": algos.DigestAlgorithm({"algorithm": digest_algorithm}),
            "signed_attrs": signed_attrs,
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": "rsassa_pkcs1v15"}),
            "signature": b"\x01" * 256,
        }
    )
    signed_data = cms.SignedData(
        {
            "version": "v1",
            "digest_algorithms": [algos.DigestAlgorithm({"algorithm": digest_algorithm})],
            "encap_content_info": {"content_type": "data"},
            "signer_infos": [signer_info],
        }
    )
    return cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()


def build_fake_ocsp(serial: int = 1) -> bytes:
    """Build a successful OCSPResponse wrapping a BasicOCSPResponse."""
    from asn1crypto import algos, core, ocsp

    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    cert_id = ocsp.CertId(
        {
            "hash_algorithm": algos.DigestAlgorithm({"algorithm": "sha1"}),
            "issuer_name_hash": b"\x00" * 20,
            "issuer_key_hash": b"\x00" * 20,
            "serial_number": serial,
        }
    )
    single = ocsp.SingleResponse(
        {
            "cert_id": cert_id,
            "cert_status": ocsp.CertStatus(name="good", value=core.Null()),
            "this_update": moment,
        }
    )
    tbs = ocsp.ResponseData(
        {
            "responder_id": ocsp.ResponderId(name="by_key", value=b"\x01" * 20),
            "produced_at": moment,
            "responses": [single],
        }
    )
    basic = ocsp.BasicOCSPResponse(
        {
            "tbs_response_data": tbs,
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": "sha256_rsa"}),
            "signature": b"\x02" * 256,
        }
    )
    return ocsp.OCSPResponse(
        {
            "response_status": "successful",
            "response_bytes": {"response_type": "basic_ocsp_response", "response": basic},
        }
    ).dump()


def build_fake_crl() -> bytes:
    """Build an empty v2 CRL."""
    from asn1crypto import algos, crl, x509

    tbs = crl.TbsCertList(
        {
            "version": "v2",
            "signature": algos.SignedDigestAlgorithm({"algorithm": "sha256_rsa"}),
            "issuer": x509.Name.build(ISSUER_NAME),
            "this_update": x509.Time(
                name="utc_time", value=datetime(2024, 1, 1, tzinfo=timezone.utc)
            ),
            "next_update": x509.Time(
                name="utc_time", value=datetime(2024, 2, 1, tzinfo=timezone.utc)
            ),
        }
    )
    return crl.CertificateList(
        {
            "tbs_cert_list": tbs,
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": "sha256_rsa"}),
            "signature": b"\x03" * 256,
        }
    ).dump()


def sign_document(document, algorithm: str = "sha512") -> bytes:
    """Embed a fake CMS whose messageDigest matches the document's hashable bytes."""
    from pdfsig.core.signing import Signer

    message_digest = hashlib.new(algorithm, document.hashable).digest()
    cms_der = build_fake_cms(message_digest, algorithm)
    Signer(document).sign(cms_der)
    return cms_der


# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the user's config file and PDFSIG_* env vars."""
    monkeypatch.setattr("pdfsig.config._storage.CONFIG_FILE", tmp_path / "no-config.json")
    for name in ("PDFSIG_ESTIMATED_SIZE", "PDFSIG_ALGORITHM", "PDFSIG_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def valid_pdf_bytes():
    return make_pdf()


@pytest.fixture
def placeholdered_document(valid_pdf_bytes):
    """A document with one unsigned placeholder (small slot)."""
    from pdfsig.core.document import Document
    from pdfsig.core.signing import Signer

    document = Document.from_bytes(valid_pdf_bytes)
    Signer(document).placeholder(estimated_size=4096)
    return document


@pytest.fixture
def signed_document(placeholdered_document):
    sign_document(placeholdered_document)
    return placeholdered_document


@pytest.fixture
def ocsp_der():
    return build_fake_ocsp()


@pytest.fixture
def crl_der():
    return build_fake_crl()
