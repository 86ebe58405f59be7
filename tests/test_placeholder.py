"""Tests for pdfsig.core.placeholder."""

from __future__ import annotations

import io
from datetime import datetime, timezone

import pikepdf
import pytest

from pdfsig.core.document import Document
from pdfsig.core.placeholder import PlaceholderBuilder, reserved_slot_size
from pdfsig.core.types import CertificationLevel, SignatureMetadata
from pdfsig.errors import ArgumentError

from .conftest import make_pdf_with_text_field


def test_reserved_slot_size():
    assert reserved_slot_size(30000) == 60002
    assert reserved_slot_size(1) == 4


def test_default_reservation_grows_document(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder().apply(document)
    assert len(document.content) >= len(valid_pdf_bytes) + 30000
    assert len(document.hashable) <= len(valid_pdf_bytes) + 1000


def test_returns_new_field(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    field = PlaceholderBuilder(estimated_size=1000).apply(document)
    assert field.name == "Signature1"
    assert field.capacity == 1000
    assert field.byte_range.c3 == len(document.content)


def test_slot_is_zero_filled(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    field = PlaceholderBuilder(estimated_size=64).apply(document)
    assert field.byte_range.blob_hex(document.content) == b"0" * 128


def test_hashable_matches_byte_range(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    field = PlaceholderBuilder(estimated_size=64).apply(document)
    assert document.hashable == field.byte_range.covered(document.content)


def test_unsigned_document_has_empty_hashable(valid_pdf_bytes):
    assert Document.from_bytes(valid_pdf_bytes).hashable == b""


def test_original_bytes_are_untouched(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(estimated_size=64).apply(document)
    assert document.content.startswith(valid_pdf_bytes)


def test_second_placeholder_gets_next_name(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(estimated_size=64).apply(document)
    second = PlaceholderBuilder(estimated_size=64).apply(document)
    assert second.name == "Signature2"
    assert [f.name for f in document.signature_fields()] == ["Signature1", "Signature2"]
    # Hashable covers the new field only until it is recomputed
    assert document.hashable == second.byte_range.covered(document.content)


def test_metadata_is_written(valid_pdf_bytes):
    metadata = SignatureMetadata(
        reason="Contract",
        location="Berlin",
        contact="+49 30 1234",
        date=datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc),
    )
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(metadata, estimated_size=64).apply(document)
    with pikepdf.open(io.BytesIO(document.content)) as pdf:
        sig = pdf.Root.AcroForm.Fields[0].V
        assert str(sig.Reason) == "Contract"
        assert str(sig.Location) == "Berlin"
        assert str(sig.ContactInfo) == "+49 30 1234"
        assert str(sig.M) == "D:20240601093000Z"


def test_no_date_means_no_m_entry(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(estimated_size=64).apply(document)
    with pikepdf.open(io.BytesIO(document.content)) as pdf:
        assert "/M" not in pdf.Root.AcroForm.Fields[0].V


def test_certification_writes_perms(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(
        estimated_size=64,
        certification_level=CertificationLevel.CERTIFIED_FORM_FILLING_AND_ANNOTATIONS,
    ).apply(document)
    assert (
        document.engine.certification_level()
        == CertificationLevel.CERTIFIED_FORM_FILLING_AND_ANNOTATIONS
    )
    with pikepdf.open(io.BytesIO(document.content)) as pdf:
        assert "/DocMDP" in pdf.Root.Perms
        params = pdf.Root.Perms.DocMDP.Reference[0].TransformParams
        assert int(params.P) == 3
        assert params.V == pikepdf.Name("/1.2")


def test_certification_level_accepts_int(valid_pdf_bytes):
    document = Document.from_bytes(valid_pdf_bytes)
    PlaceholderBuilder(estimated_size=64, certification_level=1).apply(document)
    assert (
        document.engine.certification_level()
        == CertificationLevel.CERTIFIED_NO_CHANGES_ALLOWED
    )


@pytest.mark.parametrize("size", [0, -1, 8 * 1024 * 1024 + 1])
def test_estimated_size_out_of_bounds(size):
    with pytest.raises(ArgumentError, match="Estimated size"):
        PlaceholderBuilder(estimated_size=size)


def test_existing_text_field_is_preserved():
    document = Document.from_bytes(make_pdf_with_text_field("Comments"))
    PlaceholderBuilder(estimated_size=64).apply(document)
    with pikepdf.open(io.BytesIO(document.content)) as pdf:
        fields = pdf.Root.AcroForm.Fields
        assert [str(f.T) for f in fields] == ["Comments", "Signature1"]
        assert fields[0].FT == pikepdf.Name.Tx
        assert int(pdf.Root.AcroForm.SigFlags) == 3


def test_multi_page_document_widget_on_first_page():
    from .conftest import make_pdf

    document = Document.from_bytes(make_pdf(pages=3))
    PlaceholderBuilder(estimated_size=64).apply(document)
    with pikepdf.open(io.BytesIO(document.content)) as pdf:
        assert len(pdf.pages) == 3
        assert len(pdf.pages[0].obj.Annots) == 1
        assert "/Annots" not in pdf.pages[1].obj
