"""Document engine: structure queries and revision writing.

The core never touches PDF syntax directly.  It asks a :class:`PdfEngine`
bound to one immutable content snapshot for signature fields, byte ranges
and the certification state, and has it append revisions.  Reading goes
through pikepdf; writing appends hand-assembled incremental updates so
earlier revisions stay byte-identical.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...constants import PDF_MAGIC, SIGNATURE_FIELD_PREFIX
from ...errors import DocumentError, SignatureTooLargeError
from .. import require_pikepdf as _require_pikepdf
from ..byterange import ByteRange
from ..types import CertificationLevel, SignatureMetadata
from .dss import ValidationData, build_dss_update
from .incremental import assemble_incremental_update, patch_byterange, read_trailer_info
from .objects import (
    build_object_override,
    build_sig_dict,
    build_sig_widget,
    parse_pdf_date,
    ref,
    serialize_array_items,
    serialize_pikepdf_obj,
)

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)

# Header may be preceded by junk; readers search the first KiB
_HEADER_SEARCH_LIMIT = 1024

_MAX_FIELD_DEPTH = 32

# Widget entries owned by the form that are rebuilt on every signature
_FORM_KEYS = ("/Fields", "/SigFlags")

# /SigFlags: SignaturesExist (1) | AppendOnly (2)
_SIG_FLAGS = 3


@dataclass(frozen=True)
class FieldInfo:
    """A signature field whose value is a signature dictionary."""

    name: str
    byte_range: ByteRange
    contents: bytes
    sig_objgen: tuple[int, int] | None
    metadata: SignatureMetadata = SignatureMetadata()


class Revision:
    """A signature revision that has been appended but not yet finalized.

    ``pre_close`` captures the hashable bytes; ``close`` then writes the
    signature filler into the reserved slot.
    """

    def __init__(self, content: bytes, byte_range: ByteRange, field_name: str) -> None:
        self.field_name = field_name
        self.byte_range = byte_range
        self._content = content
        self._hashable: bytes | None = None
        self._closed = False

    def pre_close(self) -> bytes:
        """Return the hashable bytes of the new revision."""
        self.byte_range.check_markers(self._content)
        self._hashable = self.byte_range.covered(self._content)
        return self._hashable

    def close(self, filler: bytes = b"") -> bytes:
        """Write ``filler`` (zero-padded hex) into the slot and return the document."""
        if self._hashable is None:
            raise DocumentError("Revision must be pre-closed before it is closed.")
        if self._closed:
            raise DocumentError("Revision is already closed.")
        capacity = self.byte_range.hex_capacity
        hex_digits = filler.hex().encode("ascii")
        if len(hex_digits) > capacity:
            raise SignatureTooLargeError(
                f"Filler ({len(filler)} bytes) exceeds the reserved slot ({capacity // 2} bytes).",
                required=len(hex_digits),
                capacity=capacity,
            )
        start = self.byte_range.hex_start
        self._content = (
            self._content[:start] + hex_digits.ljust(capacity, b"0") + self._content[start + capacity :]
        )
        self._closed = True
        return self._content


class PdfEngine:
    """Read-only view of one content snapshot plus revision writers."""

    def __init__(self, content: bytes, password: str | None = None) -> None:
        if PDF_MAGIC not in content[:_HEADER_SEARCH_LIMIT]:
            raise DocumentError("Input is not a PDF document (missing %PDF- header).")
        self._content = content
        self._password = password
        self._pending: dict[str, ValidationData] = {}
        pikepdf = _require_pikepdf()
        with self._open() as pdf:
            try:
                self._fields = _scan_signature_fields(pdf)
                self._taken_names = _top_level_field_names(pdf) | {f.name for f in self._fields}
                self._level, self._certifying = _read_certification(pdf, self._fields)
            except (TypeError, ValueError, pikepdf.PdfError) as e:
                raise DocumentError(f"Malformed signature structure: {e}") from e
            self._has_dss = "/DSS" in pdf.Root
            self._encrypted = pdf.is_encrypted
        _logger.debug(
            "Opened PDF: %d bytes, %d signature field(s), certification %s",
            len(content),
            len(self._fields),
            self._level.name,
        )

    @classmethod
    def open(cls, data: bytes, password: str | None = None) -> PdfEngine:
        return cls(data, password)

    @property
    def content(self) -> bytes:
        return self._content

    @contextmanager
    def _open(self) -> Iterator[pikepdf.Pdf]:
        pikepdf = _require_pikepdf()
        try:
            pdf = pikepdf.open(io.BytesIO(self._content), password=self._password or "")
        except pikepdf.PasswordError as e:
            raise DocumentError("PDF is encrypted and the password is missing or wrong.") from e
        except pikepdf.PdfError as e:
            raise DocumentError(f"Cannot parse PDF: {e}") from e
        try:
            yield pdf
        finally:
            pdf.close()

    # ── Queries ──────────────────────────────────────────────────────

    def signature_fields(self) -> list[FieldInfo]:
        return list(self._fields)

    def signature_field_names(self) -> list[str]:
        """Names of signature fields holding a signature dictionary, in document order."""
        return [f.name for f in self._fields]

    def _field(self, name: str) -> FieldInfo | None:
        return next((f for f in self._fields if f.name == name), None)

    def field(self, name: str) -> FieldInfo:
        found = self._field(name)
        if found is None:
            raise DocumentError(f"No signature field named {name!r}.")
        return found

    def byte_range(self, name: str) -> ByteRange:
        return self.field(name).byte_range

    def signature_contents(self, name: str) -> bytes:
        return self.field(name).contents

    def signature_metadata(self, name: str) -> SignatureMetadata:
        return self.field(name).metadata

    def certification_level(self) -> CertificationLevel:
        return self._level

    def certifying_field_name(self) -> str | None:
        """Name of the field holding the DocMDP signature, if any."""
        return self._certifying

    def has_dss(self) -> bool:
        return self._has_dss

    def is_encrypted(self) -> bool:
        return self._encrypted

    # ── Signature revisions ──────────────────────────────────────────

    def _check_writable(self) -> None:
        # New strings would have to be encrypted with the document's security handler
        if self._encrypted:
            raise DocumentError("Cannot append a revision to an encrypted PDF; decrypt it first.")

    def _next_field_name(self) -> str:
        n = 1
        while f"{SIGNATURE_FIELD_PREFIX}{n}" in self._taken_names:
            n += 1
        return f"{SIGNATURE_FIELD_PREFIX}{n}"

    def begin_revision(
        self,
        metadata: SignatureMetadata,
        reserved_size: int,
        certification_level: CertificationLevel = CertificationLevel.NOT_CERTIFIED,
    ) -> Revision:
        """Append an invisible signature field with a reserved /Contents slot.

        Args:
            metadata: Signature dictionary entries.
            reserved_size: Bytes reserved for /Contents, markers included.
            certification_level: Non-zero levels make this a certifying
                signature referenced from the catalog's /Perms.
        """
        self._check_writable()
        field_name = self._next_field_name()
        with self._open() as pdf:
            trailer = read_trailer_info(self._content, pdf)
            if len(pdf.pages) == 0:
                raise DocumentError("PDF has no pages.")
            page = pdf.pages[0].obj

            sig_num = trailer.size
            annot_num = sig_num + 1
            annots = serialize_array_items(page.get("/Annots"))
            annots.append(ref(annot_num))

            objects = [
                build_sig_dict(sig_num, metadata, reserved_size, certification_level),
                build_sig_widget(annot_num, sig_num, page.objgen, field_name),
                build_object_override(pdf, page.objgen, ("/Annots",), [f"/Annots [{' '.join(annots)}]"]),
                _catalog_override(
                    pdf,
                    trailer.root,
                    annot_num,
                    sig_num if certification_level else None,
                ),
            ]
            full = assemble_incremental_update(self._content, objects, sig_num + 2, trailer)

        update_start = len(self._content) + (0 if self._content.endswith(b"\n") else 1)
        full, byte_range = patch_byterange(full, update_start, reserved_size)
        _logger.debug(
            "Appended field %s: ByteRange %s, %d bytes reserved",
            field_name,
            byte_range.to_pdf_array(),
            reserved_size,
        )
        return Revision(full, byte_range, field_name)

    # ── Validation revisions ─────────────────────────────────────────

    def attach_validation(
        self,
        name: str,
        ocsps: Iterable[bytes],
        crls: Iterable[bytes],
        certs: Iterable[bytes] = (),
    ) -> bool:
        """Queue validation material for signature ``name``.

        Returns False if the field does not exist or holds no signature.
        """
        found = self._field(name)
        if found is None or not found.contents:
            _logger.debug("Cannot attach validation data to %r", name)
            return False
        self._pending[name] = ValidationData(tuple(ocsps), tuple(crls), tuple(certs))
        return True

    def discard_validation(self) -> None:
        self._pending.clear()

    def merge_revision(self) -> bytes:
        """Append one revision holding every queued validation entry."""
        if not self._pending:
            raise DocumentError("No validation data has been attached.")
        self._check_writable()
        pending = {
            name: (self.signature_contents(name), data) for name, data in self._pending.items()
        }
        with self._open() as pdf:
            trailer = read_trailer_info(self._content, pdf)
            objects, new_size = build_dss_update(pdf, trailer.root, trailer.size, pending)
            content = assemble_incremental_update(self._content, objects, new_size, trailer)
        self._pending.clear()
        _logger.debug("Appended DSS revision for %d signature(s)", len(pending))
        return content


# ── Structure readers ────────────────────────────────────────────────


def _scan_signature_fields(pdf: pikepdf.Pdf) -> list[FieldInfo]:
    acroform = pdf.Root.get("/AcroForm")
    if acroform is None or "/Fields" not in acroform:
        return []
    found: list[FieldInfo] = []
    _collect_fields(acroform["/Fields"], "", None, found, 0)
    return found


def _collect_fields(
    fields: pikepdf.Object,
    prefix: str,
    inherited_ft: pikepdf.Object | None,
    found: list[FieldInfo],
    depth: int,
) -> None:
    pikepdf = _require_pikepdf()
    if depth > _MAX_FIELD_DEPTH:
        raise DocumentError("AcroForm field tree is too deep.")
    for item in fields:
        if not isinstance(item, pikepdf.Dictionary):
            continue
        partial = item.get("/T")
        if partial is None:
            name = prefix
        else:
            name = f"{prefix}.{partial}" if prefix else str(partial)
        field_type = item.get("/FT", inherited_ft)

        kids = item.get("/Kids")
        if kids is not None and any(
            isinstance(kid, pikepdf.Dictionary) and "/T" in kid for kid in kids
        ):
            _collect_fields(kids, name, field_type, found, depth + 1)
            continue

        if field_type is None or str(field_type) != "/Sig":
            continue
        value = item.get("/V")
        if not isinstance(value, pikepdf.Dictionary) or "/ByteRange" not in value:
            continue
        entries = list(value["/ByteRange"])
        if not all(isinstance(v, int) for v in entries):
            raise DocumentError(f"ByteRange of field {name!r} holds non-integer entries.")
        byte_range = ByteRange.from_pdf_array(entries)
        contents = b""
        if "/Contents" in value:
            raw_contents = value["/Contents"]
            if not isinstance(raw_contents, pikepdf.String):
                raise DocumentError(f"/Contents of field {name!r} is not a string.")
            contents = bytes(raw_contents)
        found.append(
            FieldInfo(
                name=name,
                byte_range=byte_range,
                contents=contents,
                sig_objgen=value.objgen if value.is_indirect else None,
                metadata=_read_metadata(value),
            )
        )


def _read_metadata(sig_dict: pikepdf.Dictionary) -> SignatureMetadata:
    def text(key: str) -> str | None:
        return str(sig_dict[key]) if key in sig_dict else None

    raw_date = text("/M")
    return SignatureMetadata(
        reason=text("/Reason"),
        location=text("/Location"),
        contact=text("/ContactInfo"),
        date=parse_pdf_date(raw_date) if raw_date else None,
    )


def _top_level_field_names(pdf: pikepdf.Pdf) -> set[str]:
    pikepdf = _require_pikepdf()
    acroform = pdf.Root.get("/AcroForm")
    if acroform is None or "/Fields" not in acroform:
        return set()
    return {
        str(item["/T"])
        for item in acroform["/Fields"]
        if isinstance(item, pikepdf.Dictionary) and "/T" in item
    }


def _read_certification(
    pdf: pikepdf.Pdf, fields: list[FieldInfo]
) -> tuple[CertificationLevel, str | None]:
    """Read the DocMDP level from Root /Perms /DocMDP -> /Reference /TransformParams /P."""
    pikepdf = _require_pikepdf()
    perms = pdf.Root.get("/Perms")
    docmdp = perms.get("/DocMDP") if isinstance(perms, pikepdf.Dictionary) else None
    if not isinstance(docmdp, pikepdf.Dictionary):
        return CertificationLevel.NOT_CERTIFIED, None

    # /P defaults to 2 when absent
    level = CertificationLevel.CERTIFIED_FORM_FILLING
    for reference in docmdp.get("/Reference", []):
        if not isinstance(reference, pikepdf.Dictionary):
            continue
        if str(reference.get("/TransformMethod", "")) != "/DocMDP":
            continue
        params = reference.get("/TransformParams")
        if isinstance(params, pikepdf.Dictionary) and "/P" in params:
            p = params["/P"]
            if not isinstance(p, int):
                raise DocumentError("DocMDP /P permission is not an integer.")
            # Out-of-range permissions are treated as the most restrictive
            level = (
                CertificationLevel(p) if 1 <= p <= 3 else CertificationLevel.CERTIFIED_NO_CHANGES_ALLOWED
            )
        break

    certifying = None
    if docmdp.is_indirect:
        certifying = next((f.name for f in fields if f.sig_objgen == docmdp.objgen), None)
    return level, certifying


def _catalog_override(
    pdf: pikepdf.Pdf,
    root_objgen: tuple[int, int],
    annot_num: int,
    certifying_sig_num: int | None,
) -> tuple[bytes, int, int]:
    """Rewrite the catalog with the new field appended to /AcroForm /Fields."""
    root = pdf.get_object(root_objgen)
    acroform = root.get("/AcroForm")

    fields = serialize_array_items(acroform.get("/Fields")) if acroform is not None else []
    fields.append(ref(annot_num))
    form = [f"/Fields [{' '.join(fields)}]", f"/SigFlags {_SIG_FLAGS}"]
    if acroform is not None:
        form.extend(
            f"{key} {serialize_pikepdf_obj(acroform[key])}"
            for key in list(acroform.keys())
            if key not in _FORM_KEYS
        )

    skip_keys = ["/AcroForm"]
    new_entries = [f"/AcroForm << {' '.join(form)} >>"]
    if certifying_sig_num is not None:
        perms = root.get("/Perms")
        kept = []
        if perms is not None:
            kept = [
                f"{key} {serialize_pikepdf_obj(perms[key])}"
                for key in list(perms.keys())
                if key != "/DocMDP"
            ]
        kept.append(f"/DocMDP {ref(certifying_sig_num)}")
        skip_keys.append("/Perms")
        new_entries.append(f"/Perms << {' '.join(kept)} >>")
    return build_object_override(pdf, root_objgen, tuple(skip_keys), new_entries)
