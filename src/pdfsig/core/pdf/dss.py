"""Document Security Store (/DSS) revisions.

Validation material is embedded as one uncompressed stream per blob.
Every blob is listed in the global /OCSPs, /CRLs and /Certs arrays and in
a per-signature /VRI dictionary keyed by the upper-case hex SHA-1 of the
signature's /Contents bytes.  Entries of an existing store are carried
forward, and a signature that already has a /VRI entry keeps the
material listed there.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .. import require_pikepdf as _require_pikepdf
from .objects import (
    RawObject,
    build_dict_object,
    build_object_override,
    build_stream_object,
    ref,
    serialize_array_items,
    serialize_pikepdf_obj,
)

if TYPE_CHECKING:
    import pikepdf

# Per-signature arrays merged when a /VRI entry is extended
_VRI_ARRAYS = ("/OCSP", "/CRL", "/Cert")

# ESIC developer extension announced by documents carrying a DSS
_ESIC_EXTENSION = "/Extensions << /ESIC << /BaseVersion /1.7 /ExtensionLevel 5 >> >>"


@dataclass(frozen=True)
class ValidationData:
    """DER-encoded validation material for one signature."""

    ocsps: tuple[bytes, ...] = ()
    crls: tuple[bytes, ...] = ()
    certs: tuple[bytes, ...] = ()


def vri_key(signature_contents: bytes) -> str:
    """Return the /VRI key for a signature: upper-case hex SHA-1 of /Contents."""
    return hashlib.sha1(signature_contents).hexdigest().upper()


@dataclass
class _Allocator:
    next_num: int
    objects: list[RawObject] = field(default_factory=list)

    def take(self) -> int:
        num = self.next_num
        self.next_num += 1
        return num

    def embed(self, data: bytes) -> str:
        num = self.take()
        self.objects.append(build_stream_object(num, data))
        return ref(num)


def build_dss_update(
    pdf: pikepdf.Pdf,
    root_objgen: tuple[int, int],
    first_obj_num: int,
    pending: Mapping[str, tuple[bytes, ValidationData]],
) -> tuple[list[RawObject], int]:
    """Build the objects of a DSS revision.

    Args:
        pdf: Open document the revision is appended to.
        root_objgen: Catalog reference.
        first_obj_num: First free object number (the current /Size).
        pending: Field name -> (signature /Contents bytes, validation data).

    Returns:
        (raw objects including the catalog override, new /Size).
    """
    alloc = _Allocator(first_obj_num)
    root = pdf.get_object(root_objgen)
    existing = root.get("/DSS")

    ocsp_refs: list[str] = []
    crl_refs: list[str] = []
    cert_refs: list[str] = []
    vri_entries: dict[str, str] = {}
    old_vri: pikepdf.Object | None = None
    if existing is not None:
        ocsp_refs = serialize_array_items(existing.get("/OCSPs"))
        crl_refs = serialize_array_items(existing.get("/CRLs"))
        cert_refs = serialize_array_items(existing.get("/Certs"))
        old_vri = existing.get("/VRI")
        if old_vri is not None:
            for key in list(old_vri.keys()):
                vri_entries[str(key)] = serialize_pikepdf_obj(old_vri[key])

    for contents, data in pending.values():
        sig_ocsps = [alloc.embed(blob) for blob in data.ocsps]
        sig_crls = [alloc.embed(blob) for blob in data.crls]
        sig_certs = [alloc.embed(blob) for blob in data.certs]
        ocsp_refs.extend(sig_ocsps)
        crl_refs.extend(sig_crls)
        cert_refs.extend(sig_certs)

        key = "/" + vri_key(contents)
        previous = old_vri.get(key) if old_vri is not None else None
        vri = _merged_vri(previous, dict(zip(_VRI_ARRAYS, (sig_ocsps, sig_crls, sig_certs))))
        vri_num = alloc.take()
        alloc.objects.append(build_dict_object(vri_num, vri))
        vri_entries[key] = ref(vri_num)

    dss = ["/Type /DSS"]
    vri_body = " ".join(f"{key} {value}" for key, value in vri_entries.items())
    dss.append(f"/VRI << {vri_body} >>")
    for key, refs in (("/OCSPs", ocsp_refs), ("/CRLs", crl_refs), ("/Certs", cert_refs)):
        if refs:
            dss.append(f"{key} [{' '.join(refs)}]")

    # An indirect store is rewritten in place; a direct one moves out of the catalog
    if existing is not None and existing.is_indirect:
        dss_num, dss_gen = existing.objgen
    else:
        dss_num, dss_gen = alloc.take(), 0
    alloc.objects.append(build_dict_object(dss_num, dss, gen=dss_gen))

    catalog_entries = [f"/DSS {ref(dss_num, dss_gen)}"]
    if "/Extensions" not in root:
        catalog_entries.append(_ESIC_EXTENSION)
    alloc.objects.append(build_object_override(pdf, root_objgen, ("/DSS",), catalog_entries))
    return alloc.objects, alloc.next_num


def _merged_vri(previous: pikepdf.Object | None, added: Mapping[str, list[str]]) -> list[str]:
    """Entries of a /VRI dictionary: earlier references first, then ``added``."""
    pikepdf = _require_pikepdf()
    if not isinstance(previous, pikepdf.Dictionary):
        previous = None

    entries = ["/Type /VRI"]
    for key in _VRI_ARRAYS:
        refs = serialize_array_items(previous.get(key)) if previous is not None else []
        refs.extend(added.get(key, ()))
        if refs:
            entries.append(f"{key} [{' '.join(refs)}]")
    # /TU, /TS and other keys of the earlier entry survive unchanged
    if previous is not None:
        entries.extend(
            f"{key} {serialize_pikepdf_obj(previous[key])}"
            for key in list(previous.keys())
            if key not in _VRI_ARRAYS and key != "/Type"
        )
    return entries
