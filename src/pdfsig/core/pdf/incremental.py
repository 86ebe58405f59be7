"""PDF trailer analysis and incremental update assembly.

Reads what an appended revision must chain to (the previous xref offset,
/Size and trailer entries) and writes new revisions: object bodies,
a traditional xref section, and a trailer with /Prev.

Object-level construction is in objects.py.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...errors import DocumentError
from ..byterange import ByteRange
from .objects import BYTERANGE_PLACEHOLDER, CONTENTS_KEY, RawObject, serialize_pikepdf_obj

if TYPE_CHECKING:
    import pikepdf

# Trailer entries that must be repeated in every appended trailer
_CARRIED_TRAILER_KEYS = ("/Info", "/ID", "/Encrypt")


@dataclass(frozen=True)
class TrailerInfo:
    """What an appended revision needs to know about the previous one."""

    prev_xref: int
    size: int
    root: tuple[int, int]
    extra: tuple[str, ...]


def read_trailer_info(pdf_bytes: bytes, pdf: pikepdf.Pdf) -> TrailerInfo:
    """Collect the previous xref offset, /Size, /Root and carried entries.

    The startxref offset comes from the raw bytes; the trailer itself is
    read through pikepdf, which resolves cross-reference streams and
    hybrid files correctly.
    """
    # The LAST startxref is authoritative; some files have junk after %%EOF
    matches = list(re.finditer(rb"startxref\s+(\d+)\s+%%EOF", pdf_bytes))
    if not matches:
        raise DocumentError("Cannot find startxref in PDF.")
    prev_xref = int(matches[-1].group(1))

    trailer = pdf.trailer
    try:
        size = int(trailer["/Size"])
        root = trailer["/Root"]
    except KeyError as e:
        raise DocumentError(f"PDF trailer is missing a required entry: {e}") from e
    if not root.is_indirect:
        raise DocumentError("PDF trailer /Root is not an indirect reference.")

    extra = tuple(
        f"{key} {serialize_pikepdf_obj(trailer[key])}"
        for key in _CARRIED_TRAILER_KEYS
        if key in trailer
    )
    return TrailerInfo(prev_xref=prev_xref, size=size, root=root.objgen, extra=extra)


# ── Incremental update assembly ─────────────────────────────────────


def assemble_incremental_update(
    pdf_bytes: bytes,
    raw_objects: list[RawObject],
    new_size: int,
    trailer: TrailerInfo,
) -> bytes:
    """Append ``raw_objects`` as a new revision and return the full document."""
    base = pdf_bytes
    if not base.endswith(b"\n"):
        base = base + b"\n"

    xref_entries: dict[int, tuple[int, int]] = {}
    running_offset = len(base)
    for raw_bytes, obj_num, gen in raw_objects:
        xref_entries[obj_num] = (running_offset, gen)
        running_offset += len(raw_bytes)

    all_objects = b"".join(raw for raw, _, _ in raw_objects)
    xref_data = build_xref_and_trailer(
        xref_entries=xref_entries,
        new_size=new_size,
        trailer=trailer,
        xref_offset=len(base) + len(all_objects),
    )
    return base + all_objects + xref_data


def build_xref_and_trailer(
    xref_entries: dict[int, tuple[int, int]],
    new_size: int,
    trailer: TrailerInfo,
    xref_offset: int,
) -> bytes:
    """Build an xref section and trailer for an incremental update.

    Args:
        xref_entries: Object number -> (byte offset, generation).
        new_size: /Size of the updated document.
        trailer: Previous revision's trailer information.
        xref_offset: Byte offset where this xref section starts.

    Returns:
        Raw bytes of the xref section, trailer, and %%EOF.
    """
    if not xref_entries:
        raise DocumentError("Cannot build xref table: no objects to reference.")

    # Consecutive object numbers share one subsection
    sorted_nums = sorted(xref_entries)
    groups: list[list[int]] = [[sorted_nums[0]]]
    for n in sorted_nums[1:]:
        if n == groups[-1][-1] + 1:
            groups[-1].append(n)
        else:
            groups.append([n])

    lines = ["xref"]
    for group in groups:
        lines.append(f"{group[0]} {len(group)}")
        # Each entry is exactly 20 bytes: 18 chars + "\r" here + "\n" from join
        for obj_num in group:
            offset, gen = xref_entries[obj_num]
            lines.append(f"{offset:010d} {gen:05d} n\r")

    root_num, root_gen = trailer.root
    lines.append("trailer")
    lines.append("<<")
    lines.append(f"  /Size {new_size}")
    lines.append(f"  /Prev {trailer.prev_xref}")
    lines.append(f"  /Root {root_num} {root_gen} R")
    lines.extend(f"  {entry}" for entry in trailer.extra)
    lines.append(">>")
    lines.append("startxref")
    lines.append(str(xref_offset))
    lines.append("%%EOF")
    lines.append("")

    return "\n".join(lines).encode("latin-1")


def patch_byterange(full_pdf: bytes, update_start: int, reserved_size: int) -> tuple[bytes, ByteRange]:
    """Fill in the ByteRange placeholder of a freshly appended signature.

    Args:
        full_pdf: Document including the new revision.
        update_start: Offset where the new revision starts.
        reserved_size: Size of the /Contents slot, markers included.

    Returns:
        (patched document, ByteRange of the new signature).
    """
    contents_pos = full_pdf.find(CONTENTS_KEY + b"<", update_start)
    if contents_pos == -1:
        raise DocumentError("Cannot find Contents placeholder in new revision.")
    blob_start = contents_pos + len(CONTENTS_KEY)
    blob_end = blob_start + reserved_size
    if full_pdf[blob_end - 1 : blob_end] != b">":
        raise DocumentError("Contents placeholder does not match the reserved size.")

    byte_range = ByteRange(0, blob_start, blob_end, len(full_pdf))
    off1, len1, off2, len2 = byte_range.to_pdf_array()
    value = f"/ByteRange [{off1:>10d} {len1:>10d} {off2:>10d} {len2:>10d}]".encode("latin-1")
    if len(value) != len(BYTERANGE_PLACEHOLDER):
        raise DocumentError("Document too large for the ByteRange placeholder.")

    # Only search the new revision; earlier signatures carry their own ranges
    br_pos = full_pdf.find(BYTERANGE_PLACEHOLDER, update_start)
    if br_pos == -1:
        raise DocumentError("Cannot find ByteRange placeholder in new revision.")
    patched = full_pdf[:br_pos] + value + full_pdf[br_pos + len(BYTERANGE_PLACEHOLDER) :]
    return patched, byte_range
