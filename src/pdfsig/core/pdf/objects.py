"""Low-level PDF object construction.

Serialization helpers and builders for the raw objects appended by an
incremental revision: signature dictionaries, signature widgets,
embedded DER streams, and overrides of existing objects.

PDF structure analysis and incremental update assembly is in incremental.py.
The engine facade used by the core is in engine.py.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from ...constants import SIGNATURE_FILTER, SIGNATURE_SUBFILTER
from .. import require_pikepdf as _require_pikepdf

if TYPE_CHECKING:
    import pikepdf

    from ..types import CertificationLevel, SignatureMetadata

# ── Constants ────────────────────────────────────────────────────────

# Fixed-width placeholder, patched in place once offsets are known
BYTERANGE_PLACEHOLDER = b"/ByteRange [         0          0          0          0]"
BYTERANGE_PLACEHOLDER_STR = BYTERANGE_PLACEHOLDER.decode("ascii")

CONTENTS_KEY = b"/Contents "

# Byte used to reserve the signature slot before the filler is written
RESERVED_FILL = " "

# PDF annotation flags for signature widget (/F entry).
# Print flag is 4, Locked flag is 128; combined value is 132.
# See PDF Reference 1.7, Table 165 -- Annotation flags.
_ANNOT_FLAG_PRINT = 4
_ANNOT_FLAG_LOCKED = 128
ANNOT_FLAGS_SIG_WIDGET = _ANNOT_FLAG_PRINT | _ANNOT_FLAG_LOCKED  # 132

# Raw object: (bytes, object number, generation)
RawObject = tuple[bytes, int, int]


# ── PDF string/object helpers ────────────────────────────────────────


def pdf_string(text: str) -> str:
    """Encode text as a PDF text string token.

    Latin-1 text becomes an escaped literal string ``(...)``.  Anything
    else is written as a UTF-16BE hex string with a byte order mark,
    which every conforming reader accepts for text strings.
    """
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return "<FEFF" + text.encode("utf-16-be").hex().upper() + ">"

    result: list[str] = []
    for char in text:
        code = ord(char)
        if char in "\\()":
            result.append("\\" + char)
        elif char == "\n":
            result.append("\\n")
        elif char == "\r":
            result.append("\\r")
        elif char == "\t":
            result.append("\\t")
        elif code < 0x20 or code == 0x7F:
            result.append(f"\\{code:03o}")
        else:
            result.append(char)
    return "(" + "".join(result) + ")"


def pdf_date(value: datetime) -> str:
    """Format a datetime as a PDF date string ``D:YYYYMMDDHHmmSS+HH'mm'``.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset is not None else 0
    if minutes == 0:
        tz_part = "Z"
    else:
        sign = "+" if minutes > 0 else "-"
        hours, mins = divmod(abs(minutes), 60)
        tz_part = f"{sign}{hours:02d}'{mins:02d}'"
    return "D:" + value.strftime("%Y%m%d%H%M%S") + tz_part


_PDF_DATE_RE = re.compile(
    r"^D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:([Zz+\-])(?:(\d{2})'?(?:(\d{2})'?)?)?)?$"
)


def parse_pdf_date(text: str) -> datetime | None:
    """Parse a PDF date string; returns None if it is malformed.

    Missing components default to the start of the period; a missing
    time zone is taken as UTC.
    """
    m = _PDF_DATE_RE.match(text.strip())
    if m is None:
        return None
    year, month, day, hour, minute, second, tz_sign, tz_h, tz_m = m.groups()
    tz = timezone.utc
    if tz_sign in ("+", "-"):
        delta = timedelta(hours=int(tz_h or 0), minutes=int(tz_m or 0))
        tz = timezone(delta if tz_sign == "+" else -delta)
    try:
        return datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tz,
        )
    except ValueError:
        return None


def serialize_pikepdf_obj(obj: None | bool | int | float | pikepdf.Object) -> str:
    """Serialize a pikepdf object to a raw PDF string for embedding.

    Uses pikepdf's built-in unparse() for correct PDF syntax, with
    special handling for indirect references (emitted as "N G R")
    and plain Python types that pikepdf may return.
    """
    # Plain Python types (pikepdf sometimes returns these directly)
    if obj is None:
        return "null"
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, float):
        return str(int(obj)) if obj % 1 == 0.0 else f"{obj:.6f}"
    pikepdf = _require_pikepdf()
    if isinstance(obj, pikepdf.Object) and obj.is_indirect:
        return f"{obj.objgen[0]} {obj.objgen[1]} R"
    return obj.unparse(resolved=True).decode("latin-1")


def serialize_array_items(array: pikepdf.Object | None) -> list[str]:
    """Serialize each element of a pikepdf array (empty list for None)."""
    if array is None:
        return []
    return [serialize_pikepdf_obj(array[i]) for i in range(len(array))]


def ref(obj_num: int, gen: int = 0) -> str:
    return f"{obj_num} {gen} R"


# ── Object builders ──────────────────────────────────────────────────


def build_object_override(
    pdf: pikepdf.Pdf,
    objgen: tuple[int, int],
    skip_keys: tuple[str, ...],
    new_entries: list[str],
) -> RawObject:
    """Build a raw override of a dictionary object with new/replaced entries.

    Copies all entries of the target object except ``skip_keys``, then
    appends ``new_entries``.

    Args:
        pdf: Open document holding the object.
        objgen: (object number, generation) of the target.
        skip_keys: Keys to omit from the original (e.g. "/Annots").
        new_entries: Raw entries to append (e.g. "/Annots [5 0 R]").

    Returns:
        (raw bytes, object number, generation).
    """
    obj_num, gen = objgen
    obj = pdf.get_object(objgen)
    entries: list[str] = []
    # pikepdf dict requires .keys() -- __iter__ yields values, not keys
    for key in list(obj.keys()):
        if key in skip_keys:
            continue
        entries.append(f"  {key} {serialize_pikepdf_obj(obj[key])}")
    entries.extend(f"  {entry}" for entry in new_entries)
    body = "\n".join(entries)
    raw = f"{obj_num} {gen} obj\n<<\n{body}\n>>\nendobj\n"
    return raw.encode("latin-1"), obj_num, gen


def build_dict_object(obj_num: int, entries: list[str], gen: int = 0) -> RawObject:
    """Build a dictionary object from raw entries."""
    body = "\n".join(f"  {entry}" for entry in entries)
    raw = f"{obj_num} {gen} obj\n<<\n{body}\n>>\nendobj\n"
    return raw.encode("latin-1"), obj_num, gen


def build_stream_object(obj_num: int, data: bytes) -> RawObject:
    """Build an uncompressed stream object embedding ``data`` verbatim."""
    header = f"{obj_num} 0 obj\n<< /Length {len(data)} >>\nstream\n".encode("latin-1")
    return header + data + b"\nendstream\nendobj\n", obj_num, 0


def build_sig_dict(
    obj_num: int,
    metadata: SignatureMetadata,
    reserved_size: int,
    certification_level: CertificationLevel,
) -> RawObject:
    """Build the /Type /Sig dictionary with a reserved /Contents slot.

    Args:
        obj_num: Object number of the signature dictionary.
        metadata: Reason, location, contact and date entries.
        reserved_size: Bytes reserved for /Contents, markers included.
        certification_level: Non-zero levels add a DocMDP reference.
    """
    entries = [
        "/Type /Sig",
        f"/Filter {SIGNATURE_FILTER}",
        f"/SubFilter {SIGNATURE_SUBFILTER}",
        BYTERANGE_PLACEHOLDER_STR,
        "/Contents <" + RESERVED_FILL * (reserved_size - 2) + ">",
    ]
    if metadata.date is not None:
        entries.append(f"/M {pdf_string(pdf_date(metadata.date))}")
    if metadata.reason is not None:
        entries.append(f"/Reason {pdf_string(metadata.reason)}")
    if metadata.location is not None:
        entries.append(f"/Location {pdf_string(metadata.location)}")
    if metadata.contact is not None:
        entries.append(f"/ContactInfo {pdf_string(metadata.contact)}")
    if certification_level:
        entries.append(
            "/Reference [<< /Type /SigRef /TransformMethod /DocMDP "
            f"/TransformParams << /Type /TransformParams /P {int(certification_level)} "
            "/V /1.2 >> >>]"
        )
    return build_dict_object(obj_num, entries)


def build_sig_widget(
    obj_num: int,
    sig_obj_num: int,
    page_objgen: tuple[int, int],
    field_name: str,
) -> RawObject:
    """Build an invisible signature field merged with its widget annotation."""
    entries = [
        "/Type /Annot",
        "/Subtype /Widget",
        "/FT /Sig",
        f"/T {pdf_string(field_name)}",
        f"/V {ref(sig_obj_num)}",
        "/Rect [0 0 0 0]",
        f"/F {ANNOT_FLAGS_SIG_WIDGET}",
        f"/P {ref(*page_objgen)}",
    ]
    return build_dict_object(obj_num, entries)
