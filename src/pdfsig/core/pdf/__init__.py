"""PDF document engine: structure queries and incremental revisions."""

from __future__ import annotations

from .dss import ValidationData, vri_key
from .engine import FieldInfo, PdfEngine, Revision
from .objects import pdf_date, pdf_string

__all__ = [
    "FieldInfo",
    "PdfEngine",
    "Revision",
    "ValidationData",
    "pdf_date",
    "pdf_string",
    "vri_key",
]
