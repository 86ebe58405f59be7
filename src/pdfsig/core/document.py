"""In-memory document handle shared by every pipeline stage."""

from __future__ import annotations

__all__ = ["Document"]

import logging
from pathlib import Path

from ..errors import DocumentError
from .byterange import hashable_bytes
from .pdf import PdfEngine
from .types import SignatureField

_logger = logging.getLogger(__name__)


class Document:
    """One PDF held in memory.

    ``content`` is the full document.  ``hashable`` is a separately owned
    snapshot of the bytes a signature covers; it is stale after any change
    to ``content`` until the stage that made the change recomputes it.

    The engine is bound to the current ``content`` and rebuilt whenever
    the content is replaced.
    """

    def __init__(self, content: bytes, password: str | None = None) -> None:
        self._password = password
        self._engine = PdfEngine.open(content, password)
        self.content = content
        self.hashable = self.recompute_hashable()

    @classmethod
    def from_bytes(cls, data: bytes, password: str | None = None) -> Document:
        return cls(bytes(data), password)

    @classmethod
    def load(cls, path: str | Path, password: str | None = None) -> Document:
        """Read a document from disk."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise DocumentError(f"Cannot read PDF {path}: {e}") from e
        _logger.debug("Loaded %s (%d bytes)", path, len(data))
        return cls(data, password)

    @property
    def engine(self) -> PdfEngine:
        return self._engine

    @property
    def password(self) -> str | None:
        return self._password

    def replace_content(self, content: bytes) -> None:
        """Swap in new content and rebind the engine.

        ``hashable`` is left untouched; the caller owns its recomputation.
        """
        self._engine = PdfEngine.open(content, self._password)
        self.content = content

    def signature_fields(self) -> list[SignatureField]:
        engine = self._engine
        return [SignatureField(name, engine.byte_range(name)) for name in engine.signature_field_names()]

    def recompute_hashable(self) -> bytes:
        """Derive hashable bytes from every signature field, in engine order.

        The result is stored on the document and returned.  A document
        without signature fields has no hashable bytes.
        """
        ranges = [field.byte_range for field in self.signature_fields()]
        self.hashable = hashable_bytes(self.content, ranges)
        return self.hashable
