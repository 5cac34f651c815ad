"""Thin pypdf adapter: page count, single-page copies and text parsing."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader, PdfWriter

from pdf_describer.processing.errors import DocumentLoadError

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


@dataclass(frozen=True)
class ParsedText:
    text: str
    pages: int


class PdfDocument:
    def __init__(self, *, data: bytes, reader: PdfReader) -> None:
        self.data = data
        self._reader = reader

    @classmethod
    def load(cls, data: bytes) -> PdfDocument:
        return cls(data=data, reader=PdfReader(io.BytesIO(data)))

    @classmethod
    def open(cls, path: str | Path) -> PdfDocument:
        try:
            data = Path(path).read_bytes()
            doc = cls.load(data)
            count = doc.page_count
        except Exception as e:
            raise DocumentLoadError(str(path), f"{type(e).__name__}: {e}") from e
        logger.info("Loaded %s (%d pages)", path, count)
        return doc

    @property
    def page_count(self) -> int:
        return len(self._reader.pages)

    def extract_page(self, index: int) -> bytes:
        """Return a standalone single-page PDF holding the page at zero-based ``index``."""
        writer = PdfWriter()
        writer.add_page(self._reader.pages[index])
        buf = io.BytesIO()
        writer.write(buf)
        return buf.getvalue()


def parse_text(data: bytes, *, max_pages: int | None = None) -> ParsedText:
    r = PdfReader(io.BytesIO(data))
    count = len(r.pages) if max_pages is None else min(len(r.pages), max_pages)
    pages = [r.pages[i] for i in range(count)]
    parts = [p.extract_text() or "" for p in pages]
    return ParsedText(text=PAGE_BREAK.join(parts), pages=len(parts))
