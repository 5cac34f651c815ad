"""Per-page text extraction with a whole-document fallback.

The primary tier copies the target page into its own single-page PDF and
parses only that, so text from neighbouring pages cannot bleed in. When that
fails the whole document is parsed once and split on page-break heuristics.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from pdf_describer.processing.document import PdfDocument, parse_text
from pdf_describer.processing.types import Degraded, DegradedKind, FieldResult, Ok

logger = logging.getLogger(__name__)

_PAGE_SPLIT = re.compile(r"\f|\n{3,}")

# Single-page artifacts are parsed with a small page cap.
_SINGLE_PAGE_MAX = 10


def coerce_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    inner = getattr(value, "text", None)
    if inner is None and isinstance(value, dict):
        inner = value.get("text")
    if isinstance(inner, str) and inner:
        return inner
    if value is None:
        return ""
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def normalize_field(value: Any, *, page_number: int) -> FieldResult:
    if isinstance(value, (Ok, Degraded)):
        return value
    if not isinstance(value, str):
        logger.warning("Extracted text for page %d is %s, converting to string", page_number, type(value).__name__)
    try:
        return Ok(coerce_text(value))
    except Exception as e:
        return Degraded(DegradedKind.CONVERSION_FAILED, page_number, detail=str(e))


class PageTextExtractor:
    def __init__(self, *, document: PdfDocument, page_count: int, work_dir: Path) -> None:
        self._doc = document
        self._page_count = page_count
        self._work_dir = work_dir

    def extract(self, page_number: int) -> FieldResult:
        try:
            raw: Any = self._extract_single_page(page_number)
        except Exception as e:
            logger.warning("First text extraction method failed for page %d: %s", page_number, e)
            logger.info("Attempting fallback text extraction for page %d", page_number)
            try:
                raw = self._extract_from_whole_document(page_number)
            except Exception as fallback_err:
                logger.warning("Fallback text extraction failed for page %d: %s", page_number, fallback_err)
                return Degraded(DegradedKind.EXTRACTION_FAILED, page_number, detail=str(fallback_err))
        return normalize_field(raw, page_number=page_number)

    def temp_path(self, page_number: int) -> Path:
        return self._work_dir / f"temp_page_{page_number}.pdf"

    def _extract_single_page(self, page_number: int) -> Any:
        tmp = self.temp_path(page_number)
        try:
            tmp.write_bytes(self._doc.extract_page(page_number - 1))
            parsed = parse_text(tmp.read_bytes(), max_pages=_SINGLE_PAGE_MAX)
        finally:
            tmp.unlink(missing_ok=True)
        return parsed.text or ""

    def _extract_from_whole_document(self, page_number: int) -> Any:
        parsed = parse_text(self._doc.data, max_pages=self._page_count)
        blocks = _PAGE_SPLIT.split(parsed.text or "")
        if len(blocks) < page_number:
            return Degraded(DegradedKind.EXTRACTION_UNRELIABLE, page_number)
        return blocks[page_number - 1] or ""
