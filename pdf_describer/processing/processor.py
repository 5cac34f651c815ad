from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from pdf_describer.processing.describer import Describer
from pdf_describer.processing.document import PdfDocument
from pdf_describer.processing.extraction import PageTextExtractor
from pdf_describer.processing.models import PageResult
from pdf_describer.processing.store import PageStore
from pdf_describer.processing.types import Degraded, Ok

logger = logging.getLogger(__name__)

LOW_TEXT_CHARS = 10


class Renderer(Protocol):
    def render(self, page_number: int) -> Path: ...


class PageProcessor:
    """Extract, render, describe and persist a single page.

    Extraction and description degrade into sentinel values; rendering and
    persistence errors propagate so the caller can log the page as failed.
    """

    def __init__(
        self,
        *,
        document: PdfDocument,
        page_count: int,
        store: PageStore,
        renderer: Renderer,
        describer: Describer,
        timeout_s: float,
    ) -> None:
        self._store = store
        self._renderer = renderer
        self._describer = describer
        self._timeout_s = timeout_s
        self._extractor = PageTextExtractor(document=document, page_count=page_count, work_dir=store.base_dir)

    async def process(self, page_number: int) -> PageResult:
        logger.info("Extracting text...")
        text = self._extractor.extract(page_number)
        if isinstance(text, Ok):
            logger.info("Extracted %d characters of text", len(text.text))
            if len(text.text) < LOW_TEXT_CHARS:
                logger.warning(
                    "Very little text extracted from page %d. The page may be an image, "
                    "contain non-text elements, or have extraction issues.",
                    page_number,
                )
        else:
            logger.warning("Text for page %d degraded: %s", page_number, text.sentinel())

        logger.info("Converting page %d to PNG...", page_number)
        loop = asyncio.get_running_loop()
        image_path = await loop.run_in_executor(None, self._renderer.render, page_number)
        logger.info("Saved image to: %s", image_path)
        image_bytes = await loop.run_in_executor(None, _read_bytes, image_path)

        logger.info("Getting image description...")
        description = await self._describer.describe(image_bytes, self._timeout_s, page_number=page_number)
        if isinstance(description, Degraded):
            logger.warning("Description for page %d degraded: %s", page_number, description.sentinel())

        result = PageResult.from_fields(page_number=page_number, text=text, description=description)
        self._store.write_result(result)
        return result


def _read_bytes(path: Path) -> bytes:
    return Path(path).read_bytes()
