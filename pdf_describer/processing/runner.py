from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from pdf_describer.processing.config import DescriberConfig, RunConfig
from pdf_describer.processing.describer import Describer
from pdf_describer.processing.document import PdfDocument
from pdf_describer.processing.errors import PageRangeError
from pdf_describer.processing.models import CombinedResult
from pdf_describer.processing.processor import PageProcessor, Renderer
from pdf_describer.processing.rasterizer import PageRasterizer, RasterConfig
from pdf_describer.processing.store import PageStore
from pdf_describer.processing.types import PageRange, RunReport

logger = logging.getLogger(__name__)

RendererFactory = Callable[[Path, Path], Renderer]


def _default_renderer(pdf_path: Path, images_dir: Path) -> Renderer:
    return PageRasterizer(pdf_path, RasterConfig(output_dir=images_dir))


def resolve_page_range(*, run_cfg: RunConfig, page_count: int, resume_page: int) -> PageRange:
    """Work out the inclusive 1-based range for a run.

    An explicit range is used as given (clamped to the document). Otherwise
    the run continues after the resume point; since ``resume_page`` is the
    last page already done, starting there re-visits it and the skip rule
    passes over it.
    """
    end = page_count if run_cfg.end_page is None else min(page_count, run_cfg.end_page)
    if run_cfg.is_explicit_range:
        start = max(1, run_cfg.start_page)
        explicit = True
    else:
        start = max(resume_page, run_cfg.start_page, 1)
        explicit = False

    if start > end:
        raise PageRangeError(start, end)
    return PageRange(start=start, end=end, explicit=explicit)


class DocumentPipeline:
    def __init__(
        self,
        *,
        describer_cfg: DescriberConfig,
        describer: Describer | None = None,
        renderer_factory: RendererFactory | None = None,
    ) -> None:
        self._describer = describer or Describer(cfg=describer_cfg)
        self._renderer_factory = renderer_factory or _default_renderer

    async def run(self, pdf_path: str | Path, run_cfg: RunConfig) -> RunReport:
        pdf_path = Path(pdf_path)
        logger.info("Starting PDF processing for file: %s", pdf_path)
        logger.info(
            "Configuration: start page=%d, end page=%s",
            run_cfg.start_page,
            "last" if run_cfg.end_page is None else run_cfg.end_page,
        )

        # Init
        store = PageStore.for_document(run_cfg.output_root, pdf_path)
        resume_page = store.resume_page()
        logger.info("Last processed page: %d", resume_page)
        document = PdfDocument.open(pdf_path)
        page_count = document.page_count

        # RangeResolution + Validate: nothing is written before this passes.
        page_range = resolve_page_range(run_cfg=run_cfg, page_count=page_count, resume_page=resume_page)
        if page_range.explicit:
            logger.info("Using explicitly requested page range")
        else:
            logger.info("Continuing from last processed page")
        logger.info("Will process pages from %d to %d", page_range.start, page_range.end)

        store.ensure_layout()
        processor = PageProcessor(
            document=document,
            page_count=page_count,
            store=store,
            renderer=self._renderer_factory(pdf_path, store.images_dir),
            describer=self._describer,
            timeout_s=run_cfg.timeout_s,
        )
        report = RunReport(page_count=page_count, page_range=page_range, combined_path=store.combined_path)

        # ProcessingLoop
        total = len(page_range)
        for done, page_number in enumerate(page_range.pages(), start=1):
            logger.info("-" * 46)
            logger.info(
                "Processing page %d/%d (%d%% complete)...",
                page_number,
                page_count,
                round(done / total * 100),
                extra={"page": page_number},
            )
            if not page_range.explicit and store.has_result(page_number):
                logger.info("Page %d already processed, skipping...", page_number, extra={"page": page_number})
                report.skipped += 1
                continue

            try:
                await processor.process(page_number)
            except Exception as e:
                logger.error("Error processing page %d: %s", page_number, e, extra={"page": page_number})
                store.append_error(page_number, e)
                report.failed += 1
                continue
            report.processed += 1
            logger.info("Completed processing page %d", page_number, extra={"page": page_number})

        # Combine
        report.results = self.combine(store, page_count)
        logger.info(
            "PDF processing completed: processed=%d skipped=%d failed=%d",
            report.processed,
            report.skipped,
            report.failed,
        )
        return report

    @staticmethod
    def combine(store: PageStore, page_count: int) -> CombinedResult:
        logger.info("Combining all page results...")
        results = store.load_all(page_count)
        store.write_combined(results)
        return results


async def process_document(
    path: str | Path,
    *,
    start_page: int | None = None,
    end_page: int | None = None,
    timeout_s: float | None = None,
    output_root: Path | None = None,
    describer_cfg: DescriberConfig | None = None,
) -> CombinedResult:
    """Process ``path`` and return the combined, page-ordered results."""
    base = RunConfig.from_env(start_page=start_page, end_page=end_page)
    run_cfg = RunConfig(
        start_page=base.start_page,
        end_page=base.end_page,
        timeout_s=base.timeout_s if timeout_s is None else timeout_s,
        output_root=base.output_root if output_root is None else output_root,
    )
    run_cfg.validate()
    cfg = describer_cfg or DescriberConfig.from_env()
    cfg.validate()
    report = await DocumentPipeline(describer_cfg=cfg).run(path, run_cfg)
    return report.results
