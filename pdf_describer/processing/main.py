from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

from pdf_describer.logging_config import setup_logging
from pdf_describer.processing.cli import build_parser
from pdf_describer.processing.config import DescriberConfig, RunConfig
from pdf_describer.processing.errors import PdfDescriberError
from pdf_describer.processing.runner import DocumentPipeline


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("pdf_describer.processing")

    try:
        describer_cfg = DescriberConfig.from_env().with_overrides(model=args.model, target_language=args.language)
        describer_cfg.validate()

        run_cfg = RunConfig.from_env(start_page=args.start_page, end_page=args.end_page)
        # CLI overrides
        if args.timeout is not None:
            run_cfg = replace(run_cfg, timeout_s=args.timeout)
        if args.output_root is not None:
            run_cfg = replace(run_cfg, output_root=Path(args.output_root))
        run_cfg.validate()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logger.info("Starting application with PDF: %s", args.pdf_path)
    pipeline = DocumentPipeline(describer_cfg=describer_cfg)
    try:
        report = await pipeline.run(args.pdf_path, run_cfg)
    except (PdfDescriberError, OSError, ValueError) as e:
        # ValueError covers corrupt page records (pydantic and json errors).
        logger.error("Fatal error: %s", e, exc_info=True)
        return 1

    logger.info("Processed %d pages successfully", len(report.results))
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
