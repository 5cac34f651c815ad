from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf-describer",
        description="Extract text and vision-model descriptions for each page of a PDF",
    )

    p.add_argument("pdf_path", help="PDF file to process")
    p.add_argument("start_page", nargs="?", type=int, default=None, help="First page to process (default 1)")
    p.add_argument("end_page", nargs="?", type=int, default=None, help="Last page to process (default: last page)")
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request inference timeout in seconds (default from env PDF_DESCRIBER_TIMEOUT_S)",
    )
    p.add_argument(
        "--output-root",
        default=None,
        help="Directory holding per-document results (default from env PDF_DESCRIBER_OUTPUT_ROOT)",
    )
    p.add_argument("--model", default=None, help="Override PDF_DESCRIBER_MODEL")
    p.add_argument("--language", default=None, help="Override PDF_DESCRIBER_TARGET_LANGUAGE")
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    return p
