"""On-disk result store for one document.

Layout under ``<output_root>/<pdf stem>/``::

    images/page.<n>.png      rendered pages
    json/page_<n>.json       one PageResult per processed page
    combined_results.json    ordered projection of every page file
    manifest.json            processed page numbers (resume index)
    error_log.txt            append-only page failure log

Nothing is created until ``ensure_layout`` is called, so read-only queries on
a fresh document leave the filesystem untouched.
"""

from __future__ import annotations

import json
import logging
import os
import re
import traceback
from pathlib import Path

from pdf_describer.processing.models import CombinedResult, PageResult, dump_combined

logger = logging.getLogger(__name__)

_PAGE_FILE = re.compile(r"^page_(\d+)\.json$")

MANIFEST_VERSION = 1


def _atomic_write(path: Path, data: bytes) -> None:
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(data)
    os.replace(tmp, path)


class PageStore:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.images_dir = base_dir / "images"
        self.json_dir = base_dir / "json"
        self.combined_path = base_dir / "combined_results.json"
        self.manifest_path = base_dir / "manifest.json"
        self.error_log_path = base_dir / "error_log.txt"
        self._pages: set[int] | None = None

    @classmethod
    def for_document(cls, output_root: Path, pdf_path: str | Path) -> PageStore:
        return cls(Path(output_root) / Path(pdf_path).stem)

    def ensure_layout(self) -> None:
        for d in (self.base_dir, self.images_dir, self.json_dir):
            if not d.exists():
                logger.info("Creating directory: %s", d)
                d.mkdir(parents=True, exist_ok=True)

    def result_path(self, page_number: int) -> Path:
        return self.json_dir / f"page_{page_number}.json"

    # -- Resume index ------------------------------------------------------

    def existing_page_numbers(self) -> set[int]:
        if self._pages is None:
            pages = self._read_manifest()
            if pages is not None:
                missing = sorted(n for n in pages if not self.has_result(n))
                if missing:
                    # The page files are authoritative; a stale manifest is rebuilt.
                    logger.warning("Manifest lists pages with no result file: %s", missing)
                    pages = None
            if pages is None:
                pages = self._scan_result_files()
            self._pages = pages
        return set(self._pages)

    def resume_page(self) -> int:
        """Highest page with a stored result, or 0 when nothing is stored."""
        return max(self.existing_page_numbers(), default=0)

    def has_result(self, page_number: int) -> bool:
        return self.result_path(page_number).is_file()

    def _read_manifest(self) -> set[int] | None:
        if not self.manifest_path.is_file():
            return None
        try:
            raw = json.loads(self.manifest_path.read_text(encoding="utf-8"))
            return {int(p) for p in raw["pages"] if int(p) >= 1}
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable manifest %s: %s", self.manifest_path, e)
            return None

    def _scan_result_files(self) -> set[int]:
        if not self.json_dir.is_dir():
            return set()
        pages: set[int] = set()
        for p in self.json_dir.iterdir():
            m = _PAGE_FILE.match(p.name)
            if m and int(m.group(1)) >= 1:
                pages.add(int(m.group(1)))
        if pages:
            logger.info("Rebuilt resume index from %d existing page files", len(pages))
        return pages

    def _write_manifest(self, pages: set[int]) -> None:
        body = {"version": MANIFEST_VERSION, "pages": sorted(pages)}
        _atomic_write(self.manifest_path, json.dumps(body, indent=2).encode("utf-8"))

    # -- Page records ------------------------------------------------------

    def write_result(self, result: PageResult) -> Path:
        """Persist one page (overwriting any previous record) and index it."""
        path = self.result_path(result.page_number)
        previous = path.read_bytes() if path.is_file() else None
        _atomic_write(path, result.to_json().encode("utf-8"))
        pages = self.existing_page_numbers()
        pages.add(result.page_number)
        try:
            self._write_manifest(pages)
        except Exception:
            # Leave the page as it was before this write.
            if previous is None:
                path.unlink(missing_ok=True)
            else:
                _atomic_write(path, previous)
            raise
        self._pages = pages
        logger.info("Saved page %d result to %s", result.page_number, path)
        return path

    def read_result(self, page_number: int) -> PageResult:
        return PageResult.model_validate_json(self.result_path(page_number).read_bytes())

    def load_all(self, page_count: int) -> CombinedResult:
        return [self.read_result(i) for i in range(1, page_count + 1) if self.has_result(i)]

    def write_combined(self, results: CombinedResult) -> Path:
        _atomic_write(self.combined_path, dump_combined(results))
        logger.info("Saved combined results to %s", self.combined_path)
        return self.combined_path

    # -- Error log ---------------------------------------------------------

    def append_error(self, page_number: int, exc: BaseException) -> None:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.base_dir.mkdir(parents=True, exist_ok=True)
        with self.error_log_path.open("a", encoding="utf-8") as f:
            f.write(f"Error on page {page_number}: {exc}\n{tb}\n\n")
        logger.info("Error details written to %s", self.error_log_path)
