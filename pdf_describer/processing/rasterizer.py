from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pdf2image import convert_from_path
from PIL import ImageOps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterConfig:
    density: int = 150
    output_dir: Path = Path(".")
    save_filename: str = "page"
    format: str = "png"
    width: int = 1600
    height: int = 1600


class PageRasterizer:
    """Renders one PDF page at a time to ``<output_dir>/<save_filename>.<n>.<format>``."""

    def __init__(self, pdf_path: str | Path, cfg: RasterConfig) -> None:
        self._pdf_path = str(pdf_path)
        self._cfg = cfg

    def path_for(self, page_number: int) -> Path:
        return self._cfg.output_dir / f"{self._cfg.save_filename}.{page_number}.{self._cfg.format}"

    def render(self, page_number: int) -> Path:
        images = convert_from_path(
            self._pdf_path,
            dpi=self._cfg.density,
            first_page=page_number,
            last_page=page_number,
            fmt=self._cfg.format,
        )
        if not images:
            raise RuntimeError(f"Rasterizer produced no image for page {page_number}")

        # Fit inside the configured box, keeping the aspect ratio.
        image = ImageOps.contain(images[0], (self._cfg.width, self._cfg.height))
        target = self.path_for(page_number)
        target.parent.mkdir(parents=True, exist_ok=True)
        image.save(target, format=self._cfg.format.upper())
        logger.debug("Rendered page %d to %s (%dx%d)", page_number, target, image.width, image.height)
        return target
