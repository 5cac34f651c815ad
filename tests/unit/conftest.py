"""Unit test conftest: in-memory PDFs, fake rasterizer, mock inference transport."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def build_pdf_bytes(pages: int) -> bytes:
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.set_font("Helvetica", size=12)
    for i in range(1, pages + 1):
        pdf.add_page()
        pdf.cell(text=f"Content on page {i}.")
    return bytes(pdf.output())


@pytest.fixture
def make_pdf(tmp_path: Path) -> Callable[..., Path]:
    """Write an N-page PDF to ``tmp_path`` and return its path."""

    def _make(pages: int, name: str = "sample.pdf") -> Path:
        path = tmp_path / name
        path.write_bytes(build_pdf_bytes(pages))
        return path

    return _make


@pytest.fixture
def multi_page_pdf_bytes() -> bytes:
    return build_pdf_bytes(3)


class FakeRenderer:
    """Stands in for the poppler-backed rasterizer; records rendered pages."""

    def __init__(self, images_dir: Path, *, fail_pages: set[int] | None = None) -> None:
        self.images_dir = images_dir
        self.fail_pages = fail_pages or set()
        self.rendered: list[int] = []

    def render(self, page_number: int) -> Path:
        if page_number in self.fail_pages:
            raise RuntimeError(f"rasterizer crashed on page {page_number}")
        self.rendered.append(page_number)
        target = self.images_dir / f"page.{page_number}.png"
        target.write_bytes(FAKE_PNG)
        return target


class RendererFactory:
    def __init__(self, *, fail_pages: set[int] | None = None) -> None:
        self.fail_pages = fail_pages
        self.instances: list[FakeRenderer] = []

    def __call__(self, _pdf_path: Path, images_dir: Path) -> FakeRenderer:
        r = FakeRenderer(images_dir, fail_pages=self.fail_pages)
        self.instances.append(r)
        return r

    @property
    def rendered(self) -> list[int]:
        return [p for r in self.instances for p in r.rendered]


@pytest.fixture
def renderer_factory() -> RendererFactory:
    return RendererFactory()


class OllamaStub:
    """httpx.MockTransport handler answering like ``/api/generate``."""

    def __init__(self, *, failures_before_success: int = 0, status_code: int = 200) -> None:
        self.failures_before_success = failures_before_success
        self.status_code = status_code
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if len(self.requests) <= self.failures_before_success:
            raise httpx.ConnectError("connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "model not loaded"})
        n = len(self.requests)
        return httpx.Response(200, json={"model": "test-vision-model", "response": f"Description #{n}", "done": True})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def ollama() -> OllamaStub:
    return OllamaStub()
