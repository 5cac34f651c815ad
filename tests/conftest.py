"""Shared test fixtures for the pdf-describer test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from pdf_describer.processing.config import DescriberConfig, RunConfig


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    return tmp_path / "processed_pdfs"


@pytest.fixture
def describer_cfg() -> DescriberConfig:
    return DescriberConfig(
        url="http://ollama.test:11434/api/generate",
        model="test-vision-model",
        target_language="English",
        max_retries=3,
        retry_delay_s=0.0,
    )


@pytest.fixture
def run_cfg(output_root: Path) -> RunConfig:
    return RunConfig(output_root=output_root, timeout_s=5.0)
