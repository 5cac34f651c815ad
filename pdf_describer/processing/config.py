from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_START_PAGE = 1
DEFAULT_TIMEOUT_S = 60.0

PROMPT_TEMPLATE = (
    "give detailed description of page. Pay attention to the details and elements. "
    "No commentary allowed. Only page content in {language} language."
)


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class DescriberConfig:
    # Inference endpoint
    url: str
    model: str
    target_language: str

    # Retries
    max_retries: int
    retry_delay_s: float

    @property
    def prompt(self) -> str:
        return PROMPT_TEMPLATE.format(language=self.target_language)

    @classmethod
    def from_env(cls) -> DescriberConfig:
        host = os.getenv("PDF_DESCRIBER_OLLAMA_HOST", "localhost")
        port = _get_int("PDF_DESCRIBER_OLLAMA_PORT", 11434)
        url = os.getenv("PDF_DESCRIBER_OLLAMA_URL") or f"http://{host}:{port}/api/generate"

        return cls(
            url=url,
            model=os.getenv("PDF_DESCRIBER_MODEL", "gemma3:27b-it-qat"),
            target_language=os.getenv("PDF_DESCRIBER_TARGET_LANGUAGE", "Chinese"),
            max_retries=_get_int("PDF_DESCRIBER_MAX_RETRIES", 3),
            retry_delay_s=_get_float("PDF_DESCRIBER_RETRY_DELAY_S", 5.0),
        )

    def with_overrides(self, *, model: str | None = None, target_language: str | None = None) -> DescriberConfig:
        return replace(
            self,
            model=model or self.model,
            target_language=target_language or self.target_language,
        )

    def validate(self) -> None:
        if not self.url:
            raise ValueError("PDF_DESCRIBER_OLLAMA_URL must not be empty")
        if not self.model.strip():
            raise ValueError("PDF_DESCRIBER_MODEL must not be empty")
        if not self.target_language.strip():
            raise ValueError("PDF_DESCRIBER_TARGET_LANGUAGE must not be empty")
        if self.max_retries < 1:
            raise ValueError("PDF_DESCRIBER_MAX_RETRIES must be >= 1")
        if self.retry_delay_s < 0:
            raise ValueError("PDF_DESCRIBER_RETRY_DELAY_S must be >= 0")


@dataclass(frozen=True)
class RunConfig:
    start_page: int = DEFAULT_START_PAGE
    end_page: int | None = None  # None means "last page"
    timeout_s: float = DEFAULT_TIMEOUT_S
    output_root: Path = Path("processed_pdfs")

    @property
    def is_explicit_range(self) -> bool:
        # Either bound differing from its default counts; changing only
        # end_page also disables resume-skipping.
        return self.start_page != DEFAULT_START_PAGE or self.end_page is not None

    @classmethod
    def from_env(cls, *, start_page: int | None = None, end_page: int | None = None) -> RunConfig:
        return cls(
            start_page=DEFAULT_START_PAGE if start_page is None else start_page,
            end_page=end_page,
            timeout_s=_get_float("PDF_DESCRIBER_TIMEOUT_S", DEFAULT_TIMEOUT_S),
            output_root=Path(os.getenv("PDF_DESCRIBER_OUTPUT_ROOT", "processed_pdfs")),
        )

    def validate(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout must be > 0 seconds")


def json_logs_enabled() -> bool:
    return _get_bool("PDF_DESCRIBER_LOG_JSON", False)
