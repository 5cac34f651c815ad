from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pdf_describer.processing.models import PageResult


class DegradedKind(enum.Enum):
    EXTRACTION_UNRELIABLE = "extraction_unreliable"
    EXTRACTION_FAILED = "extraction_failed"
    CONVERSION_FAILED = "conversion_failed"
    DESCRIPTION_FAILED = "description_failed"


@dataclass(frozen=True)
class Ok:
    text: str


@dataclass(frozen=True)
class Degraded:
    kind: DegradedKind
    page_number: int
    detail: str = ""
    attempts: int = 0

    def sentinel(self) -> str:
        # Storage form; must stay byte-compatible with existing result files.
        if self.kind is DegradedKind.EXTRACTION_UNRELIABLE:
            return f"[Unable to extract text reliably for page {self.page_number}]"
        if self.kind is DegradedKind.EXTRACTION_FAILED:
            return f"[Text extraction failed for page {self.page_number}]"
        if self.kind is DegradedKind.CONVERSION_FAILED:
            return f"[Text conversion failed: {self.detail}]"
        return f"[Failed to get image description after {self.attempts} attempts]"


FieldResult = Ok | Degraded


def field_text(value: FieldResult) -> str:
    if isinstance(value, Ok):
        return value.text
    return value.sentinel()


@dataclass(frozen=True)
class PageRange:
    start: int
    end: int
    explicit: bool

    def pages(self) -> range:
        return range(self.start, self.end + 1)

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)


@dataclass
class RunReport:
    page_count: int
    page_range: PageRange
    combined_path: Path
    results: list[PageResult] = field(default_factory=list)
    processed: int = 0
    skipped: int = 0
    failed: int = 0
