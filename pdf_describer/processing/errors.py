from __future__ import annotations


class PdfDescriberError(Exception):
    """Base class for errors raised by the page pipeline."""


class DocumentLoadError(PdfDescriberError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot load PDF {path}: {reason}")
        self.path = path


class PageRangeError(PdfDescriberError, ValueError):
    def __init__(self, start_page: int, end_page: int) -> None:
        super().__init__(
            f"Invalid page range: start page ({start_page}) is greater than end page ({end_page})"
        )
        self.start_page = start_page
        self.end_page = end_page


class InvalidInputError(PdfDescriberError, ValueError):
    pass


class RetryExhaustedError(PdfDescriberError):
    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
