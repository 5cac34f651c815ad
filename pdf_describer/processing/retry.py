from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from pdf_describer.processing.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Uniform retry: fixed delay between attempts, no backoff or jitter."""

    max_attempts: int = 3
    delay_s: float = 5.0

    async def run(self, op: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
        last_err: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await op()
            except Exception as e:
                last_err = e
                logger.error("%s attempt %d/%d failed: %s", label, attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    logger.info("Retrying in %.1f seconds...", self.delay_s)
                    await asyncio.sleep(self.delay_s)

        raise RetryExhaustedError(self.max_attempts, last_err)
