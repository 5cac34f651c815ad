"""Vision-model page descriptions via an Ollama-style ``/api/generate`` endpoint."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from pdf_describer.processing.config import DescriberConfig
from pdf_describer.processing.errors import InvalidInputError, RetryExhaustedError
from pdf_describer.processing.retry import RetryPolicy
from pdf_describer.processing.types import Degraded, DegradedKind, FieldResult, Ok

logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json"}


class Describer:
    def __init__(
        self,
        *,
        cfg: DescriberConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cfg = cfg
        self._transport = transport
        self._retry = RetryPolicy(max_attempts=cfg.max_retries, delay_s=cfg.retry_delay_s)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def build_request(self, image_bytes: bytes) -> dict[str, Any]:
        return {
            "model": self._cfg.model,
            "prompt": self._cfg.prompt,
            "images": [base64.b64encode(image_bytes).decode("ascii")],
            "stream": False,
        }

    async def describe(self, image_bytes: bytes, timeout_s: float, *, page_number: int = 0) -> FieldResult:
        """Describe one rendered page.

        Never raises for transport or model failures: once every attempt has
        failed the result is ``Degraded`` instead.

        Raises:
            InvalidInputError: If ``image_bytes`` is not a non-empty bytes payload.
        """
        if not isinstance(image_bytes, (bytes, bytearray, memoryview)):
            raise InvalidInputError(f"Image payload must be bytes, got {type(image_bytes).__name__}")
        payload = bytes(image_bytes)
        if not payload:
            raise InvalidInputError("Image payload is empty")

        body = self.build_request(payload)

        async def _call() -> str:
            return await self._post(body, timeout_s)

        try:
            text = await self._retry.run(_call, label=f"Describe page {page_number}")
        except RetryExhaustedError as e:
            return Degraded(
                DegradedKind.DESCRIPTION_FAILED,
                page_number,
                detail=str(e.last_error),
                attempts=e.attempts,
            )
        return Ok(text)

    async def _post(self, body: dict[str, Any], timeout_s: float) -> str:
        logger.info("Sending request to %s (model=%s)", self._cfg.url, self._cfg.model)
        async with httpx.AsyncClient(timeout=timeout_s, transport=self._transport) as client:
            resp = await client.post(self._cfg.url, json=body, headers=_HEADERS)
        resp.raise_for_status()

        data = resp.json()
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ValueError("Inference response has no 'response' text field")
        logger.info("Received response (%d chars)", len(text))
        return text
