"""Unit tests for the Describer and its fixed-delay retry policy.

The inference endpoint is an httpx.MockTransport; asyncio.sleep is patched
so retry delays are counted rather than waited out.
"""

from __future__ import annotations

import base64
from dataclasses import replace
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from pdf_describer.processing.config import DescriberConfig
from pdf_describer.processing.describer import Describer
from pdf_describer.processing.errors import InvalidInputError, RetryExhaustedError
from pdf_describer.processing.retry import RetryPolicy
from pdf_describer.processing.types import Degraded, DegradedKind, Ok
from tests.unit.conftest import FAKE_PNG, OllamaStub

_SLEEP = "pdf_describer.processing.retry.asyncio.sleep"


class TestRequestShape:
    async def test_posts_generate_body(self, describer_cfg: DescriberConfig, ollama: OllamaStub):
        d = Describer(cfg=describer_cfg, transport=ollama.transport())

        result = await d.describe(FAKE_PNG, 5.0, page_number=1)

        assert result == Ok("Description #1")
        assert len(ollama.requests) == 1
        body = ollama.requests[0]
        assert body["model"] == "test-vision-model"
        assert body["stream"] is False
        assert base64.b64decode(body["images"][0]) == FAKE_PNG
        assert "English language" in body["prompt"]

    def test_prompt_parameterized_by_language(self, describer_cfg: DescriberConfig):
        cfg = replace(describer_cfg, target_language="Chinese")
        assert cfg.prompt.endswith("Only page content in Chinese language.")


class TestInvalidInput:
    @pytest.mark.parametrize("payload", ["not bytes", None, 123])
    async def test_rejects_non_bytes(self, describer_cfg: DescriberConfig, ollama: OllamaStub, payload):
        d = Describer(cfg=describer_cfg, transport=ollama.transport())
        with pytest.raises(InvalidInputError):
            await d.describe(payload, 5.0)
        assert ollama.requests == []

    async def test_rejects_empty(self, describer_cfg: DescriberConfig, ollama: OllamaStub):
        d = Describer(cfg=describer_cfg, transport=ollama.transport())
        with pytest.raises(InvalidInputError, match="empty"):
            await d.describe(b"", 5.0)


class TestRetries:
    async def test_all_attempts_fail_returns_sentinel(self, describer_cfg: DescriberConfig):
        stub = OllamaStub(failures_before_success=99)
        cfg = replace(describer_cfg, retry_delay_s=5.0)
        d = Describer(cfg=cfg, transport=stub.transport())

        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            result = await d.describe(FAKE_PNG, 5.0, page_number=4)

        assert isinstance(result, Degraded)
        assert result.kind is DegradedKind.DESCRIPTION_FAILED
        assert result.sentinel() == "[Failed to get image description after 3 attempts]"
        assert len(stub.requests) == 3
        # Two waits between three attempts, never after the last one
        assert sleep.await_count == 2
        assert [c.args[0] for c in sleep.await_args_list] == [5.0, 5.0]

    async def test_recovers_on_third_attempt(self, describer_cfg: DescriberConfig):
        stub = OllamaStub(failures_before_success=2)
        d = Describer(cfg=describer_cfg, transport=stub.transport())

        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            result = await d.describe(FAKE_PNG, 5.0)

        assert result == Ok("Description #3")
        assert sleep.await_count == 2

    async def test_non_success_status_is_retried(self, describer_cfg: DescriberConfig):
        stub = OllamaStub(status_code=500)
        d = Describer(cfg=describer_cfg, transport=stub.transport())

        with patch(_SLEEP, new_callable=AsyncMock):
            result = await d.describe(FAKE_PNG, 5.0)

        assert isinstance(result, Degraded)
        assert "500" in result.detail
        assert len(stub.requests) == 3

    async def test_missing_response_field_is_an_error(self, describer_cfg: DescriberConfig):
        transport = httpx.MockTransport(lambda req: httpx.Response(200, json={"done": True}))
        d = Describer(cfg=describer_cfg, transport=transport)

        with patch(_SLEEP, new_callable=AsyncMock):
            result = await d.describe(FAKE_PNG, 5.0)

        assert isinstance(result, Degraded)
        assert "response" in result.detail

    async def test_timeout_is_retried(self, describer_cfg: DescriberConfig):
        def _slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        d = Describer(cfg=describer_cfg, transport=httpx.MockTransport(_slow))
        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            result = await d.describe(FAKE_PNG, 0.1)

        assert isinstance(result, Degraded)
        assert sleep.await_count == 2

    async def test_attempt_count_follows_config(self, describer_cfg: DescriberConfig):
        stub = OllamaStub(failures_before_success=99)
        d = Describer(cfg=replace(describer_cfg, max_retries=1), transport=stub.transport())

        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            result = await d.describe(FAKE_PNG, 5.0)

        assert result.sentinel() == "[Failed to get image description after 1 attempts]"
        assert sleep.await_count == 0


class TestRetryPolicy:
    async def test_raises_with_last_error(self):
        op = AsyncMock(side_effect=[ValueError("one"), ValueError("two")])
        policy = RetryPolicy(max_attempts=2, delay_s=1.5)

        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await policy.run(op)

        assert exc_info.value.attempts == 2
        assert str(exc_info.value.last_error) == "two"
        sleep.assert_awaited_once_with(1.5)

    async def test_returns_first_success(self):
        op = AsyncMock(return_value="ok")
        with patch(_SLEEP, new_callable=AsyncMock) as sleep:
            assert await RetryPolicy().run(op) == "ok"
        sleep.assert_not_awaited()
        op.assert_awaited_once()
