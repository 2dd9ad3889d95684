"""
Tests for the OpenAI-compatible client in shared/ai/client.py
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from ophthalmotech.shared.ai.client import ASSISTANT_PROMPT, OpenAIClient
from ophthalmotech.shared.ai.config import AIConfig
from ophthalmotech.shared.ai.exceptions import (
    AIConfigurationException,
    AIException,
    AIRateLimitException,
    AIServiceUnavailableException,
    AITimeoutException,
)


def _completion(content: str | None) -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _chunk(content: str | None) -> SimpleNamespace:
    delta = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


class FakeStream:
    """Async iterable of chunks that records whether it was closed."""

    def __init__(self, chunks, error: Exception | None = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


@pytest.fixture
def ai_client() -> OpenAIClient:
    client = OpenAIClient(AIConfig(api_key="test-key", model="test-model"))
    client.client = Mock()
    client.client.chat.completions.create = AsyncMock()
    return client


class TestCompletions:
    """Test single-shot completions."""

    def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr("ophthalmotech.shared.ai.client.ai_config", None)
        with pytest.raises(AIConfigurationException):
            OpenAIClient()

    @pytest.mark.asyncio
    async def test_analyze_device_data(self, ai_client):
        create = ai_client.client.chat.completions.create
        create.return_value = _completion("Device is healthy")

        result = await ai_client.analyze_device_data({"serial": "SN-1"})

        assert result == "Device is healthy"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["temperature"] == 0.3
        assert '"serial": "SN-1"' in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_task_specific_budgets(self, ai_client):
        create = ai_client.client.chat.completions.create
        create.return_value = _completion("ok")

        await ai_client.generate_maintenance_recommendations([{"serial": "SN-1"}])
        assert create.await_args.kwargs["max_tokens"] == 1200
        assert create.await_args.kwargs["temperature"] == 0.2

        await ai_client.analyze_uploaded_file("Serial: SN-1", "log.txt")
        assert create.await_args.kwargs["max_tokens"] == 1500
        assert 'Analyze this uploaded file "log.txt"' in (
            create.await_args.kwargs["messages"][1]["content"]
        )

    @pytest.mark.asyncio
    async def test_empty_response_uses_fallback(self, ai_client):
        create = ai_client.client.chat.completions.create
        create.return_value = _completion(None)
        assert await ai_client.analyze_device_data({}) == "No analysis available"

        create.return_value = SimpleNamespace(choices=[])
        assert await ai_client.generate_response("hi") == "No response available"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Error code: 429 - rate limit reached", AIRateLimitException),
            ("Request timed out", AITimeoutException),
            ("502 Bad Gateway", AIServiceUnavailableException),
            ("invalid api key", AIException),
        ],
    )
    async def test_errors_are_classified(self, ai_client, message, expected):
        ai_client.client.chat.completions.create.side_effect = RuntimeError(message)

        with pytest.raises(expected):
            await ai_client.generate_response("hi")


class TestChatStreaming:
    """Test streamed assistant replies."""

    @pytest.mark.asyncio
    async def test_chat_stream_yields_non_empty_fragments(self, ai_client):
        stream = FakeStream(
            [_chunk("Hel"), _chunk(None), SimpleNamespace(choices=[]), _chunk("lo")]
        )
        create = ai_client.client.chat.completions.create
        create.return_value = stream

        fragments = [f async for f in ai_client.chat_stream(
            [{"role": "user", "content": "Hi"}]
        )]

        assert fragments == ["Hel", "lo"]
        assert stream.closed is True
        messages = create.await_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": ASSISTANT_PROMPT}
        assert messages[1] == {"role": "user", "content": "Hi"}
        assert create.await_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_chat_events_end_with_done(self, ai_client):
        ai_client.client.chat.completions.create.return_value = FakeStream(
            [_chunk("Hello")]
        )

        events = [e async for e in ai_client.chat_events(
            [{"role": "user", "content": "Hi"}]
        )]

        assert [e.type for e in events] == ["delta", "done"]
        assert events[0].content == "Hello"

    @pytest.mark.asyncio
    async def test_chat_events_report_interruption(self, ai_client):
        stream = FakeStream([_chunk("Hel")], error=RuntimeError("Request timed out"))
        ai_client.client.chat.completions.create.return_value = stream

        events = [e async for e in ai_client.chat_events(
            [{"role": "user", "content": "Hi"}]
        )]

        assert [e.type for e in events] == ["delta", "error"]
        assert "Request timeout" in events[-1].error
        assert stream.closed is True

    @pytest.mark.asyncio
    async def test_chat_events_report_start_failure(self, ai_client):
        ai_client.client.chat.completions.create.side_effect = RuntimeError(
            "Error code: 429"
        )

        events = [e async for e in ai_client.chat_events(
            [{"role": "user", "content": "Hi"}]
        )]

        assert len(events) == 1
        assert events[0].type == "error"
        assert "Rate limit exceeded" in events[0].error

    @pytest.mark.asyncio
    async def test_closing_early_closes_upstream(self, ai_client):
        stream = FakeStream([_chunk("a"), _chunk("b"), _chunk("c")])
        ai_client.client.chat.completions.create.return_value = stream

        events = ai_client.chat_events([{"role": "user", "content": "Hi"}])
        first = await events.__anext__()
        await events.aclose()

        assert first.content == "a"
        assert stream.closed is True
