"""
Tests for StreamingRouter and collect_stream.

Provider clients are replaced with small mocks that mimic the Anthropic
stream context manager and OpenAI's chunk iterator.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from nexus.llm.llm_config import (
    CLAUDE_SONNET,
    GPT_4O,
    LLMConfig,
    ModelIntent,
    ModelProfile,
)
from nexus.llm.streaming import StreamChunk, StreamingRouter, collect_stream


# ===========================================================================
# Mock Factories
# ===========================================================================

class MockAnthropicStreamMessage:
    """Mock for Anthropic's final stream message."""

    def __init__(self, input_tokens: int = 50, output_tokens: int = 100):
        self.usage = MagicMock(input_tokens=input_tokens, output_tokens=output_tokens)


class MockAnthropicStream:
    """Mock for Anthropic's streaming context manager."""

    def __init__(self, text_chunks: list[str], input_tokens: int = 50,
                 output_tokens: int = 100, fail_after: int | None = None):
        self._chunks = text_chunks
        self._fail_after = fail_after
        self._final_message = MockAnthropicStreamMessage(input_tokens, output_tokens)

    @property
    def text_stream(self):
        for i, chunk in enumerate(self._chunks):
            if self._fail_after is not None and i == self._fail_after:
                raise RuntimeError("connection reset")
            yield chunk

    def get_final_message(self):
        return self._final_message

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass


class MockOpenAIStreamChunk:
    """Mock for an OpenAI streaming chunk."""

    def __init__(self, text: str = "", usage=None):
        if text:
            choice = MagicMock()
            choice.delta.content = text
            self.choices = [choice]
        else:
            self.choices = []
        self.usage = usage


class MockOpenAIUsage:
    def __init__(self, prompt_tokens=50, completion_tokens=100):
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens


async def _drain(stream) -> tuple[list[str], StreamChunk | None]:
    texts, final = [], None
    async for chunk in stream:
        if chunk.is_final:
            final = chunk
        else:
            texts.append(chunk.text)
    return texts, final


# ===========================================================================
# StreamingRouter
# ===========================================================================

class TestStreamingRouter:

    @pytest.mark.asyncio
    async def test_stream_anthropic(self):
        client = MagicMock()
        client.messages.stream.return_value = MockAnthropicStream(
            ["Executive", " summary", "."], input_tokens=10, output_tokens=20,
        )
        router = StreamingRouter(anthropic_client=client, config=LLMConfig())

        texts, final = await _drain(router.stream("report", "sys", "user"))

        assert texts == ["Executive", " summary", "."]
        assert final is not None
        assert final.provider == "anthropic"
        assert final.input_tokens == 10
        assert final.output_tokens == 20
        assert final.cost > 0
        assert client.messages.stream.call_args.kwargs["temperature"] == 0.4

        stats = router.last_stream_stats
        assert stats["intent"] == "report"
        assert stats["chunk_count"] == 3
        assert stats["total_text_length"] == len("Executive summary.")
        assert stats["total_tokens"] == 30
        assert stats["is_fallback"] is False

    @pytest.mark.asyncio
    async def test_stream_openai_reads_usage_from_trailing_chunk(self):
        client = MagicMock()
        client.chat.completions.create.return_value = iter([
            MockOpenAIStreamChunk("Hi"),
            MockOpenAIStreamChunk(" there"),
            MockOpenAIStreamChunk("", usage=MockOpenAIUsage(30, 40)),
        ])
        config = LLMConfig()
        config.override(ModelIntent.DEFAULT, GPT_4O)
        router = StreamingRouter(openai_client=client, config=config)

        texts, final = await _drain(router.stream("default", "sys", "user"))

        assert texts == ["Hi", " there"]
        assert final.input_tokens == 30
        assert final.output_tokens == 40
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_fallback_when_primary_fails_before_output(self):
        anthropic = MagicMock()
        anthropic.messages.stream.side_effect = RuntimeError("API down")
        openai = MagicMock()
        openai.chat.completions.create.return_value = iter([
            MockOpenAIStreamChunk("Fallback"),
            MockOpenAIStreamChunk("", usage=MockOpenAIUsage(5, 10)),
        ])
        router = StreamingRouter(
            anthropic_client=anthropic, openai_client=openai,
            config=LLMConfig(),
        )

        texts, final = await _drain(router.stream("report", "sys", "user"))

        assert texts == ["Fallback"]
        assert final.provider == "openai"
        assert router.last_stream_stats["is_fallback"] is True

    @pytest.mark.asyncio
    async def test_no_fallback_after_partial_output(self):
        anthropic = MagicMock()
        anthropic.messages.stream.return_value = MockAnthropicStream(
            ["Part one", "Part two"], fail_after=1,
        )
        openai = MagicMock()
        router = StreamingRouter(
            anthropic_client=anthropic, openai_client=openai,
            config=LLMConfig(),
        )

        received = []
        with pytest.raises(RuntimeError, match="connection reset"):
            async for chunk in router.stream("report", "sys", "user"):
                received.append(chunk.text)

        assert received == ["Part one"]
        openai.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_both_fail_raises_fallback_error(self):
        anthropic = MagicMock()
        anthropic.messages.stream.side_effect = RuntimeError("primary down")
        openai = MagicMock()
        openai.chat.completions.create.side_effect = ValueError("fallback down")
        router = StreamingRouter(
            anthropic_client=anthropic, openai_client=openai,
            config=LLMConfig(),
        )

        with pytest.raises(ValueError, match="fallback down"):
            await _drain(router.stream("report", "sys", "user"))

    @pytest.mark.asyncio
    async def test_missing_client_without_fallback(self):
        config = LLMConfig()
        config.override(ModelIntent.DEFAULT, CLAUDE_SONNET)
        router = StreamingRouter(config=config)

        with pytest.raises(ValueError, match="Anthropic client not configured"):
            await _drain(router.stream("default", "sys", "user"))

    @pytest.mark.asyncio
    async def test_unsupported_provider(self):
        config = LLMConfig()
        config.override(
            ModelIntent.DEFAULT, ModelProfile(provider="carrier-pigeon", model="x"),
        )
        router = StreamingRouter(config=config)

        with pytest.raises(ValueError, match="Unsupported provider"):
            await _drain(router.stream("default", "sys", "user"))

    @pytest.mark.asyncio
    async def test_usage_accumulates(self):
        client = MagicMock()
        client.messages.stream.side_effect = [
            MockAnthropicStream(["a"], 10, 10),
            MockAnthropicStream(["b"], 20, 20),
        ]
        router = StreamingRouter(anthropic_client=client, config=LLMConfig())

        await _drain(router.stream("report", "sys", "one"))
        await _drain(router.stream("report", "sys", "two"))

        usage = router.get_usage_stats()
        assert router.stream_count == 2
        assert usage["total_input_tokens"] == 30
        assert usage["total_tokens"] == 60

    def test_last_stream_stats_none_before_streaming(self):
        assert StreamingRouter().last_stream_stats is None


# ===========================================================================
# collect_stream
# ===========================================================================

class TestCollectStream:

    @pytest.mark.asyncio
    async def test_joins_text_and_returns_final(self):
        async def gen():
            yield StreamChunk(text="Da ")
            yield StreamChunk(text="Nang")
            yield StreamChunk(text="", is_final=True, output_tokens=7)

        text, final = await collect_stream(gen())

        assert text == "Da Nang"
        assert final.output_tokens == 7

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        async def gen():
            return
            yield  # pragma: no cover

        text, final = await collect_stream(gen())

        assert text == ""
        assert final.is_final
