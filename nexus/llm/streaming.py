"""
Streamed LLM output for report bodies and opportunity analyses.

`StreamingRouter.stream` yields `StreamChunk`s as text arrives and ends
with one `is_final` chunk carrying token usage and cost. Anthropic, OpenAI
and Ollama are supported.

A provider error before any text has been yielded moves the stream to the
route's fallback model. After the first text chunk the error propagates,
so the consumer never sees output from two models.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import httpx

from nexus.llm.llm_config import LLMConfig, ModelIntent, ModelProfile
from nexus.llm.router import OLLAMA_TIMEOUT_SECONDS, chat_messages, estimate_cost

logger = logging.getLogger(__name__)


@dataclass
class StreamChunk:
    text: str
    provider: str = ""
    model: str = ""
    is_final: bool = False
    # usage fields are set on the final chunk only
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    latency_ms: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class _Tally:
    """Counts text and tokens for one provider attempt."""

    def __init__(self, profile: ModelProfile):
        self.profile = profile
        self.started = time.monotonic()
        self.chars = 0
        self.chunks = 0
        self.input_tokens = 0
        self.output_tokens = 0

    def text(self, fragment: str) -> StreamChunk:
        self.chars += len(fragment)
        self.chunks += 1
        return StreamChunk(fragment, self.profile.provider, self.profile.model)

    def close(self) -> StreamChunk:
        return StreamChunk(
            "",
            self.profile.provider,
            self.profile.model,
            is_final=True,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cost=estimate_cost(self.profile, self.input_tokens, self.output_tokens),
            latency_ms=(time.monotonic() - self.started) * 1000,
        )


class StreamingRouter:
    """Streams the model routed for an intent; clients are injected."""

    def __init__(
        self,
        anthropic_client: Any = None,
        openai_client: Any = None,
        ollama_base_url: Optional[str] = None,
        config: Optional[LLMConfig] = None,
    ):
        self._anthropic = anthropic_client
        self._openai = openai_client
        self._ollama_base_url = ollama_base_url or "http://localhost:11434"
        self._config = config or LLMConfig()

        self._last_stats: Optional[dict[str, Any]] = None
        self._stream_count = 0
        self._total_cost = 0.0
        self._input_tokens = 0
        self._output_tokens = 0

    @property
    def last_stream_stats(self) -> Optional[dict[str, Any]]:
        return dict(self._last_stats) if self._last_stats else None

    @property
    def stream_count(self) -> int:
        return self._stream_count

    @property
    def total_cost(self) -> float:
        return self._total_cost

    def get_usage_stats(self) -> dict[str, Any]:
        return {
            "total_streams": self._stream_count,
            "total_cost_usd": round(self._total_cost, 4),
            "total_input_tokens": self._input_tokens,
            "total_output_tokens": self._output_tokens,
            "total_tokens": self._input_tokens + self._output_tokens,
        }

    async def stream(
        self,
        intent: str | ModelIntent,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncIterator[StreamChunk]:
        route = self._config.route_for(intent)
        name = route.intent.value
        attempts = [route.primary] + ([route.fallback] if route.fallback else [])
        first_error: Optional[Exception] = None

        for profile in attempts:
            if temperature is not None or max_tokens is not None:
                profile = profile.tuned(
                    temperature=profile.temperature if temperature is None else temperature,
                    max_tokens=profile.max_tokens if max_tokens is None else max_tokens,
                )
            tally = _Tally(profile)
            try:
                async for chunk in self._provider_stream(tally, system_prompt, user_prompt):
                    yield chunk
            except Exception as e:
                if first_error is not None:
                    logger.error(
                        "stream_fallback_also_failed",
                        extra={"intent": name, "model": profile.display_name, "error": str(e)[:200]},
                    )
                    raise e from first_error
                logger.warning(
                    "stream_primary_failed",
                    extra={
                        "intent": name,
                        "model": profile.display_name,
                        "after_output": tally.chunks > 0,
                        "error": str(e)[:200],
                    },
                )
                if tally.chunks > 0:
                    raise
                first_error = e
                continue

            final = tally.close()
            self._record(name, tally, final, is_fallback=first_error is not None)
            yield final
            return

        raise first_error

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _provider_stream(
        self, tally: _Tally, system_prompt: str, user_prompt: str,
    ) -> AsyncIterator[StreamChunk]:
        provider = tally.profile.provider
        if provider == "anthropic":
            return self._anthropic_stream(tally, system_prompt, user_prompt)
        if provider == "openai":
            return self._openai_stream(tally, system_prompt, user_prompt)
        if provider == "ollama":
            return self._ollama_stream(tally, system_prompt, user_prompt)
        raise ValueError(f"Unsupported provider for streaming: {provider}")

    async def _anthropic_stream(
        self, tally: _Tally, system_prompt: str, user_prompt: str,
    ) -> AsyncIterator[StreamChunk]:
        if self._anthropic is None:
            raise ValueError("Anthropic client not configured. Pass anthropic_client to StreamingRouter().")

        profile = tally.profile
        with self._anthropic.messages.stream(
            model=profile.model,
            max_tokens=profile.max_tokens,
            temperature=profile.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        ) as stream:
            for fragment in stream.text_stream:
                yield tally.text(fragment)

            message = stream.get_final_message()
            usage = getattr(message, "usage", None)
            if usage is not None:
                tally.input_tokens = getattr(usage, "input_tokens", 0)
                tally.output_tokens = getattr(usage, "output_tokens", 0)

    async def _openai_stream(
        self, tally: _Tally, system_prompt: str, user_prompt: str,
    ) -> AsyncIterator[StreamChunk]:
        if self._openai is None:
            raise ValueError("OpenAI client not configured. Pass openai_client to StreamingRouter().")

        profile = tally.profile
        events = self._openai.chat.completions.create(
            model=profile.model,
            messages=chat_messages(system_prompt, user_prompt),
            temperature=profile.temperature,
            max_tokens=profile.max_tokens,
            stream=True,
            stream_options={"include_usage": True},
        )
        for event in events:
            if event.usage is not None:  # trailing usage-only event
                tally.input_tokens = event.usage.prompt_tokens or 0
                tally.output_tokens = event.usage.completion_tokens or 0
            if event.choices and event.choices[0].delta.content:
                yield tally.text(event.choices[0].delta.content)

    async def _ollama_stream(
        self, tally: _Tally, system_prompt: str, user_prompt: str,
    ) -> AsyncIterator[StreamChunk]:
        profile = tally.profile
        base_url = profile.base_url or self._ollama_base_url
        payload = {
            "model": profile.model,
            "messages": chat_messages(system_prompt, user_prompt),
            "stream": True,
            "options": {"temperature": profile.temperature, "num_predict": profile.max_tokens},
        }

        async with httpx.AsyncClient(timeout=OLLAMA_TIMEOUT_SECONDS) as client:
            async with client.stream("POST", f"{base_url}/api/chat", json=payload) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    data = json.loads(line)
                    if data.get("done"):
                        tally.input_tokens = data.get("prompt_eval_count", 0)
                        tally.output_tokens = data.get("eval_count", 0)
                        break
                    fragment = data.get("message", {}).get("content", "")
                    if fragment:
                        yield tally.text(fragment)

    def _record(self, intent: str, tally: _Tally, final: StreamChunk, is_fallback: bool) -> None:
        self._stream_count += 1
        self._total_cost += final.cost
        self._input_tokens += final.input_tokens
        self._output_tokens += final.output_tokens
        self._last_stats = {
            "intent": intent,
            "provider": final.provider,
            "model": final.model,
            "input_tokens": final.input_tokens,
            "output_tokens": final.output_tokens,
            "total_tokens": final.total_tokens,
            "cost": final.cost,
            "latency_ms": final.latency_ms,
            "chunk_count": tally.chunks,
            "total_text_length": tally.chars,
            "is_fallback": is_fallback,
        }
        logger.info(
            "stream_completed",
            extra={
                "intent": intent,
                "model": tally.profile.display_name,
                "chunks": tally.chunks,
                "tokens": final.total_tokens,
                "latency_ms": round(final.latency_ms, 1),
                "is_fallback": is_fallback,
            },
        )


async def collect_stream(stream: AsyncIterator[StreamChunk]) -> tuple[str, StreamChunk]:
    """Drain a stream into (full_text, final_chunk)."""
    parts: list[str] = []
    final = StreamChunk("", is_final=True)
    async for chunk in stream:
        if chunk.is_final:
            final = chunk
        elif chunk.text:
            parts.append(chunk.text)
    return "".join(parts), final
