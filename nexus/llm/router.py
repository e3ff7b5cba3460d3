"""
Non-streaming LLM calls: city lists, the opportunity feed, outreach letters.

Report bodies and deep-dive analyses stream through StreamingRouter instead.
A failed primary call is retried once on the route's fallback model.

Usage:
    router = ModelRouter(anthropic_client=anthropic.Anthropic())
    reply = await router.route(
        ModelIntent.CITY_LOOKUP,
        system_prompt="Return a JSON array of strings.",
        user_prompt="Major regional cities of Vietnam",
    )
    reply.text
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from nexus.llm.llm_config import LLMConfig, ModelIntent, ModelProfile

logger = logging.getLogger(__name__)

OLLAMA_TIMEOUT_SECONDS = 120.0


@dataclass
class LLMResponse:
    text: str
    provider: str
    model: str
    intent: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0       # USD estimate
    latency_ms: float = 0.0
    is_fallback: bool = False

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def estimate_cost(profile: ModelProfile, input_tokens: int, output_tokens: int) -> float:
    return (
        input_tokens / 1000 * profile.cost_per_1k_input
        + output_tokens / 1000 * profile.cost_per_1k_output
    )


def chat_messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class ModelRouter:
    """
    Sends one prompt to the model routed for an intent.

    Provider clients are passed in by the caller. Routing to a provider
    without a client raises ValueError, which counts as a failed attempt.
    """

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
        self._call_count = 0
        self._total_cost = 0.0

    @property
    def config(self) -> LLMConfig:
        return self._config

    @property
    def call_count(self) -> int:
        return self._call_count

    @property
    def total_cost(self) -> float:
        return self._total_cost

    def get_usage_stats(self) -> dict[str, Any]:
        return {
            "total_calls": self._call_count,
            "total_cost_usd": round(self._total_cost, 4),
        }

    async def route(
        self,
        intent: str | ModelIntent,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Call the primary model for `intent`, then its fallback if that fails.

        When both fail the fallback's error is raised with the primary's as
        its __cause__. Without a fallback the primary's error propagates.
        """
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
            try:
                response = await self._dispatch(profile, system_prompt, user_prompt)
            except Exception as e:
                if first_error is None:
                    logger.warning(
                        "llm_primary_failed",
                        extra={"intent": name, "model": profile.display_name, "error": str(e)[:200]},
                    )
                    first_error = e
                    continue
                logger.error(
                    "llm_fallback_also_failed",
                    extra={"intent": name, "model": profile.display_name, "error": str(e)[:200]},
                )
                raise e from first_error
            break
        else:
            raise first_error

        response.intent = name
        response.is_fallback = first_error is not None
        self._call_count += 1
        self._total_cost += response.cost
        logger.info(
            "llm_routed",
            extra={
                "intent": name,
                "model": profile.display_name,
                "tokens": response.total_tokens,
                "latency_ms": round(response.latency_ms, 1),
                "is_fallback": response.is_fallback,
            },
        )
        return response

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def _dispatch(
        self, profile: ModelProfile, system_prompt: str, user_prompt: str,
    ) -> LLMResponse:
        start = time.monotonic()
        if profile.provider == "anthropic":
            response = self._call_anthropic(profile, system_prompt, user_prompt)
        elif profile.provider == "openai":
            response = self._call_openai(profile, system_prompt, user_prompt)
        elif profile.provider == "ollama":
            response = await self._call_ollama(profile, system_prompt, user_prompt)
        else:
            raise ValueError(f"Unsupported provider: {profile.provider}")

        response.latency_ms = (time.monotonic() - start) * 1000
        response.cost = estimate_cost(profile, response.input_tokens, response.output_tokens)
        return response

    def _call_anthropic(
        self, profile: ModelProfile, system_prompt: str, user_prompt: str,
    ) -> LLMResponse:
        if self._anthropic is None:
            raise ValueError("Anthropic client not configured. Pass anthropic_client to ModelRouter().")

        message = self._anthropic.messages.create(
            model=profile.model,
            max_tokens=profile.max_tokens,
            temperature=profile.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return LLMResponse(
            text=message.content[0].text if message.content else "",
            provider="anthropic",
            model=profile.model,
            input_tokens=getattr(message.usage, "input_tokens", 0),
            output_tokens=getattr(message.usage, "output_tokens", 0),
        )

    def _call_openai(
        self, profile: ModelProfile, system_prompt: str, user_prompt: str,
    ) -> LLMResponse:
        if self._openai is None:
            raise ValueError("OpenAI client not configured. Pass openai_client to ModelRouter().")

        completion = self._openai.chat.completions.create(
            model=profile.model,
            messages=chat_messages(system_prompt, user_prompt),
            temperature=profile.temperature,
            max_tokens=profile.max_tokens,
        )
        choice = completion.choices[0] if completion.choices else None
        usage = completion.usage
        return LLMResponse(
            text=(choice.message.content if choice and choice.message else "") or "",
            provider="openai",
            model=profile.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    async def _call_ollama(
        self, profile: ModelProfile, system_prompt: str, user_prompt: str,
    ) -> LLMResponse:
        base_url = profile.base_url or self._ollama_base_url
        async with httpx.AsyncClient(timeout=OLLAMA_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                f"{base_url}/api/chat",
                json={
                    "model": profile.model,
                    "messages": chat_messages(system_prompt, user_prompt),
                    "stream": False,
                    "options": {
                        "temperature": profile.temperature,
                        "num_predict": profile.max_tokens,
                    },
                },
            )
            resp.raise_for_status()
            data = resp.json()

        return LLMResponse(
            text=data.get("message", {}).get("content", ""),
            provider="ollama",
            model=profile.model,
            input_tokens=data.get("prompt_eval_count", 0),
            output_tokens=data.get("eval_count", 0),
        )
