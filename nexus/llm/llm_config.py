"""
Model routing for the report services.

Every LLM call names the task it belongs to; the task decides which model
answers first and which one is tried if that provider fails.

    city_lookup       short JSON list, cheap and near-deterministic
    opportunity_feed  JSON array of project records
    report            long streamed Markdown report
    analysis          streamed deep-dive on one opportunity
    outreach_letter   one formal letter
    symbiosis         follow-up chat about one report finding
    default           anything unnamed

Usage:
    config = LLMConfig()
    route = config.route_for("city_lookup")
    route.primary.display_name   # "anthropic/claude-3-5-haiku-20241022"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ModelIntent(str, Enum):
    CITY_LOOKUP = "city_lookup"
    OPPORTUNITY_FEED = "opportunity_feed"
    REPORT = "report"
    ANALYSIS = "analysis"
    OUTREACH_LETTER = "outreach_letter"
    SYMBIOSIS = "symbiosis"
    DEFAULT = "default"


def parse_intent(value: str | ModelIntent) -> ModelIntent:
    """Resolve an intent name; unknown names route as DEFAULT."""
    if isinstance(value, ModelIntent):
        return value
    try:
        return ModelIntent(value)
    except ValueError:
        logger.debug("unknown_model_intent", extra={"intent": value})
        return ModelIntent.DEFAULT


@dataclass(frozen=True)
class ModelProfile:
    """One provider/model pair and its sampling settings."""

    provider: str           # "anthropic", "openai" or "ollama"
    model: str
    temperature: float = 0.5
    max_tokens: int = 4096
    base_url: Optional[str] = None  # ollama only
    cost_per_1k_input: float = 0.0
    cost_per_1k_output: float = 0.0

    @property
    def display_name(self) -> str:
        return f"{self.provider}/{self.model}"

    def tuned(self, **changes) -> "ModelProfile":
        return replace(self, **changes)


@dataclass(frozen=True)
class Route:
    intent: ModelIntent
    primary: ModelProfile
    fallback: Optional[ModelProfile] = None


# ---------------------------------------------------------------------------
# Known models
# ---------------------------------------------------------------------------

CLAUDE_SONNET = ModelProfile(
    provider="anthropic",
    model="claude-sonnet-4-20250514",
    max_tokens=8192,
    cost_per_1k_input=0.003,
    cost_per_1k_output=0.015,
)
CLAUDE_HAIKU = ModelProfile(
    provider="anthropic",
    model="claude-3-5-haiku-20241022",
    max_tokens=2048,
    cost_per_1k_input=0.001,
    cost_per_1k_output=0.005,
)
GPT_4O = ModelProfile(
    provider="openai",
    model="gpt-4o",
    max_tokens=8192,
    cost_per_1k_input=0.005,
    cost_per_1k_output=0.015,
)
GPT_4O_MINI = ModelProfile(
    provider="openai",
    model="gpt-4o-mini",
    max_tokens=2048,
    cost_per_1k_input=0.00015,
    cost_per_1k_output=0.0006,
)
OLLAMA_LLAMA = ModelProfile(
    provider="ollama",
    model="llama3.1:8b",
    base_url="http://localhost:11434",
)


def _route(intent: ModelIntent, primary: ModelProfile, fallback: ModelProfile, **tuning) -> Route:
    return Route(intent, primary.tuned(**tuning), fallback.tuned(**tuning))


# Fallbacks share the primary's sampling settings.
DEFAULT_ROUTING: dict[ModelIntent, Route] = {
    r.intent: r
    for r in (
        _route(ModelIntent.CITY_LOOKUP, CLAUDE_HAIKU, GPT_4O_MINI, temperature=0.1, max_tokens=1024),
        _route(ModelIntent.OPPORTUNITY_FEED, CLAUDE_HAIKU, GPT_4O_MINI, temperature=0.3),
        _route(ModelIntent.REPORT, CLAUDE_SONNET, GPT_4O, temperature=0.4),
        _route(ModelIntent.ANALYSIS, CLAUDE_SONNET, GPT_4O, temperature=0.4, max_tokens=4096),
        _route(ModelIntent.OUTREACH_LETTER, GPT_4O, CLAUDE_SONNET, temperature=0.7, max_tokens=2048),
        _route(ModelIntent.SYMBIOSIS, CLAUDE_SONNET, GPT_4O, temperature=0.6, max_tokens=2048),
        _route(ModelIntent.DEFAULT, CLAUDE_SONNET, GPT_4O),
    )
}


class LLMConfig:
    """
    Intent → route table.

    Starts from DEFAULT_ROUTING; `override` and `use_local_model` only
    touch this instance's copy.
    """

    def __init__(self, routing: Optional[dict[ModelIntent, Route]] = None):
        self._routing = dict(routing or DEFAULT_ROUTING)

    def route_for(self, intent: str | ModelIntent) -> Route:
        resolved = parse_intent(intent)
        return self._routing.get(resolved) or self._routing[ModelIntent.DEFAULT]

    def override(
        self,
        intent: ModelIntent,
        primary: ModelProfile,
        fallback: Optional[ModelProfile] = None,
    ) -> None:
        self._routing[intent] = Route(intent, primary, fallback)
        logger.info(
            "model_route_overridden",
            extra={
                "intent": intent.value,
                "primary": primary.display_name,
                "fallback": fallback.display_name if fallback else None,
            },
        )

    def use_local_model(self, model: str, base_url: str) -> None:
        """Send every intent to one Ollama model, with no fallback."""
        for intent, route in self._routing.items():
            self._routing[intent] = Route(
                intent,
                OLLAMA_LLAMA.tuned(
                    model=model,
                    base_url=base_url,
                    temperature=route.primary.temperature,
                    max_tokens=route.primary.max_tokens,
                ),
            )

    def describe(self) -> list[tuple[str, str, str]]:
        """(intent, primary, fallback) rows for display."""
        return [
            (
                route.intent.value,
                route.primary.display_name,
                route.fallback.display_name if route.fallback else "-",
            )
            for route in self._routing.values()
        ]
