"""
Tests for the model routing layer.

Covers:
1. LLMConfig: default routes per intent, intent parsing, overrides, local mode
2. ModelRouter: provider dispatch, fallback, usage tracking

All tests use mocks; no calls reach Anthropic, OpenAI, or Ollama.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nexus.llm.llm_config import (
    CLAUDE_HAIKU,
    CLAUDE_SONNET,
    DEFAULT_ROUTING,
    GPT_4O,
    GPT_4O_MINI,
    OLLAMA_LLAMA,
    LLMConfig,
    ModelIntent,
    parse_intent,
)
from nexus.llm.router import LLMResponse, ModelRouter, estimate_cost


# ===========================================================================
# Fixtures
# ===========================================================================

@pytest.fixture
def mock_anthropic():
    client = MagicMock()
    message = MagicMock()
    message.content = [MagicMock(text="Claude says hello")]
    message.usage = MagicMock(input_tokens=100, output_tokens=50)
    client.messages.create.return_value = message
    return client


@pytest.fixture
def mock_openai():
    client = MagicMock()
    choice = MagicMock()
    choice.message.content = "GPT says hello"
    completion = MagicMock()
    completion.choices = [choice]
    completion.usage = MagicMock(prompt_tokens=80, completion_tokens=40)
    client.chat.completions.create.return_value = completion
    return client


@pytest.fixture
def router(mock_anthropic, mock_openai):
    return ModelRouter(anthropic_client=mock_anthropic, openai_client=mock_openai)


@pytest.fixture
def config():
    return LLMConfig()


# ===========================================================================
# LLMConfig
# ===========================================================================

class TestParseIntent:

    def test_known_name(self):
        assert parse_intent("city_lookup") is ModelIntent.CITY_LOOKUP

    def test_enum_passes_through(self):
        assert parse_intent(ModelIntent.REPORT) is ModelIntent.REPORT

    def test_unknown_name_is_default(self):
        assert parse_intent("astrology") is ModelIntent.DEFAULT


class TestLLMConfig:

    def test_every_intent_has_a_route_with_fallback(self, config):
        for intent in ModelIntent:
            route = config.route_for(intent)
            assert route.intent is intent
            assert route.fallback is not None

    def test_city_lookup_is_cheap_and_cold(self, config):
        route = config.route_for("city_lookup")
        assert route.primary.model == CLAUDE_HAIKU.model
        assert route.fallback.model == GPT_4O_MINI.model
        assert route.primary.temperature == 0.1
        assert route.fallback.temperature == 0.1

    def test_outreach_letter_prefers_openai(self, config):
        route = config.route_for(ModelIntent.OUTREACH_LETTER)
        assert route.primary.model == GPT_4O.model
        assert route.fallback.model == CLAUDE_SONNET.model

    def test_unknown_intent_uses_default_route(self, config):
        assert config.route_for("astrology").intent is ModelIntent.DEFAULT

    def test_override_replaces_route(self, config):
        config.override(ModelIntent.REPORT, OLLAMA_LLAMA)
        route = config.route_for("report")
        assert route.primary == OLLAMA_LLAMA
        assert route.fallback is None

    def test_override_does_not_touch_defaults(self, config):
        config.override(ModelIntent.REPORT, OLLAMA_LLAMA)
        assert DEFAULT_ROUTING[ModelIntent.REPORT].primary.model == CLAUDE_SONNET.model
        assert LLMConfig().route_for("report").primary.model == CLAUDE_SONNET.model

    def test_use_local_model(self, config):
        config.use_local_model("qwen2.5:14b", "http://gpu:11434")
        for intent in ModelIntent:
            route = config.route_for(intent)
            assert route.primary.provider == "ollama"
            assert route.primary.model == "qwen2.5:14b"
            assert route.primary.base_url == "http://gpu:11434"
            assert route.fallback is None

    def test_describe(self, config):
        rows = config.describe()
        assert len(rows) == len(ModelIntent)
        assert ("city_lookup", CLAUDE_HAIKU.display_name, GPT_4O_MINI.display_name) in rows


# ===========================================================================
# ModelRouter
# ===========================================================================

class TestModelRouter:

    @pytest.mark.asyncio
    async def test_route_to_anthropic(self, router, mock_anthropic):
        response = await router.route("city_lookup", "sys", "List cities")

        assert isinstance(response, LLMResponse)
        assert response.text == "Claude says hello"
        assert response.provider == "anthropic"
        assert response.model == CLAUDE_HAIKU.model
        assert response.intent == "city_lookup"
        assert response.total_tokens == 150
        assert response.is_fallback is False

        kwargs = mock_anthropic.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "List cities"}]
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_route_to_openai(self, router, mock_openai):
        response = await router.route(ModelIntent.OUTREACH_LETTER, "sys", "Draft a letter")

        assert response.text == "GPT says hello"
        assert response.provider == "openai"
        assert response.input_tokens == 80
        assert response.output_tokens == 40
        messages = mock_openai.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_unknown_intent_reported_as_default(self, router):
        response = await router.route("astrology", "sys", "u")
        assert response.intent == "default"

    @pytest.mark.asyncio
    async def test_call_overrides_temperature_and_max_tokens(self, router, mock_anthropic):
        await router.route("city_lookup", "sys", "u", temperature=0.0, max_tokens=64)

        kwargs = mock_anthropic.messages.create.call_args.kwargs
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 64

    @pytest.mark.asyncio
    async def test_fallback_on_primary_failure(self, router, mock_anthropic, mock_openai):
        mock_anthropic.messages.create.side_effect = RuntimeError("rate limited")

        response = await router.route("city_lookup", "sys", "u")

        assert response.provider == "openai"
        assert response.model == GPT_4O_MINI.model
        assert response.is_fallback is True
        assert mock_openai.chat.completions.create.call_args.kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_both_fail_chains_errors(self, router, mock_anthropic, mock_openai):
        primary = RuntimeError("anthropic down")
        mock_anthropic.messages.create.side_effect = primary
        mock_openai.chat.completions.create.side_effect = ConnectionError("openai down")

        with pytest.raises(ConnectionError) as exc_info:
            await router.route("city_lookup", "sys", "u")

        assert exc_info.value.__cause__ is primary

    @pytest.mark.asyncio
    async def test_no_fallback_reraises_primary(self, mock_openai):
        config = LLMConfig()
        config.override(ModelIntent.CITY_LOOKUP, CLAUDE_HAIKU)
        router = ModelRouter(openai_client=mock_openai, config=config)

        with pytest.raises(ValueError, match="Anthropic client not configured"):
            await router.route("city_lookup", "sys", "u")
        mock_openai.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_provider(self, config):
        config.override(ModelIntent.DEFAULT, OLLAMA_LLAMA.tuned(provider="carrier-pigeon"))
        router = ModelRouter(config=config)

        with pytest.raises(ValueError, match="Unsupported provider"):
            await router.route("default", "sys", "u")

    @pytest.mark.asyncio
    async def test_route_to_ollama(self, config):
        config.override(ModelIntent.DEFAULT, OLLAMA_LLAMA)
        router = ModelRouter(config=config)

        resp = MagicMock()
        resp.json.return_value = {
            "message": {"content": "local answer"},
            "prompt_eval_count": 12,
            "eval_count": 8,
        }
        client = AsyncMock()
        client.post.return_value = resp
        client.__aenter__.return_value = client

        with patch("nexus.llm.router.httpx.AsyncClient", return_value=client):
            response = await router.route("default", "sys", "u")

        assert response.text == "local answer"
        assert response.provider == "ollama"
        assert response.total_tokens == 20
        assert response.cost == 0.0
        assert client.post.call_args.args[0] == "http://localhost:11434/api/chat"
        payload = client.post.call_args.kwargs["json"]
        assert payload["stream"] is False
        assert payload["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_usage_tracking(self, router):
        await router.route("city_lookup", "sys", "a")
        await router.route("city_lookup", "sys", "b")

        assert router.call_count == 2
        expected = 2 * estimate_cost(CLAUDE_HAIKU, 100, 50)
        assert router.total_cost == pytest.approx(expected)
        assert router.get_usage_stats()["total_calls"] == 2


class TestEstimateCost:

    def test_cost_per_thousand(self):
        assert estimate_cost(CLAUDE_SONNET, 1000, 1000) == pytest.approx(0.018)

    def test_local_model_is_free(self):
        assert estimate_cost(OLLAMA_LLAMA, 5000, 5000) == 0.0
