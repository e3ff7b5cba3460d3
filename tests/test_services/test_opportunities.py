"""
Tests for nexus/services/opportunities.py — cached feed, mock fallback
and deep-dive streaming.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from nexus.data.mock_opportunities import MOCK_OPPORTUNITIES
from nexus.llm.cache import TTLCache
from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import LLMResponse
from nexus.llm.streaming import StreamChunk
from nexus.services.opportunities import (
    OPPORTUNITIES_CACHE_KEY,
    OpportunitiesResponse,
    OpportunityFeed,
    OpportunityItem,
    build_analysis_prompt,
    mock_feed,
)
from nexus.services.prompts import DEEP_DIVE_SYSTEM_PROMPT

ITEM = {
    "project_name": "Da Nang Smart Port Expansion",
    "country": "Vietnam",
    "sector": "Logistics & Supply Chain",
    "value": "$420 Million",
    "summary": "Automated container terminal and rail link.",
    "source_url": "https://www.adb.org/projects",
    "ai_feasibility_score": 72,
    "ai_risk_assessment": "Permitting timelines are the main risk.",
}


def _response(payload) -> LLMResponse:
    return LLMResponse(text=json.dumps(payload), provider="anthropic", model="haiku")


class FakeStreamingRouter:
    def __init__(self, chunks):
        self.chunks = chunks
        self.calls = []

    async def stream(self, intent, system_prompt, user_prompt, **kwargs):
        self.calls.append((intent, system_prompt, user_prompt))
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def router():
    router = MagicMock()
    router.route = AsyncMock(return_value=_response({"items": [ITEM]}))
    return router


@pytest.fixture
def cache():
    return TTLCache()


@pytest.fixture
def feed(router, cache):
    return OpportunityFeed(router, FakeStreamingRouter([]), cache)


class TestModels:

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            OpportunityItem(**{**ITEM, "ai_feasibility_score": 101})

    def test_mock_feed(self):
        mock = mock_feed()
        assert mock.is_mock_data is True
        assert len(mock.items) == len(MOCK_OPPORTUNITIES)
        assert mock.items[0].country == "Philippines"

    def test_analysis_prompt(self):
        prompt = build_analysis_prompt(OpportunityItem(**ITEM))
        assert "Da Nang Smart Port Expansion" in prompt
        assert "**Target Region for Analysis:** Vietnam" in prompt


class TestFetch:

    @pytest.mark.asyncio
    async def test_live_feed(self, feed, router):
        result = await feed.fetch()

        assert result.is_mock_data is False
        assert [i.project_name for i in result.items] == ["Da Nang Smart Port Expansion"]
        assert router.route.call_args.args[0] == ModelIntent.OPPORTUNITY_FEED

    @pytest.mark.asyncio
    async def test_bare_array_accepted(self, feed, router):
        router.route.return_value = _response([ITEM, ITEM])
        assert len((await feed.fetch()).items) == 2

    @pytest.mark.asyncio
    async def test_cached(self, feed, router, cache):
        await feed.fetch()
        result = await feed.fetch()

        assert router.route.await_count == 1
        assert result.is_mock_data is False
        assert isinstance(cache.get(OPPORTUNITIES_CACHE_KEY), OpportunitiesResponse)

    @pytest.mark.asyncio
    async def test_api_failure_serves_mock(self, feed, router, cache):
        router.route.side_effect = RuntimeError("quota exceeded")

        result = await feed.fetch()

        assert result.is_mock_data is True
        assert len(result.items) == len(MOCK_OPPORTUNITIES)
        assert OPPORTUNITIES_CACHE_KEY not in cache

    @pytest.mark.asyncio
    async def test_invalid_items_serve_mock(self, feed, router):
        router.route.return_value = _response({"items": [{"project_name": "Half"}]})
        assert (await feed.fetch()).is_mock_data is True


class TestStreamAnalysis:

    @pytest.mark.asyncio
    async def test_streams_for_item_country(self, router):
        streaming = FakeStreamingRouter([
            StreamChunk(text="Port throughput "),
            StreamChunk(text="is rising."),
            StreamChunk(text="", is_final=True),
        ])
        feed = OpportunityFeed(router, streaming, TTLCache())
        item = OpportunityItem(**ITEM)

        text = "".join([c async for c in feed.stream_analysis(item)])

        assert text == "Port throughput is rising."
        intent, system_prompt, user_prompt = streaming.calls[0]
        assert intent == ModelIntent.ANALYSIS
        assert system_prompt == DEEP_DIVE_SYSTEM_PROMPT.format(region="Vietnam")
        assert user_prompt == build_analysis_prompt(item)
