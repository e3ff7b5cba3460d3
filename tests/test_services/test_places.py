"""
Tests for nexus/services/places.py — cache-first city resolution with
stale fallback.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from nexus.llm.cache import TTLCache
from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import LLMResponse
from nexus.services.places import (
    CITIES_CACHE_TTL_SECONDS,
    PlaceResolutionService,
    cities_cache_key,
)
from nexus.services.prompts import CITIES_SYSTEM_PROMPT, MAX_REGIONAL_CITIES
from nexus.wizard.errors import CityLookupError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _response(text: str) -> LLMResponse:
    return LLMResponse(text=text, provider="anthropic", model="claude-3-5-haiku-20241022")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def router():
    router = MagicMock()
    router.route = AsyncMock(return_value=_response('["Cebu City", "Davao City"]'))
    return router


@pytest.fixture
def service(router, cache):
    return PlaceResolutionService(router, cache)


class TestResolve:

    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, service, router, cache):
        cities = await service.resolve("Philippines")

        assert cities == ["Cebu City", "Davao City"]
        assert cache.get(cities_cache_key("Philippines")) == cities
        args = router.route.call_args.args
        assert args[0] == ModelIntent.CITY_LOOKUP
        assert args[1] == CITIES_SYSTEM_PROMPT
        assert '"Philippines"' in args[2]

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_api(self, service, router):
        await service.resolve("Philippines")
        await service.resolve("Philippines")
        assert router.route.await_count == 1

    @pytest.mark.asyncio
    async def test_returns_copy_of_cached_list(self, service):
        first = await service.resolve("Philippines")
        first.append("Mutated")
        assert await service.resolve("Philippines") == ["Cebu City", "Davao City"]

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, service, router, clock):
        await service.resolve("Philippines")
        clock.now += CITIES_CACHE_TTL_SECONDS + 1
        await service.resolve("Philippines")
        assert router.route.await_count == 2

    @pytest.mark.asyncio
    async def test_cache_key_is_per_country(self, service, router):
        await service.resolve("Philippines")
        await service.resolve("Vietnam")
        assert router.route.await_count == 2

    @pytest.mark.asyncio
    async def test_fenced_json_accepted(self, service, router):
        router.route.return_value = _response('```json\n["Da Nang", " Hue "]\n```')
        assert await service.resolve("Vietnam") == ["Da Nang", "Hue"]

    @pytest.mark.asyncio
    async def test_capped_at_maximum(self, service, router):
        names = [f"City {i}" for i in range(MAX_REGIONAL_CITIES + 5)]
        router.route.return_value = _response(json.dumps(names))
        assert len(await service.resolve("India")) == MAX_REGIONAL_CITIES

    @pytest.mark.asyncio
    async def test_empty_array_is_a_valid_answer(self, service, router, cache):
        router.route.return_value = _response("[]")
        assert await service.resolve("Kenya") == []
        assert cache.get(cities_cache_key("Kenya")) == []


class TestFailures:

    @pytest.mark.asyncio
    async def test_api_error_without_cache_raises(self, service, router):
        router.route.side_effect = RuntimeError("429 Too Many Requests")

        with pytest.raises(CityLookupError) as exc_info:
            await service.resolve("Japan")

        assert exc_info.value.country == "Japan"
        assert "Could not fetch cities for Japan" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_api_error_serves_stale_cache(self, service, router, clock):
        await service.resolve("Philippines")
        clock.now += CITIES_CACHE_TTL_SECONDS * 3
        router.route.side_effect = RuntimeError("down")

        assert await service.resolve("Philippines") == ["Cebu City", "Davao City"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [
        "",
        "not json",
        '{"cities": ["Cebu"]}',
        '["Cebu", 42]',
    ])
    async def test_malformed_payload_raises(self, service, router, text):
        router.route.return_value = _response(text)
        with pytest.raises(CityLookupError):
            await service.resolve("Philippines")

    @pytest.mark.asyncio
    async def test_malformed_payload_is_not_cached(self, service, router, cache):
        router.route.return_value = _response("oops")
        with pytest.raises(CityLookupError):
            await service.resolve("Philippines")
        assert cities_cache_key("Philippines") not in cache
