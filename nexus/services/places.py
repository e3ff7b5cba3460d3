"""
Place Resolution Service — country name → regional centres.

Cache-first: a fresh cached list is returned without an API call. On a
miss the extraction model is asked for a JSON array of names, which is
cached for CITIES_CACHE_TTL_SECONDS. If the call (or its parsing) fails,
any cached list for the country is served regardless of age; with nothing
cached, CityLookupError is raised for the wizard to show.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from nexus.llm.cache import KeyValueCache, TTLCache
from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import ModelRouter
from nexus.services.parsing import loads_llm_json
from nexus.services.prompts import (
    CITIES_SYSTEM_PROMPT,
    MAX_REGIONAL_CITIES,
    cities_prompt,
)
from nexus.wizard.errors import CityLookupError

logger = logging.getLogger(__name__)

CITIES_CACHE_TTL_SECONDS = 24 * 60 * 60


def cities_cache_key(country: str) -> str:
    return f"cities_cache_{country}"


def _validate_cities(payload: Any) -> list[str]:
    if not isinstance(payload, list):
        raise ValueError("Model returned non-array data for cities")
    if not all(isinstance(item, str) for item in payload):
        raise ValueError("Model returned non-string entries for cities")
    cities = [item.strip() for item in payload if item.strip()]
    return cities[:MAX_REGIONAL_CITIES]


class PlaceResolutionService:
    """Implements the PlaceResolver protocol used by the wizard."""

    def __init__(
        self,
        router: ModelRouter,
        cache: Optional[KeyValueCache] = None,
        ttl_seconds: float = CITIES_CACHE_TTL_SECONDS,
    ):
        self._router = router
        self._cache = cache if cache is not None else TTLCache()
        self._ttl = ttl_seconds

    async def resolve(self, country: str) -> list[str]:
        """
        Regional cities for `country`.

        Raises:
            CityLookupError: API failure with no cached list to fall back on.
        """
        key = cities_cache_key(country)

        cached = self._cache.get(key)
        if isinstance(cached, list):
            return list(cached)

        try:
            response = await self._router.route(
                ModelIntent.CITY_LOOKUP,
                CITIES_SYSTEM_PROMPT,
                cities_prompt(country),
            )
            cities = _validate_cities(loads_llm_json(response.text))
        except Exception as e:
            logger.warning(
                "cities_api_failed",
                extra={"country": country, "error": str(e)[:200]},
            )
            stale = self._cache.get_stale(key)
            if isinstance(stale, list):
                logger.info(
                    "cities_served_stale",
                    extra={"country": country, "count": len(stale)},
                )
                return list(stale)
            raise CityLookupError(
                f"Could not fetch cities for {country}. "
                f"The AI service may be unavailable or rate-limited.",
                country=country,
            ) from e

        self._cache.set(key, cities, ttl_seconds=self._ttl)
        logger.info(
            "cities_fetched",
            extra={"country": country, "count": len(cities)},
        )
        return list(cities)
