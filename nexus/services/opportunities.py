"""
Opportunity Feed — live development projects and tenders.

fetch() returns the feed from a one-hour cache, or asks the extraction
model for a fresh batch. When the model call or validation fails the
bundled mock feed is served with is_mock_data=True so the dashboard still
has something to show.

stream_analysis() streams a deep-dive briefing on one item for its country.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexus.data.mock_opportunities import MOCK_OPPORTUNITIES
from nexus.llm.cache import KeyValueCache, TTLCache
from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import ModelRouter
from nexus.llm.streaming import StreamingRouter
from nexus.services.parsing import loads_llm_json
from nexus.services.prompts import (
    DEEP_DIVE_SYSTEM_PROMPT,
    OPPORTUNITIES_SYSTEM_PROMPT,
    opportunities_prompt,
)

logger = logging.getLogger(__name__)

OPPORTUNITIES_CACHE_KEY = "live_opportunities_cache"
OPPORTUNITIES_CACHE_TTL_SECONDS = 60 * 60


class OpportunityItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_name: str
    country: str
    sector: str
    value: str
    summary: str
    source_url: str
    ai_feasibility_score: int = Field(ge=0, le=100)
    ai_risk_assessment: str


class OpportunitiesResponse(BaseModel):
    items: list[OpportunityItem] = Field(default_factory=list)
    is_mock_data: bool = False


def mock_feed() -> OpportunitiesResponse:
    return OpportunitiesResponse(
        items=[OpportunityItem(**item) for item in MOCK_OPPORTUNITIES],
        is_mock_data=True,
    )


def build_analysis_prompt(item: OpportunityItem) -> str:
    return (
        "**Intelligence Signal to Analyze:**\n"
        f"- **Project/Tender Name:** {item.project_name}\n"
        f"- **Country:** {item.country}\n"
        f"- **Sector:** {item.sector}\n"
        f"- **Value:** {item.value}\n"
        f"- **Summary:** {item.summary}\n"
        f"- **Source:** {item.source_url}\n\n"
        f"**Target Region for Analysis:** {item.country}\n\n"
        "Generate the deep-dive analysis for this signal."
    )


class OpportunityFeed:
    def __init__(
        self,
        router: ModelRouter,
        streaming: StreamingRouter,
        cache: Optional[KeyValueCache] = None,
        ttl_seconds: float = OPPORTUNITIES_CACHE_TTL_SECONDS,
    ):
        self._router = router
        self._streaming = streaming
        self._cache = cache if cache is not None else TTLCache()
        self._ttl = ttl_seconds

    async def fetch(self) -> OpportunitiesResponse:
        cached = self._cache.get(OPPORTUNITIES_CACHE_KEY)
        if isinstance(cached, OpportunitiesResponse):
            return cached.model_copy(update={"is_mock_data": False})

        try:
            response = await self._router.route(
                ModelIntent.OPPORTUNITY_FEED,
                OPPORTUNITIES_SYSTEM_PROMPT,
                opportunities_prompt(),
            )
            payload = loads_llm_json(response.text)
            feed = OpportunitiesResponse.model_validate(
                {"items": payload.get("items", []) if isinstance(payload, dict) else payload}
            )
        except Exception as e:
            logger.warning(
                "opportunities_api_failed_serving_mock",
                extra={"error": str(e)[:200]},
            )
            return mock_feed()

        self._cache.set(OPPORTUNITIES_CACHE_KEY, feed, ttl_seconds=self._ttl)
        logger.info("opportunities_fetched", extra={"count": len(feed.items)})
        return feed

    async def stream_analysis(self, item: OpportunityItem) -> AsyncIterator[str]:
        """Stream a deep-dive briefing on `item` for its country."""
        async for chunk in self._streaming.stream(
            ModelIntent.ANALYSIS,
            DEEP_DIVE_SYSTEM_PROMPT.format(region=item.country),
            build_analysis_prompt(item),
        ):
            if chunk.text:
                yield chunk.text
