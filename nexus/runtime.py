"""
Runtime wiring — config → LLM clients → services → wizard controller.

Entry points (main.py, dashboard/app.py) construct provider clients here
and pass them down; no module keeps a client of its own.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from nexus.config.schema import LLMSettings, ModelSpec, NexusConfig
from nexus.llm.cache import TTLCache
from nexus.llm.llm_config import LLMConfig, ModelIntent, ModelProfile
from nexus.llm.router import ModelRouter
from nexus.llm.streaming import StreamingRouter
from nexus.services.opportunities import OpportunityFeed
from nexus.services.places import PlaceResolutionService
from nexus.services.reports import ReportGenerationService
from nexus.wizard.controller import WizardController

logger = logging.getLogger(__name__)


def _profile(spec: ModelSpec, settings: LLMSettings) -> ModelProfile:
    changes: dict[str, Any] = {}
    if spec.temperature is not None:
        changes["temperature"] = spec.temperature
    if spec.max_tokens is not None:
        changes["max_tokens"] = spec.max_tokens
    if spec.provider == "ollama":
        changes["base_url"] = settings.ollama_base_url
    return ModelProfile(provider=spec.provider, model=spec.model, **changes)


def build_llm_config(settings: LLMSettings) -> LLMConfig:
    """Apply local-only mode and per-intent overrides to the default routing."""
    llm_config = LLMConfig()

    if settings.local_only:
        llm_config.use_local_model(settings.ollama_model, settings.ollama_base_url)

    for intent_name, override in settings.routes.items():
        try:
            intent = ModelIntent(intent_name)
        except ValueError as e:
            raise ValueError(f"Unknown LLM intent in config: '{intent_name}'") from e
        llm_config.override(
            intent,
            primary=_profile(override.primary, settings),
            fallback=_profile(override.fallback, settings) if override.fallback else None,
        )

    return llm_config


def create_provider_clients() -> tuple[Any, Any]:
    """
    Build Anthropic/OpenAI clients for whichever API keys are set.

    Returns (anthropic_client, openai_client); either may be None.
    """
    anthropic_client = None
    openai_client = None

    if os.environ.get("ANTHROPIC_API_KEY", "").strip():
        from anthropic import Anthropic

        anthropic_client = Anthropic()
    if os.environ.get("OPENAI_API_KEY", "").strip():
        from openai import OpenAI

        openai_client = OpenAI()

    logger.info(
        "provider_clients_created",
        extra={
            "anthropic": anthropic_client is not None,
            "openai": openai_client is not None,
        },
    )
    return anthropic_client, openai_client


@dataclass
class Services:
    router: ModelRouter
    streaming: StreamingRouter
    cache: TTLCache
    places: PlaceResolutionService
    reports: ReportGenerationService
    opportunities: OpportunityFeed


def build_services(
    config: NexusConfig,
    anthropic_client: Any = None,
    openai_client: Any = None,
) -> Services:
    llm_config = build_llm_config(config.llm)
    router = ModelRouter(
        anthropic_client=anthropic_client,
        openai_client=openai_client,
        ollama_base_url=config.llm.ollama_base_url,
        config=llm_config,
    )
    streaming = StreamingRouter(
        anthropic_client=anthropic_client,
        openai_client=openai_client,
        ollama_base_url=config.llm.ollama_base_url,
        config=llm_config,
    )
    cache = TTLCache(max_entries=config.cache.max_entries)

    return Services(
        router=router,
        streaming=streaming,
        cache=cache,
        places=PlaceResolutionService(
            router, cache, ttl_seconds=config.cache.cities_ttl_seconds,
        ),
        reports=ReportGenerationService(streaming),
        opportunities=OpportunityFeed(
            router, streaming, cache,
            ttl_seconds=config.cache.opportunities_ttl_seconds,
        ),
    )


def build_controller(
    services: Services,
    config: NexusConfig,
    session_id: Optional[str] = None,
) -> WizardController:
    """
    New wizard session with the configured defaults applied.

    The initial city lookup is not scheduled; call
    controller.request_city_lookup() from inside the event loop.
    """
    return WizardController(
        services.places,
        services.reports,
        debounce_seconds=config.wizard.debounce_seconds,
        session_id=session_id,
        user_country=config.wizard.default_user_country,
        target_country=config.wizard.default_target_country,
    )
