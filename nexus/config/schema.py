"""
Pydantic configuration schema for the Nexus report wizard.

config/nexus.yaml conforms to NexusConfig. Every section has defaults, so
an empty or missing file yields a working configuration. API keys are never
stored here; they come from the environment.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from nexus.wizard.catalog import (
    COUNTRIES,
    DEFAULT_TARGET_COUNTRY,
    DEFAULT_USER_COUNTRY,
)

_PROVIDERS = ("anthropic", "openai", "ollama")


# ---------------------------------------------------------------------------
# LLM
# ---------------------------------------------------------------------------

class ModelSpec(BaseModel):
    """A provider/model pair with optional sampling overrides."""
    provider: str
    model: str
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, gt=0)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in _PROVIDERS:
            raise ValueError(f"provider must be one of {_PROVIDERS}, got '{v}'")
        return v


class RouteOverride(BaseModel):
    """Replaces the default route for one intent."""
    primary: ModelSpec
    fallback: Optional[ModelSpec] = None


class LLMSettings(BaseModel):
    local_only: bool = Field(
        False, description="Route every intent to the Ollama model below"
    )
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    routes: dict[str, RouteOverride] = Field(
        default_factory=dict,
        description="Intent name (city_lookup, report, ...) → override",
    )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class CacheSettings(BaseModel):
    cities_ttl_seconds: int = Field(24 * 60 * 60, ge=0)
    opportunities_ttl_seconds: int = Field(60 * 60, ge=0)
    max_entries: int = Field(500, gt=0)


# ---------------------------------------------------------------------------
# Wizard
# ---------------------------------------------------------------------------

class WizardSettings(BaseModel):
    debounce_seconds: float = Field(
        0.1, ge=0.0, description="Quiet period before a city lookup is issued"
    )
    lookup_wait_seconds: float = Field(
        30.0, gt=0.0, description="How long the UI waits on a lookup per interaction"
    )
    default_user_country: str = DEFAULT_USER_COUNTRY
    default_target_country: str = DEFAULT_TARGET_COUNTRY

    @field_validator("default_user_country", "default_target_country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        if v not in COUNTRIES:
            raise ValueError(f"Unknown country '{v}'")
        return v


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

class NexusConfig(BaseModel):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    wizard: WizardSettings = Field(default_factory=WizardSettings)
