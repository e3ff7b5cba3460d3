"""
Process-wide dashboard resources (cached across reruns and pages).
"""

from __future__ import annotations

import streamlit as st

from nexus.config.loader import load_config
from nexus.config.schema import NexusConfig
from nexus.observability.logging_config import configure_logging
from nexus.runtime import Services, build_services, create_provider_clients


@st.cache_resource
def get_config() -> NexusConfig:
    configure_logging()
    return load_config()


@st.cache_resource
def get_services() -> Services:
    """LLM clients, routers, cache and services shared by every session."""
    anthropic_client, openai_client = create_provider_clients()
    return build_services(get_config(), anthropic_client, openai_client)
