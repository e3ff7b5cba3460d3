"""
LLM Layer — Intent-based routing, streaming and response caching.

Clients for Anthropic, OpenAI and Ollama are constructed by the caller and
passed in; nothing in this package builds a client on its own.

Modules:
- llm_config: Intent definitions, model profiles, routing tables
- router: ModelRouter — request/response calls with fallback
- streaming: StreamingRouter — async iterator token streaming
- cache: TTLCache — key-value store with expiry and stale reads
"""
