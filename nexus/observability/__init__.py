"""
Observability for the Nexus report wizard.

Structured stdlib logging with a per-session context; see logging_config.
"""
