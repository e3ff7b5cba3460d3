"""Nexus Report Wizard — guided intelligence report generation."""

__version__ = "0.3.0"
