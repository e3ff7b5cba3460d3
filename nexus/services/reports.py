"""
Report Generation Service — ReportRequest → streamed report text.

The user prompt carries the tier, region and industry, the ideal partner
profile (only when key technologies were given), the objective, and the
tier and option directives. Text is streamed through the reasoning route
of StreamingRouter; stats-only chunks are not passed on.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from nexus.llm.llm_config import ModelIntent
from nexus.llm.streaming import StreamingRouter
from nexus.services.prompts import (
    REPORT_SYSTEM_PROMPT,
    options_directive,
    tier_directive,
)
from nexus.wizard.assembler import ReportRequest

logger = logging.getLogger(__name__)


def build_report_prompt(request: ReportRequest) -> str:
    lines = [
        f"**Base Report Tier:** {request.tier.value}",
        f"**Target Region/Country:** {request.region}",
        f"**Industry for Analysis:** {request.industry}",
    ]

    if request.has_partner_profile:
        lines += [
            "**Ideal Foreign Partner Profile:**",
            f"- Company Size: {request.company_size}",
            f"- Key Technologies/Capabilities: {', '.join(request.key_technologies)}",
            f"- Company's Target Markets: {', '.join(request.target_markets)}",
        ]

    lines += [
        "",
        f"**Requested By:** {request.user_name or 'Unnamed'}, "
        f"{request.user_department} ({request.user_country})",
        f"**User's Core Objective:** {request.objective}",
        "",
        f"**Tier-Specific Directive:** {tier_directive(request.tier)}",
        f"**Options Directive:** {options_directive(request.selected_options)}",
        "",
        "**Your Task:** Generate the requested report, following every "
        "instruction in your system prompt including NSIL v7.0 markup.",
    ]
    return "\n".join(lines)


class ReportGenerationService:
    """Implements the ReportGenerator protocol used by the wizard."""

    def __init__(self, router: StreamingRouter):
        self._router = router

    async def generate(self, request: ReportRequest) -> AsyncIterator[str]:
        logger.info(
            "report_generation_started",
            extra={"tier": request.tier.value, "region": request.region},
        )
        async for chunk in self._router.stream(
            ModelIntent.REPORT,
            REPORT_SYSTEM_PROMPT,
            build_report_prompt(request),
        ):
            if chunk.text:
                yield chunk.text
