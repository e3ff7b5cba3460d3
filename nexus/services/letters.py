"""Outreach letter drafting from a finished matchmaking report."""

from __future__ import annotations

import logging

from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import ModelRouter
from nexus.services.prompts import LETTER_SYSTEM_PROMPT
from nexus.wizard.assembler import ReportRequest

logger = logging.getLogger(__name__)


def build_letter_prompt(request: ReportRequest, report_content: str) -> str:
    return (
        "**Letter Generation Request:**\n\n"
        "**User Details:**\n"
        f"- Name: {request.user_name}\n"
        f"- Department: {request.user_department}\n"
        f"- Country: {request.user_country}\n\n"
        "**Full Matchmaking Report Content:**\n"
        f"```xml\n{report_content}\n```\n\n"
        "Draft the outreach letter from these details and the report above."
    )


async def draft_outreach_letter(
    router: ModelRouter,
    request: ReportRequest,
    report_content: str,
) -> str:
    """
    Draft an introductory letter from the requester to a matched company.

    Raises:
        ValueError: If the report content is empty.
    """
    if not report_content.strip():
        raise ValueError("Cannot draft an outreach letter without report content")

    response = await router.route(
        ModelIntent.OUTREACH_LETTER,
        LETTER_SYSTEM_PROMPT,
        build_letter_prompt(request, report_content),
    )
    logger.info(
        "outreach_letter_drafted",
        extra={"region": request.region, "length": len(response.text)},
    )
    return response.text.strip()
