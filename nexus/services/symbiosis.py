"""
Nexus Symbiosis — follow-up chat about one finding from a report.

The caller keeps the conversation; every turn sends the finding, the
report it came from and the full history, and gets the next AI message
back.

Usage:
    context = SymbiosisContext(
        topic="Supply chain gap: cold storage",
        original_content="Cebu lacks certified cold-chain capacity...",
        report_request=request,
    )
    history = [ChatMessage(sender="user", text="Who could fill this gap?")]
    reply = await symbiosis_reply(router, context, history)
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from nexus.llm.llm_config import ModelIntent
from nexus.llm.router import ModelRouter
from nexus.services.prompts import SYMBIOSIS_SYSTEM_PROMPT
from nexus.wizard.assembler import ReportRequest

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Failed to get response from Symbiosis AI."
AI_SPEAKER = "Nexus AI"
USER_SPEAKER = "User"


class SymbiosisContext(BaseModel):
    """The finding a conversation is about."""

    model_config = ConfigDict(frozen=True)

    topic: str
    original_content: str
    report_request: Optional[ReportRequest] = None


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender: Literal["user", "ai"]
    text: str


class SymbiosisError(RuntimeError):
    """A chat turn failed; `message` is safe to show the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def build_symbiosis_prompt(context: SymbiosisContext, history: Sequence[ChatMessage]) -> str:
    lines = [
        "**Initial Context:**",
        f'- Topic: "{context.topic}"',
        f'- Original Finding: "{context.original_content}"',
    ]
    if context.report_request is not None:
        request = context.report_request
        lines.append(f"- From Report On: {request.region} / {request.industry}")

    lines += ["", "**Conversation History:**"]
    for message in history:
        speaker = AI_SPEAKER if message.sender == "ai" else USER_SPEAKER
        lines.append(f"- {speaker}: {message.text}")

    lines += ["", f"Based on this history, provide the next response as {AI_SPEAKER}."]
    return "\n".join(lines)


async def symbiosis_reply(
    router: ModelRouter,
    context: SymbiosisContext,
    history: Sequence[ChatMessage],
) -> str:
    """
    Next AI message in a Symbiosis conversation.

    Raises:
        SymbiosisError: The model call failed on every route. Carries the
            underlying error's message, or a generic one when it has none.
    """
    try:
        response = await router.route(
            ModelIntent.SYMBIOSIS,
            SYMBIOSIS_SYSTEM_PROMPT,
            build_symbiosis_prompt(context, history),
        )
    except Exception as e:
        logger.error(
            "symbiosis_reply_failed",
            extra={"topic": context.topic[:80], "turns": len(history), "error": str(e)[:200]},
        )
        raise SymbiosisError(str(e) or DEFAULT_FAILURE_MESSAGE) from e

    logger.info(
        "symbiosis_replied",
        extra={"topic": context.topic[:80], "turns": len(history), "length": len(response.text)},
    )
    return response.text.strip()
