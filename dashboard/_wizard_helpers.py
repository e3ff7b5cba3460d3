"""
Extracted helpers for the report wizard page.

Separated from the Streamlit page so they can be unit-tested
without importing streamlit (which requires a running server).
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, AsyncIterator, Callable, Iterable, Optional

from nexus.services.opportunities import OpportunitiesResponse
from nexus.wizard.assembler import ReportRequest
from nexus.wizard.catalog import (
    REPORT_OPTIONS,
    TIER_DETAILS,
    WIZARD_STEP_LABELS,
    ReportOption,
    ReportTier,
    TierDetail,
)
from nexus.wizard.controller import WizardController
from nexus.wizard.state import LookupStatus, RegionalLookupState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event loop bridging
# ---------------------------------------------------------------------------

async def apply_and_settle(
    controller: WizardController,
    action: Callable[[], Any],
    wait_seconds: float,
) -> bool:
    """
    Run a controller mutation, then wait for any lookup it scheduled.

    Streamlit reruns the script per interaction, so each interaction gets
    its own event loop; the lookup must finish inside it. Returns False if
    the lookup was still loading after `wait_seconds` (it is cancelled and
    the UI keeps showing the loading state until the user retries).
    """
    action()
    try:
        await asyncio.wait_for(controller.settle_lookup(), wait_seconds)
    except asyncio.TimeoutError:
        controller.resolver.cancel_all()
        logger.warning(
            "city_lookup_wait_exceeded",
            extra={
                "session_id": controller.session_id,
                "country": controller.state.scope.target_country,
            },
        )
        return False
    return True


async def stream_into(
    stream: AsyncIterator[str],
    render: Callable[[str], Any],
) -> str:
    """
    Consume a text stream, calling `render` with the text so far.

    The stream is closed on the way out, also when `render` raises.
    """
    parts: list[str] = []
    try:
        async for text in stream:
            parts.append(text)
            render("".join(parts))
    finally:
        close = getattr(stream, "aclose", None)
        if close is not None:
            await close()
    return "".join(parts)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def step_progress(step: int) -> tuple[float, str]:
    """(fraction 0.0-1.0, "Step n of 5 — Label") for the progress bar."""
    total = len(WIZARD_STEP_LABELS)
    step = max(1, min(step, total))
    return step / total, f"Step {step} of {total} — {WIZARD_STEP_LABELS[step - 1]}"


def lookup_notice(lookup: RegionalLookupState) -> tuple[Optional[str], str]:
    """
    Map lookup state to a Streamlit notice.

    Returns (kind, message) where kind is "info", "success", "warning" or
    None when nothing should be shown.
    """
    if lookup.status == LookupStatus.LOADING:
        return "info", f"Finding regional centres in {lookup.country}..."
    if lookup.status == LookupStatus.ERROR:
        return "warning", lookup.error_message or "City lookup failed."
    if lookup.status == LookupStatus.SUCCESS:
        n = len(lookup.candidates)
        return "success", f"{n} regional centre{'s' if n != 1 else ''} found"
    return None, ""


def tier_card_markdown(detail: TierDetail) -> str:
    lines = [
        f"**{detail.tier.value}**",
        "",
        detail.brief,
        "",
        f"*{detail.cost} · {detail.page_count}*",
    ]
    if detail.key_deliverables:
        lines.append("")
        lines += [f"- {item}" for item in detail.key_deliverables]
    if detail.ideal_for:
        lines += ["", f"Ideal for: {detail.ideal_for}"]
    return "\n".join(lines)


_COST_DIGITS = re.compile(r"[\d,]+")


def parse_cost(cost: str) -> int:
    """Whole-dollar amount from a display cost like "$1,500" or "+$750"."""
    match = _COST_DIGITS.search(cost)
    if not match:
        return 0
    return int(match.group().replace(",", "") or 0)


def estimate_total_cost(
    tier: Optional[ReportTier],
    options: Iterable[ReportOption],
) -> int:
    total = parse_cost(TIER_DETAILS[tier].cost) if tier is not None else 0
    option_costs = {o.id: parse_cost(o.cost) for o in REPORT_OPTIONS}
    return total + sum(option_costs[o] for o in options)


def request_summary(request: ReportRequest) -> list[tuple[str, str]]:
    """Label/value rows shown above the streamed report."""
    rows = [
        ("Prepared for", f"{request.user_name or 'Unnamed'}, {request.user_department}"),
        ("Tier", request.tier.value),
        ("Region", request.region),
        ("Industry", request.industry),
        ("Modules", ", ".join(o.value for o in request.selected_options) or "None"),
    ]
    if request.has_partner_profile:
        rows.append(("Partner technologies", ", ".join(request.key_technologies)))
    return rows


def feed_rows(feed: OpportunitiesResponse) -> list[dict[str, Any]]:
    """Flatten the opportunity feed for st.dataframe."""
    return [
        {
            "Project": item.project_name,
            "Country": item.country,
            "Sector": item.sector,
            "Value": item.value,
            "Feasibility": item.ai_feasibility_score,
        }
        for item in sorted(
            feed.items, key=lambda i: i.ai_feasibility_score, reverse=True
        )
    ]
