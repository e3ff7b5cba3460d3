"""
Nexus — Report Wizard

Five-step form that commissions a regional intelligence report:

    1. Profile  → who is asking
    2. Scope    → target country, regional centre, industry
    3. Tier     → base report tier (selecting one jumps to Options)
    4. Options  → add-on analysis modules
    5. Finalize → objective and ideal partner profile, then generate

Run with: streamlit run dashboard/app.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# Ensure project root is on the path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")


# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="Report Wizard — Nexus",
    page_icon="◆",
    layout="wide",
    initial_sidebar_state="expanded",
)

from dashboard.theme import inject_theme_css, page_header, status_badge

inject_theme_css()


# ---------------------------------------------------------------------------
# Imports (after page config so they don't block rendering)
# ---------------------------------------------------------------------------

from dashboard._wizard_helpers import (
    apply_and_settle,
    estimate_total_cost,
    lookup_notice,
    request_summary,
    step_progress,
    stream_into,
    tier_card_markdown,
)
from dashboard.resources import get_config, get_services
from nexus.observability.logging_config import set_session_id
from nexus.runtime import build_controller
from nexus.services.letters import draft_outreach_letter
from nexus.services.symbiosis import (
    ChatMessage,
    SymbiosisContext,
    SymbiosisError,
    symbiosis_reply,
)
from nexus.wizard.catalog import (
    COMPANY_SIZES,
    COUNTRIES,
    INDUSTRIES,
    KEY_TECHNOLOGIES,
    MARKET_ANALYSIS_TIER_DETAILS,
    PARTNER_FINDING_TIER_DETAILS,
    REPORT_OPTIONS,
    TARGET_MARKETS,
    PartnerFindingTier,
    UserType,
)
from nexus.wizard.controller import WizardController
from nexus.wizard.errors import MissingTierError, SubmissionBlockedError
from nexus.wizard.state import LookupStatus


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

def _run(controller: WizardController, action) -> None:
    """Apply a mutation and let any city lookup it triggers finish."""
    set_session_id(controller.session_id)
    settled = asyncio.run(apply_and_settle(
        controller, action, get_config().wizard.lookup_wait_seconds,
    ))
    st.session_state.lookup_timed_out = not settled


def _controller() -> WizardController:
    if "wizard" not in st.session_state:
        controller = build_controller(get_services(), get_config())
        st.session_state.wizard = controller
        st.session_state.report = None
        st.session_state.report_request = None
        st.session_state.letter = None
        _run(controller, controller.request_city_lookup)
    return st.session_state.wizard


controller = _controller()
state = controller.state


def _index(options, value, default: int = 0) -> int:
    return list(options).index(value) if value in options else default


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

st.sidebar.title("◆ Nexus")
st.sidebar.markdown("Regional intelligence reports for government and industry.")
st.sidebar.markdown("---")

fraction, label = step_progress(state.current_step)
st.sidebar.progress(fraction, text=label)
if state.tier is not None:
    st.sidebar.caption(f"Tier: {state.tier.value}")
    st.sidebar.caption(
        f"Estimated cost: ${estimate_total_cost(state.tier, state.selected_options):,}"
    )

if st.sidebar.button("Start over", use_container_width=True):
    controller.reset()
    st.session_state.report = None
    st.session_state.report_request = None
    st.session_state.letter = None
    _run(controller, controller.request_city_lookup)
    st.rerun()

st.sidebar.markdown("---")
st.sidebar.caption(f"Session {controller.session_id[:8]}")


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

page_header("Report Wizard", label)

if controller.alert:
    st.error(controller.alert)
    controller.alert = None


# ---------------------------------------------------------------------------
# Finished report, outreach letter and Symbiosis chat
# ---------------------------------------------------------------------------

def render_symbiosis(report: str, request) -> None:
    """Follow-up chat about one finding from the finished report."""
    st.markdown("---")
    st.subheader("Nexus Symbiosis")
    topic = st.text_input("Topic", value=f"{request.tier.value}: {request.region}")
    finding = st.text_area(
        "Finding to discuss (blank for the whole report)", value="", height=120,
    )
    context = SymbiosisContext(
        topic=topic,
        original_content=finding.strip() or report,
        report_request=request,
    )

    history: list[ChatMessage] = st.session_state.setdefault("symbiosis_history", [])
    for message in history:
        with st.chat_message("assistant" if message.sender == "ai" else "user"):
            st.markdown(message.text)

    question = st.chat_input("Ask Nexus AI about this finding")
    if not question:
        return
    turn = [*history, ChatMessage(sender="user", text=question)]
    try:
        with st.spinner("Thinking..."):
            answer = asyncio.run(symbiosis_reply(get_services().router, context, turn))
    except SymbiosisError as e:
        st.error(e.message)
        return
    st.session_state.symbiosis_history = [*turn, ChatMessage(sender="ai", text=answer)]
    st.rerun()


def render_report_view() -> None:
    """Shown after a successful submission; the wizard session is already reset."""
    report = st.session_state.report
    request = st.session_state.report_request

    for field_label, value in request_summary(request):
        st.markdown(f"**{field_label}:** {value}")
    st.markdown("---")
    st.markdown(report)
    st.download_button("Download report (.md)", report, file_name="nexus_report.md")

    if isinstance(request.tier, PartnerFindingTier):
        if st.button("Draft outreach letter"):
            with st.spinner("Drafting letter..."):
                st.session_state.letter = asyncio.run(
                    draft_outreach_letter(get_services().router, request, report)
                )
        if st.session_state.get("letter"):
            st.text_area("Outreach letter", st.session_state.letter, height=320)

    render_symbiosis(report, request)

    if st.button("Start a new report", type="primary"):
        st.session_state.report = None
        st.session_state.report_request = None
        st.session_state.letter = None
        st.session_state.symbiosis_history = []
        st.rerun()


if st.session_state.get("report"):
    render_report_view()
    st.stop()


# ---------------------------------------------------------------------------
# Step 1: Profile
# ---------------------------------------------------------------------------

def render_profile() -> None:
    profile = state.profile

    user_types = [t.value for t in UserType]
    user_type = st.radio(
        "I represent",
        user_types,
        index=_index(user_types, profile.user_type.value),
        format_func=lambda v: v.replace("-", " ").title(),
        horizontal=True,
    )
    if user_type != profile.user_type.value:
        controller.select_user_type(user_type)
        st.rerun()

    controller.set_user_name(st.text_input("Your name", value=profile.user_name))

    manual = st.checkbox(
        "My organisation isn't listed", value=profile.is_manual_department,
    )
    if manual != profile.is_manual_department:
        controller.toggle_manual_department(manual)
        st.rerun()

    if profile.is_manual_department:
        department = st.text_input("Organisation", value=profile.user_department)
    else:
        choices = controller.department_choices
        department = st.selectbox(
            "Organisation", choices, index=_index(choices, profile.user_department),
        )
    controller.set_user_department(department)

    controller.set_user_country(st.selectbox(
        "Your country", COUNTRIES, index=_index(COUNTRIES, profile.user_country),
    ))


# ---------------------------------------------------------------------------
# Step 2: Scope
# ---------------------------------------------------------------------------

def render_scope() -> None:
    scope = state.scope
    lookup = controller.lookup

    country = st.selectbox(
        "Target country", COUNTRIES, index=_index(COUNTRIES, scope.target_country),
    )
    if country != scope.target_country:
        _run(controller, lambda: controller.set_target_country(country))
        st.rerun()

    col_city, col_badge = st.columns([4, 1])
    with col_badge:
        st.markdown(status_badge(lookup.status.value), unsafe_allow_html=True)
        manual_city = st.checkbox("Enter city manually", value=scope.is_manual_city)
        if manual_city != scope.is_manual_city:
            _run(controller, lambda: controller.toggle_manual_city(manual_city))
            st.rerun()

    with col_city:
        kind, message = lookup_notice(lookup)
        if kind == "warning":
            st.warning(message)
        elif kind == "info":
            st.info(message)

        if scope.is_manual_city:
            city = st.text_input("Regional city", value=scope.regional_city)
            controller.select_regional_city(city)
        elif lookup.status == LookupStatus.SUCCESS:
            city = st.selectbox(
                "Regional city",
                lookup.candidates,
                index=_index(lookup.candidates, scope.regional_city),
            )
            controller.select_regional_city(city)
        elif st.session_state.get("lookup_timed_out") and st.button("Retry lookup"):
            _run(controller, controller.request_city_lookup)
            st.rerun()

    manual_industry = st.checkbox("Industry not listed", value=scope.is_manual_industry)
    if manual_industry != scope.is_manual_industry:
        controller.toggle_manual_industry(manual_industry)
        st.rerun()

    if scope.is_manual_industry:
        controller.set_manual_industry_text(
            st.text_input("Industry focus", value=scope.manual_industry_text)
        )
    else:
        controller.set_industry(st.selectbox(
            "Industry focus", INDUSTRIES, index=_index(INDUSTRIES, scope.industry),
        ))


# ---------------------------------------------------------------------------
# Step 3: Tier
# ---------------------------------------------------------------------------

def render_tier() -> None:
    for heading, details in (
        ("Market Analysis", MARKET_ANALYSIS_TIER_DETAILS),
        ("Partner Finding", PARTNER_FINDING_TIER_DETAILS),
    ):
        st.subheader(heading)
        for col, detail in zip(st.columns(len(details)), details):
            with col:
                st.markdown(tier_card_markdown(detail))
                selected = state.tier == detail.tier
                if st.button(
                    "Selected" if selected else "Select",
                    key=f"tier_{detail.tier.name}",
                    type="primary" if selected else "secondary",
                    use_container_width=True,
                ):
                    controller.select_tier(detail.tier)
                    st.rerun()


# ---------------------------------------------------------------------------
# Step 4: Options
# ---------------------------------------------------------------------------

def render_options() -> None:
    st.caption("Add-on modules are appended to the end of the report.")
    for option in REPORT_OPTIONS:
        current = option.id in state.selected_options
        checked = st.checkbox(
            f"**{option.title}** ({option.cost}) — {option.description}",
            value=current,
            key=f"option_{option.id.value}",
        )
        if checked != current:
            controller.toggle_option(option.id)
            st.rerun()


# ---------------------------------------------------------------------------
# Step 5: Finalize
# ---------------------------------------------------------------------------

def render_finalize() -> None:
    finalize = state.finalize

    controller.set_objective(st.text_area(
        "Core objective",
        value=finalize.objective,
        placeholder="e.g. Attract a foreign partner to anchor an AgriTech cluster",
    ))

    st.markdown("**Ideal partner profile** (optional)")
    controller.set_company_size(st.selectbox(
        "Company size", COMPANY_SIZES, index=_index(COMPANY_SIZES, finalize.company_size),
    ))
    controller.set_target_markets(st.multiselect(
        "Partner's target markets", TARGET_MARKETS, default=finalize.target_markets,
    ))

    manual_tech = st.checkbox("Technologies not listed", value=finalize.is_manual_tech)
    if manual_tech != finalize.is_manual_tech:
        controller.toggle_manual_tech(manual_tech)
        st.rerun()

    if finalize.is_manual_tech:
        controller.set_manual_tech_text(st.text_input(
            "Key technologies (comma-separated)", value=finalize.manual_tech_text,
        ))
    else:
        controller.set_key_technologies(st.multiselect(
            "Key technologies", KEY_TECHNOLOGIES, default=finalize.key_technologies,
        ))


def generate_report() -> None:
    try:
        stream = controller.submit()
    except MissingTierError:
        st.rerun()
    except SubmissionBlockedError as e:
        st.warning(str(e))
        return

    request = controller.last_request
    try:
        for field_label, value in request_summary(request):
            st.markdown(f"**{field_label}:** {value}")
        st.markdown("---")

        placeholder = st.empty()
        report = asyncio.run(stream_into(stream, placeholder.markdown))
    except Exception as e:
        st.error(f"Report generation failed: {e}")
        return
    finally:
        # Streamlit reruns and stops unwind through here as well
        stream.release()
    st.session_state.report = report
    st.session_state.report_request = request
    st.session_state.letter = None
    st.session_state.symbiosis_history = []

    controller.reset()
    _run(controller, controller.request_city_lookup)
    st.rerun()


RENDERERS = {
    1: render_profile,
    2: render_scope,
    3: render_tier,
    4: render_options,
    5: render_finalize,
}

RENDERERS[state.current_step]()


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

st.markdown("---")
col_back, _, col_next = st.columns([1, 4, 1])
generate_clicked = False

with col_back:
    if st.button("← Back", disabled=state.current_step == 1, use_container_width=True):
        controller.retreat_step()
        st.rerun()

with col_next:
    if state.current_step < 5:
        if st.button(
            "Next →", disabled=not controller.can_advance, use_container_width=True,
        ):
            controller.advance_step()
            st.rerun()
    else:
        generate_clicked = st.button(
            "Generate report",
            type="primary",
            disabled=not controller.can_submit,
            use_container_width=True,
        )


if generate_clicked:
    generate_report()
