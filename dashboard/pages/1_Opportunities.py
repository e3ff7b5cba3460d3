"""
Live Opportunities — development projects and tenders worth a look.

Shows the cached opportunity feed (sample data when the live feed is
unavailable) and streams a deep-dive analysis of a chosen project.

Run with: streamlit run dashboard/app.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# Ensure project root is on the path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")

st.set_page_config(
    page_title="Live Opportunities — Nexus",
    page_icon="◆",
    layout="wide",
)

from dashboard.theme import inject_theme_css, page_header

inject_theme_css()

from dashboard._wizard_helpers import feed_rows, stream_into
from dashboard.resources import get_services


services = get_services()

refresh = st.sidebar.button("Refresh feed")
if refresh or "opportunity_feed" not in st.session_state:
    with st.spinner("Loading opportunity feed..."):
        st.session_state.opportunity_feed = asyncio.run(services.opportunities.fetch())

feed = st.session_state.opportunity_feed

page_header("Live Opportunities", f"{len(feed.items)} projects and tenders")

if feed.is_mock_data:
    st.warning("The live feed is unavailable. Showing sample data.")

st.dataframe(feed_rows(feed), use_container_width=True, hide_index=True)

if feed.items:
    names = [item.project_name for item in feed.items]
    choice = st.selectbox("Analyse a project", names)
    item = feed.items[names.index(choice)]

    st.markdown(f"**{item.country} · {item.sector} · {item.value}**")
    st.markdown(item.summary)
    st.caption(f"Risk: {item.ai_risk_assessment}")
    st.markdown(f"[Source]({item.source_url})")

    if st.button("Generate deep-dive analysis", type="primary"):
        placeholder = st.empty()
        try:
            asyncio.run(stream_into(services.opportunities.stream_analysis(item), placeholder.markdown))
        except Exception as e:
            st.error(f"Analysis failed: {e}")
