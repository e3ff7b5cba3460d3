"""
Nexus — Dashboard theme.

Dark palette, CSS injection and a few small HTML components shared by the
wizard and opportunity pages.
"""

from __future__ import annotations

import streamlit as st

# ---------------------------------------------------------------------------
# Color Palette
# ---------------------------------------------------------------------------

COLORS = {
    "bg_primary": "#0A0E17",
    "bg_card": "#1A1F2E",
    "accent_primary": "#6366F1",
    "accent_secondary": "#818CF8",
    "status_green": "#10B981",
    "status_yellow": "#F59E0B",
    "status_red": "#EF4444",
    "status_blue": "#3B82F6",
    "status_gray": "#6B7280",
    "text_primary": "#F1F5F9",
    "text_secondary": "#94A3B8",
    "border_default": "rgba(255, 255, 255, 0.1)",
}

# Lookup status → badge
STATUS_CONFIG = {
    "idle": {"icon": "○", "color": COLORS["status_gray"], "label": "MANUAL"},
    "loading": {"icon": "◌", "color": COLORS["status_blue"], "label": "LOOKING UP"},
    "success": {"icon": "✓", "color": COLORS["status_green"], "label": "RESOLVED"},
    "error": {"icon": "✕", "color": COLORS["status_yellow"], "label": "MANUAL ENTRY"},
}


# ---------------------------------------------------------------------------
# CSS Injection
# ---------------------------------------------------------------------------

def inject_theme_css() -> None:
    st.markdown(
        f"""
        <style>
        .stApp {{ background: {COLORS["bg_primary"]}; color: {COLORS["text_primary"]}; }}
        .nx-page-title {{ font-size: 1.8rem; font-weight: 700; margin-bottom: 0; }}
        .nx-page-subtitle {{ color: {COLORS["text_secondary"]}; margin-top: 0.2rem; }}
        .nx-card {{
            background: {COLORS["bg_card"]};
            border: 1px solid {COLORS["border_default"]};
            border-radius: 10px;
            padding: 1rem 1.2rem;
        }}
        .nx-badge {{
            display: inline-block; padding: 2px 8px; border-radius: 999px;
            font-size: 0.72rem; font-weight: 600; letter-spacing: 0.04em;
        }}
        </style>
        """,
        unsafe_allow_html=True,
    )


# ---------------------------------------------------------------------------
# Reusable Components
# ---------------------------------------------------------------------------

def page_header(title: str, subtitle: str = "") -> None:
    html = f'<div><h1 class="nx-page-title">{title}</h1>'
    if subtitle:
        html += f'<p class="nx-page-subtitle">{subtitle}</p>'
    html += "</div>"
    st.markdown(html, unsafe_allow_html=True)


def status_badge(status: str) -> str:
    """Return HTML for a lookup status badge."""
    config = STATUS_CONFIG.get(status, STATUS_CONFIG["idle"])
    return (
        f'<span class="nx-badge" style="background:{config["color"]}22; '
        f'color:{config["color"]};">{config["icon"]} {config["label"]}</span>'
    )
