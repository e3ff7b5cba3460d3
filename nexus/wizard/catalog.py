"""
Report Wizard Catalog — the fixed enumerations the form selects from.

Tiers, add-on option modules, organisation lists, and the country /
industry / technology pick lists. Order matters: the first entry of each
organisation list is the default department for that user type, and
INDUSTRIES[4] is the default industry focus.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class UserType(str, Enum):
    """Who is commissioning the report."""
    GOVERNMENT = "government"
    NON_GOVERNMENT = "non-government"


class MarketAnalysisTier(str, Enum):
    ECONOMIC_SNAPSHOT = "Tier A: Economic Snapshot"
    COMPETITIVE_LANDSCAPE = "Tier B: Competitive Landscape"
    INVESTMENT_DEEP_DIVE = "Tier C: Investment Deep-Dive"


class PartnerFindingTier(str, Enum):
    PARTNERSHIP_BLUEPRINT = "Tier 1: Partnership Blueprint"
    TRANSFORMATION_SIMULATOR = "Tier 2: Transformation Simulator"
    VALUATION_RISK = "Tier 4: Valuation & Risk Assessment"


ReportTier = Union[MarketAnalysisTier, PartnerFindingTier]


class ReportOption(str, Enum):
    """Add-on analysis modules appended to the end of a report."""
    GEOPOLITICAL = "geopolitical"
    TALENT = "talent"
    INFRASTRUCTURE = "infrastructure"
    ESG = "esg"
    REPUTATION = "reputation"


ALL_TIERS: tuple[ReportTier, ...] = (*MarketAnalysisTier, *PartnerFindingTier)


def parse_tier(value: str | ReportTier) -> ReportTier:
    """Resolve a tier from its enum member or display value."""
    if isinstance(value, (MarketAnalysisTier, PartnerFindingTier)):
        return value
    for tier in ALL_TIERS:
        if tier.value == value or tier.name == value:
            return tier
    raise ValueError(f"Unknown report tier: {value!r}")


# ---------------------------------------------------------------------------
# Tier and option details (shown on the tier / options steps)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TierDetail:
    tier: ReportTier
    brief: str
    cost: str
    page_count: str
    key_deliverables: tuple[str, ...] = ()
    ideal_for: str = ""


@dataclass(frozen=True)
class ReportOptionDetail:
    id: ReportOption
    title: str
    description: str
    cost: str


MARKET_ANALYSIS_TIER_DETAILS: tuple[TierDetail, ...] = (
    TierDetail(
        tier=MarketAnalysisTier.ECONOMIC_SNAPSHOT,
        brief="A fast read on the region's industrial specialization.",
        cost="$1,500",
        page_count="8-12 pages",
        key_deliverables=("Location quotient benchmark", "Executive summary"),
        ideal_for="Early-stage scoping of a new sector",
    ),
    TierDetail(
        tier=MarketAnalysisTier.COMPETITIVE_LANDSCAPE,
        brief="Explains why the region is (or is not) competitive.",
        cost="$3,500",
        page_count="15-25 pages",
        key_deliverables=(
            "Location quotient benchmark",
            "Shift-share growth decomposition",
        ),
        ideal_for="Policy teams comparing regions",
    ),
    TierDetail(
        tier=MarketAnalysisTier.INVESTMENT_DEEP_DIVE,
        brief="Cluster mapping with concrete supply chain gaps.",
        cost="$7,500",
        page_count="30-45 pages",
        key_deliverables=(
            "Location quotient benchmark",
            "Shift-share growth decomposition",
            "Cluster analysis and supply chain gaps",
        ),
        ideal_for="Investment promotion agencies",
    ),
)

PARTNER_FINDING_TIER_DETAILS: tuple[TierDetail, ...] = (
    TierDetail(
        tier=PartnerFindingTier.PARTNERSHIP_BLUEPRINT,
        brief="Shortlist of foreign partners with synergy analysis.",
        cost="$4,000",
        page_count="15-20 pages",
        key_deliverables=("Matched company profiles", "Synergy analysis"),
        ideal_for="Trade missions and partner outreach",
    ),
    TierDetail(
        tier=PartnerFindingTier.TRANSFORMATION_SIMULATOR,
        brief="Partner matches plus future-cast scenarios.",
        cost="$9,000",
        page_count="30-40 pages",
        key_deliverables=(
            "Matched company profiles",
            "Two to three future-cast scenarios",
        ),
        ideal_for="Long-range regional development plans",
    ),
    TierDetail(
        tier=PartnerFindingTier.VALUATION_RISK,
        brief="Deep valuation and risk review of one top match.",
        cost="$12,000",
        page_count="25-35 pages",
        key_deliverables=("Financial health review", "Risk map"),
        ideal_for="Final due diligence before engagement",
    ),
)

TIER_DETAILS: dict[ReportTier, TierDetail] = {
    d.tier: d for d in (*MARKET_ANALYSIS_TIER_DETAILS, *PARTNER_FINDING_TIER_DETAILS)
}

REPORT_OPTIONS: tuple[ReportOptionDetail, ...] = (
    ReportOptionDetail(
        id=ReportOption.GEOPOLITICAL,
        title="Geopolitical Briefing",
        description="Relations with major powers, trade agreements and recent political events.",
        cost="+$750",
    ),
    ReportOptionDetail(
        id=ReportOption.TALENT,
        title="Talent Analysis",
        description="Labour market depth, key universities and the skills pipeline.",
        cost="+$600",
    ),
    ReportOptionDetail(
        id=ReportOption.INFRASTRUCTURE,
        title="Infrastructure Audit",
        description="Ports, airports, digital connectivity and the energy grid.",
        cost="+$600",
    ),
    ReportOptionDetail(
        id=ReportOption.ESG,
        title="ESG Report",
        description="National ESG policy, private sector initiatives and climate risk.",
        cost="+$500",
    ),
    ReportOptionDetail(
        id=ReportOption.REPUTATION,
        title="Reputational Scan",
        description="Adverse media and public sentiment over the last 12-18 months.",
        cost="+$400",
    ),
)


# ---------------------------------------------------------------------------
# Pick lists
# ---------------------------------------------------------------------------

GOVERNMENT_DEPARTMENTS: tuple[str, ...] = (
    "Department of Trade & Investment",
    "Department of Economic Development",
    "Ministry of Industry",
    "Regional Development Agency",
    "Investment Promotion Agency",
    "Department of Foreign Affairs",
)

NON_GOV_ORG_TYPES: tuple[str, ...] = (
    "Private Company",
    "Chamber of Commerce",
    "Industry Association",
    "Development Bank",
    "University / Research Institute",
    "Non-Profit Organization",
)

DEPARTMENTS_BY_USER_TYPE: dict[UserType, tuple[str, ...]] = {
    UserType.GOVERNMENT: GOVERNMENT_DEPARTMENTS,
    UserType.NON_GOVERNMENT: NON_GOV_ORG_TYPES,
}

COUNTRIES: tuple[str, ...] = (
    "Australia",
    "Brazil",
    "Canada",
    "Chile",
    "Germany",
    "India",
    "Indonesia",
    "Japan",
    "Kenya",
    "Malaysia",
    "Mexico",
    "New Zealand",
    "Philippines",
    "Singapore",
    "South Africa",
    "South Korea",
    "Thailand",
    "United Arab Emirates",
    "United Kingdom",
    "United States",
    "Vietnam",
)

INDUSTRIES: tuple[str, ...] = (
    "Agriculture & AgriTech",
    "Advanced Manufacturing & Robotics",
    "Automotive & Electric Vehicles",
    "Clean Technology & Renewable Energy",
    "Digital Infrastructure",
    "Financial Services & FinTech",
    "Healthcare & Life Sciences",
    "Logistics & Supply Chain",
    "Mining & Critical Minerals",
    "Semiconductors & Electronics",
    "Tourism & Hospitality",
)

COMPANY_SIZES: tuple[str, ...] = (
    "Any Size",
    "Startup (1-50 employees)",
    "SME (51-500 employees)",
    "Large Enterprise (501-5000 employees)",
    "Multinational (5000+ employees)",
)

KEY_TECHNOLOGIES: tuple[str, ...] = (
    "Artificial Intelligence",
    "Internet of Things",
    "Robotics & Automation",
    "Blockchain",
    "Biotechnology",
    "Advanced Materials",
    "Battery Storage",
    "Precision Agriculture",
    "Cybersecurity",
    "5G & Telecommunications",
)

TARGET_MARKETS: tuple[str, ...] = (
    "ASEAN",
    "Australia & New Zealand",
    "China",
    "European Union",
    "Japan & South Korea",
    "Middle East",
    "North America",
    "South Asia",
    "Sub-Saharan Africa",
    "Latin America",
)

WIZARD_STEP_LABELS: tuple[str, ...] = ("Profile", "Scope", "Tier", "Options", "Finalize")

DEFAULT_USER_COUNTRY = "Australia"
DEFAULT_TARGET_COUNTRY = "Philippines"
DEFAULT_INDUSTRY = INDUSTRIES[4]
