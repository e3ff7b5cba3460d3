"""
Wizard state — the mutable field groups collected across the five steps.

WizardState is owned exclusively by the WizardController. The lookup
resolver only writes into RegionalLookupState plus the two scope fields it
is allowed to touch (regional_city auto-select and the forced manual-city
fallback).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nexus.wizard.catalog import (
    COMPANY_SIZES,
    DEFAULT_INDUSTRY,
    DEFAULT_TARGET_COUNTRY,
    DEFAULT_USER_COUNTRY,
    GOVERNMENT_DEPARTMENTS,
    ReportOption,
    ReportTier,
    UserType,
)

FIRST_STEP = 1
LAST_STEP = 5
TIER_STEP = 3
OPTIONS_STEP = 4


class LookupStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ProfileFields:
    """Step 1: who is commissioning the report."""
    user_type: UserType = UserType.GOVERNMENT
    user_name: str = ""
    user_department: str = GOVERNMENT_DEPARTMENTS[0]
    user_country: str = DEFAULT_USER_COUNTRY
    is_manual_department: bool = False


@dataclass
class ScopeFields:
    """Step 2: geographic and industrial focus."""
    target_country: str = DEFAULT_TARGET_COUNTRY
    regional_city: str = ""
    is_manual_city: bool = False
    industry: str = DEFAULT_INDUSTRY
    is_manual_industry: bool = False
    manual_industry_text: str = ""


@dataclass
class FinalizeFields:
    """Step 5: objective and the optional ideal-partner profile."""
    objective: str = ""
    company_size: str = COMPANY_SIZES[0]
    target_markets: list[str] = field(default_factory=list)
    key_technologies: list[str] = field(default_factory=list)
    is_manual_tech: bool = False
    manual_tech_text: str = ""


@dataclass
class WizardState:
    current_step: int = FIRST_STEP
    profile: ProfileFields = field(default_factory=ProfileFields)
    scope: ScopeFields = field(default_factory=ScopeFields)
    tier: Optional[ReportTier] = None
    # Insertion-ordered; toggled, never replaced wholesale
    selected_options: list[ReportOption] = field(default_factory=list)
    finalize: FinalizeFields = field(default_factory=FinalizeFields)

    @property
    def has_objective(self) -> bool:
        return bool(self.finalize.objective.strip())


@dataclass
class RegionalLookupState:
    """Resolver-owned view of the city lookup for the current country."""
    status: LookupStatus = LookupStatus.IDLE
    country: str = ""
    candidates: tuple[str, ...] = ()
    error_message: Optional[str] = None
    request_epoch: int = 0

    @property
    def is_loading(self) -> bool:
        return self.status == LookupStatus.LOADING
