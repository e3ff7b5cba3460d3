"""
Report Request Assembler — WizardState in, immutable ReportRequest out.

Pure transform: no I/O and no retries. The only precondition checked here
is a selected tier; field completeness is gated upstream by the
controller (empty objective disables submission).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from nexus.wizard.catalog import ReportOption, ReportTier, UserType
from nexus.wizard.errors import PreconditionError
from nexus.wizard.state import WizardState


class ReportRequest(BaseModel):
    """Flat snapshot handed to the report generation service."""

    model_config = ConfigDict(frozen=True)

    user_name: str
    user_type: UserType
    user_department: str
    user_country: str
    objective: str
    industry: str
    region: str
    tier: ReportTier
    selected_options: tuple[ReportOption, ...] = ()
    company_size: str = ""
    key_technologies: tuple[str, ...] = Field(default=())
    target_markets: tuple[str, ...] = Field(default=())

    @property
    def has_partner_profile(self) -> bool:
        return len(self.key_technologies) > 0


def parse_manual_list(text: str) -> list[str]:
    """
    Split comma-separated free text into entries.

    Entries are stripped and empty ones dropped. Order and duplicates are
    kept as typed.
    """
    return [part.strip() for part in text.split(",") if part.strip()]


def resolve_industry(state: WizardState) -> str:
    scope = state.scope
    return scope.manual_industry_text if scope.is_manual_industry else scope.industry


def resolve_region(state: WizardState) -> str:
    scope = state.scope
    return f"{scope.regional_city}, {scope.target_country}"


def resolve_key_technologies(state: WizardState) -> list[str]:
    finalize = state.finalize
    if finalize.is_manual_tech:
        return parse_manual_list(finalize.manual_tech_text)
    return list(finalize.key_technologies)


def assemble_request(state: WizardState) -> ReportRequest:
    """
    Build the ReportRequest for a submission.

    Raises:
        PreconditionError: If no tier has been selected.
    """
    if state.tier is None:
        raise PreconditionError("Cannot assemble a report request without a tier")

    profile = state.profile
    finalize = state.finalize

    return ReportRequest(
        user_name=profile.user_name,
        user_type=profile.user_type,
        user_department=profile.user_department,
        user_country=profile.user_country,
        objective=finalize.objective,
        industry=resolve_industry(state),
        region=resolve_region(state),
        tier=state.tier,
        selected_options=tuple(state.selected_options),
        company_size=finalize.company_size,
        key_technologies=tuple(resolve_key_technologies(state)),
        target_markets=tuple(finalize.target_markets),
    )
