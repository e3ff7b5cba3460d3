"""
Report Wizard — the five-step form that turns user input into a report request.

1. Profile  — who is commissioning the report
2. Scope    — target country, regional centre, industry focus
3. Tier     — base report tier (jumps straight to Options)
4. Options  — add-on analysis modules
5. Finalize — objective and ideal partner profile, then submit

Usage:
    from nexus.wizard import WizardController

    controller = WizardController(places=place_service, reports=report_service)
"""

from nexus.wizard.assembler import ReportRequest, assemble_request
from nexus.wizard.controller import WizardController
from nexus.wizard.lookup import RegionalLookupResolver
from nexus.wizard.state import LookupStatus, WizardState

__all__ = [
    "LookupStatus",
    "RegionalLookupResolver",
    "ReportRequest",
    "WizardController",
    "WizardState",
    "assemble_request",
]
