"""
Wizard Controller — the five-step report wizard state machine.

Steps: 1 Profile → 2 Scope → 3 Tier → 4 Options → 5 Finalize.

Transitions:
- advance_step(): +1, capped at 5. Blocked on step 3 until a tier is
  chosen, and on step 2 while an automatic city lookup is loading.
- retreat_step(): -1, floored at 1.
- select_tier(): jumps straight to step 4 from wherever the user is.
- submit(): only from step 5 with a non-empty objective and no other
  submission in flight. Does not move the step.

All mutations are synchronous. The controller hands country changes to the
RegionalLookupResolver, which is the only asynchronous piece; methods that
may schedule a lookup must therefore be called inside a running event loop
when automatic lookup is active.

Usage:
    controller = WizardController(places=place_service, reports=report_service)
    controller.request_city_lookup()
    await controller.settle_lookup()
    ...
    controller.select_tier(MarketAnalysisTier.ECONOMIC_SNAPSHOT)
    controller.advance_step()
    controller.set_objective("Grow the regional AgriTech cluster")
    async for chunk in controller.submit():
        print(chunk, end="")
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, AsyncIterator, Callable, Iterable, Optional, Protocol

from nexus.wizard.assembler import ReportRequest, assemble_request
from nexus.wizard.catalog import (
    COMPANY_SIZES,
    DEFAULT_TARGET_COUNTRY,
    DEFAULT_USER_COUNTRY,
    DEPARTMENTS_BY_USER_TYPE,
    INDUSTRIES,
    KEY_TECHNOLOGIES,
    TARGET_MARKETS,
    ReportOption,
    ReportTier,
    UserType,
    parse_tier,
)
from nexus.wizard.errors import MissingTierError, SubmissionBlockedError
from nexus.wizard.lookup import (
    DEFAULT_DEBOUNCE_SECONDS,
    PlaceResolver,
    RegionalLookupResolver,
)
from nexus.wizard.state import (
    FIRST_STEP,
    LAST_STEP,
    OPTIONS_STEP,
    TIER_STEP,
    RegionalLookupState,
    WizardState,
)

logger = logging.getLogger(__name__)

SCOPE_STEP = 2
MISSING_TIER_ALERT = "An error occurred. Please restart the process."


class ReportGenerator(Protocol):
    """Anything that can stream a report for an assembled request."""

    def generate(self, request: ReportRequest) -> AsyncIterator[str]:
        ...


class ReportStream:
    """
    Report text for one submission.

    Holds the controller's in-flight flag until the stream is exhausted,
    fails, or is closed, including a stream that is closed or released
    before its first chunk. Usable as `async with controller.submit() as s:`.
    """

    def __init__(self, chunks: AsyncIterator[str], on_release: Callable[[int], None]):
        self._chunks = chunks
        self._on_release = on_release
        self._count = 0
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def __aiter__(self) -> "ReportStream":
        return self

    async def __anext__(self) -> str:
        if self._released:
            raise StopAsyncIteration
        try:
            chunk = await self._chunks.__anext__()
        except BaseException:
            await self.aclose()
            raise
        self._count += 1
        return chunk

    def release(self) -> None:
        """Give up the submission without awaiting the underlying stream."""
        if self._released:
            return
        self._released = True
        self._on_release(self._count)

    async def aclose(self) -> None:
        if self._released:
            return
        try:
            close = getattr(self._chunks, "aclose", None)
            if close is not None:
                await close()
        finally:
            self.release()

    async def __aenter__(self) -> "ReportStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for v in values:
        if v not in seen:
            seen.add(v)
            result.append(v)
    return result


class WizardController:
    """
    Owns one WizardState for the lifetime of a form session.

    Collaborators are passed in explicitly; the controller never builds
    its own LLM clients.
    """

    def __init__(
        self,
        places: PlaceResolver,
        reports: ReportGenerator,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        session_id: Optional[str] = None,
        user_country: str = DEFAULT_USER_COUNTRY,
        target_country: str = DEFAULT_TARGET_COUNTRY,
    ):
        self._places = places
        self._reports = reports
        self._debounce = debounce_seconds
        self._default_user_country = user_country
        self._default_target_country = target_country
        self.session_id = session_id or str(uuid.uuid4())

        self.state = self._fresh_state()
        self._resolver = RegionalLookupResolver(places, debounce_seconds)
        self._in_flight = False
        self._submission = 0
        self.last_request: Optional[ReportRequest] = None
        self.alert: Optional[str] = None

    # --- Read-only views ---

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def lookup(self) -> RegionalLookupState:
        return self._resolver.state

    @property
    def resolver(self) -> RegionalLookupResolver:
        return self._resolver

    @property
    def is_generating(self) -> bool:
        return self._in_flight

    @property
    def department_choices(self) -> tuple[str, ...]:
        return DEPARTMENTS_BY_USER_TYPE[self.state.profile.user_type]

    @property
    def can_advance(self) -> bool:
        step = self.state.current_step
        if step >= LAST_STEP:
            return False
        if step == TIER_STEP and self.state.tier is None:
            return False
        if (
            step == SCOPE_STEP
            and not self.state.scope.is_manual_city
            and self.lookup.is_loading
        ):
            return False
        return True

    @property
    def can_submit(self) -> bool:
        return (
            self.state.current_step == LAST_STEP
            and self.state.has_objective
            and not self._in_flight
        )

    # --- Navigation ---

    def advance_step(self) -> bool:
        """Move forward one step. Returns False when the move is gated."""
        if not self.can_advance:
            logger.debug(
                "wizard_advance_blocked",
                extra={"step": self.state.current_step, "session_id": self.session_id},
            )
            return False
        self.state.current_step = min(self.state.current_step + 1, LAST_STEP)
        return True

    def retreat_step(self) -> bool:
        """Move back one step. Returns False on the first step."""
        if self.state.current_step <= FIRST_STEP:
            return False
        self.state.current_step = max(self.state.current_step - 1, FIRST_STEP)
        return True

    # --- Step 1: Profile ---

    def select_user_type(self, user_type: UserType | str) -> None:
        user_type = UserType(user_type)
        profile = self.state.profile
        profile.user_type = user_type
        profile.user_department = DEPARTMENTS_BY_USER_TYPE[user_type][0]
        profile.is_manual_department = False

    def toggle_manual_department(self, flag: bool) -> None:
        self.state.profile.is_manual_department = bool(flag)

    def set_user_department(self, department: str) -> None:
        profile = self.state.profile
        if not profile.is_manual_department and department not in self.department_choices:
            raise ValueError(
                f"Unknown {profile.user_type.value} organisation: {department!r}"
            )
        profile.user_department = department

    def set_user_name(self, name: str) -> None:
        self.state.profile.user_name = name

    def set_user_country(self, country: str) -> None:
        self.state.profile.user_country = country

    # --- Step 2: Scope ---

    def set_target_country(self, country: str) -> None:
        """Change the target country; re-triggers the city lookup."""
        if country == self.state.scope.target_country:
            return
        self.state.scope.target_country = country
        self._resolver.schedule(self.state.scope)

    def toggle_manual_city(self, flag: bool) -> None:
        scope = self.state.scope
        flag = bool(flag)
        if flag == scope.is_manual_city:
            return
        scope.is_manual_city = flag
        self._resolver.schedule(scope)

    def select_regional_city(self, city: str) -> None:
        scope = self.state.scope
        if not scope.is_manual_city and city not in self.lookup.candidates:
            raise ValueError(
                f"{city!r} is not a resolved regional centre for {scope.target_country}"
            )
        scope.regional_city = city

    def set_industry(self, industry: str) -> None:
        if industry not in INDUSTRIES:
            raise ValueError(f"Unknown industry: {industry!r}")
        self.state.scope.industry = industry

    def toggle_manual_industry(self, flag: bool) -> None:
        self.state.scope.is_manual_industry = bool(flag)

    def set_manual_industry_text(self, text: str) -> None:
        self.state.scope.manual_industry_text = text

    def request_city_lookup(self) -> None:
        """Issue the lookup for the current scope (session start)."""
        self._resolver.schedule(self.state.scope)

    async def settle_lookup(self) -> None:
        await self._resolver.settle()

    # --- Step 3: Tier ---

    def select_tier(self, tier: ReportTier | str) -> None:
        """Choose the base tier and jump directly to the options step."""
        self.state.tier = parse_tier(tier)
        self.state.current_step = OPTIONS_STEP
        logger.info(
            "wizard_tier_selected",
            extra={"tier": self.state.tier.value, "session_id": self.session_id},
        )

    # --- Step 4: Options ---

    def toggle_option(self, option: ReportOption | str) -> None:
        option = ReportOption(option)
        selected = self.state.selected_options
        if option in selected:
            selected.remove(option)
        else:
            selected.append(option)

    # --- Step 5: Finalize ---

    def set_objective(self, objective: str) -> None:
        self.state.finalize.objective = objective

    def set_company_size(self, size: str) -> None:
        if size not in COMPANY_SIZES:
            raise ValueError(f"Unknown company size: {size!r}")
        self.state.finalize.company_size = size

    def set_target_markets(self, markets: Iterable[str]) -> None:
        markets = _dedupe(markets)
        unknown = [m for m in markets if m not in TARGET_MARKETS]
        if unknown:
            raise ValueError(f"Unknown target markets: {unknown}")
        self.state.finalize.target_markets = markets

    def set_key_technologies(self, technologies: Iterable[str]) -> None:
        technologies = _dedupe(technologies)
        unknown = [t for t in technologies if t not in KEY_TECHNOLOGIES]
        if unknown:
            raise ValueError(f"Unknown key technologies: {unknown}")
        self.state.finalize.key_technologies = technologies

    def toggle_manual_tech(self, flag: bool) -> None:
        self.state.finalize.is_manual_tech = bool(flag)

    def set_manual_tech_text(self, text: str) -> None:
        self.state.finalize.manual_tech_text = text

    # --- Submission ---

    def submit(self) -> ReportStream:
        """
        Assemble the request and start report generation.

        Returns the report text stream; the submission counts as in flight
        until the stream is exhausted, fails, or is closed or released.

        Raises:
            MissingTierError: No tier selected. The wizard is sent back to
                step 1 and `alert` is set for the UI.
            SubmissionBlockedError: Not on the last step, empty objective,
                or another submission is still streaming.
        """
        if self.state.tier is None:
            self.state.current_step = FIRST_STEP
            self.alert = MISSING_TIER_ALERT
            logger.warning(
                "wizard_submit_without_tier",
                extra={"session_id": self.session_id},
            )
            raise MissingTierError(MISSING_TIER_ALERT)

        if not self.can_submit:
            raise SubmissionBlockedError(self._blocked_reason())

        request = assemble_request(self.state)
        chunks = self._reports.generate(request)
        self.last_request = request
        self._in_flight = True
        self._submission += 1
        submission = self._submission

        logger.info(
            "report_submitted",
            extra={
                "session_id": self.session_id,
                "tier": request.tier.value,
                "region": request.region,
                "options": [o.value for o in request.selected_options],
            },
        )
        return ReportStream(
            chunks, lambda count: self._submission_released(submission, count),
        )

    def _submission_released(self, submission: int, chunks: int) -> None:
        if submission == self._submission:
            self._in_flight = False
        logger.info(
            "report_stream_closed",
            extra={"session_id": self.session_id, "chunks": chunks},
        )

    def _blocked_reason(self) -> str:
        if self._in_flight:
            return "A report is already being generated."
        if self.state.current_step != LAST_STEP:
            return f"Submission is only available on step {LAST_STEP}."
        return "Please describe your core objective before submitting."

    # --- Session lifecycle ---

    def _fresh_state(self) -> WizardState:
        state = WizardState()
        state.profile.user_country = self._default_user_country
        state.scope.target_country = self._default_target_country
        return state

    def reset(self) -> None:
        """Discard the session: fresh state, outstanding lookups cancelled."""
        self._resolver.cancel_all()
        self._resolver = RegionalLookupResolver(self._places, self._debounce)
        self.state = self._fresh_state()
        self.last_request = None
        self.alert = None
        self._in_flight = False
        self._submission += 1

    def snapshot(self) -> dict[str, Any]:
        """Compact, loggable summary of where the session stands."""
        scope = self.state.scope
        return {
            "session_id": self.session_id,
            "step": self.state.current_step,
            "tier": self.state.tier.value if self.state.tier else None,
            "target_country": scope.target_country,
            "regional_city": scope.regional_city,
            "is_manual_city": scope.is_manual_city,
            "lookup_status": self.lookup.status.value,
            "options": [o.value for o in self.state.selected_options],
            "has_objective": self.state.has_objective,
        }
