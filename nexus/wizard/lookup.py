"""
Regional Lookup Resolver — debounced, epoch-guarded city lookup.

Turns a target country into a list of selectable regional centres by
calling an injected place resolver. The resolver itself never caches; it
only manages debounce, stale-response suppression and the loading /
success / error view in RegionalLookupState.

Every call to schedule() or supersede() bumps request_epoch. A lookup
task captures the epoch it was scheduled under and checks it twice: after
the debounce sleep (so a burst of country changes issues one request) and
after the resolve() await (so a superseded response never mutates state).
In-flight calls are never aborted, only ignored.

Usage:
    resolver = RegionalLookupResolver(place_service, debounce_seconds=0.1)
    resolver.schedule(state.scope)      # inside a running event loop
    await resolver.settle()
    resolver.state.candidates
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from nexus.wizard.errors import CityLookupError
from nexus.wizard.state import LookupStatus, RegionalLookupState, ScopeFields

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.1
EMPTY_RESULT_MESSAGE = "No regional centers found. Please enter manually."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class PlaceResolver(Protocol):
    """Anything that can turn a country name into place names."""

    async def resolve(self, country: str) -> list[str]:
        ...


class RegionalLookupResolver:
    """
    Debounced city lookup for the scope step.

    Single event loop, no locks: all mutation happens on the loop thread,
    and only the task holding the current epoch may apply a result.
    """

    def __init__(
        self,
        places: PlaceResolver,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self._places = places
        self._debounce = debounce_seconds
        self.state = RegionalLookupState()

        self._tasks: set[asyncio.Task] = set()
        self._latest: Optional[asyncio.Task] = None
        self._requests_issued: int = 0
        self._stale_dropped: int = 0

    @property
    def debounce_seconds(self) -> float:
        return self._debounce

    @property
    def requests_issued(self) -> int:
        """Number of resolve() calls that actually went out."""
        return self._requests_issued

    @property
    def stale_dropped(self) -> int:
        return self._stale_dropped

    # --- Triggers ---

    def supersede(self) -> int:
        """Invalidate every outstanding lookup. Returns the new epoch."""
        self.state.request_epoch += 1
        return self.state.request_epoch

    def schedule(self, scope: ScopeFields) -> Optional[asyncio.Task]:
        """
        React to a change of target_country or is_manual_city.

        Must be called from inside a running event loop when a lookup is
        needed. Returns the scheduled task, or None when the scope is in
        manual mode or has no country.
        """
        epoch = self.supersede()
        country = scope.target_country

        if scope.is_manual_city or not country:
            self.state.status = LookupStatus.IDLE
            self.state.country = country
            self.state.candidates = ()
            self.state.error_message = None
            scope.regional_city = ""
            self._latest = None
            return None

        self.state.status = LookupStatus.LOADING
        self.state.country = country
        self.state.candidates = ()
        self.state.error_message = None
        scope.regional_city = ""

        task = asyncio.get_running_loop().create_task(
            self._run(scope, country, epoch),
            name=f"city-lookup-{epoch}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._latest = task
        return task

    # --- Awaiting / teardown ---

    async def settle(self) -> None:
        """Wait for the most recently scheduled lookup to finish."""
        task = self._latest
        if task is not None:
            await task

    def cancel_all(self) -> int:
        """Cancel every outstanding lookup task (session teardown)."""
        self.supersede()
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        self._latest = None
        return len(pending)

    # --- Lookup task ---

    def _is_current(self, epoch: int) -> bool:
        return epoch == self.state.request_epoch

    async def _run(self, scope: ScopeFields, country: str, epoch: int) -> None:
        if self._debounce > 0:
            await asyncio.sleep(self._debounce)

        if not self._is_current(epoch):
            logger.debug(
                "city_lookup_debounced",
                extra={"country": country, "epoch": epoch},
            )
            return

        self._requests_issued += 1
        logger.info(
            "city_lookup_started",
            extra={"country": country, "epoch": epoch},
        )

        try:
            cities = await self._places.resolve(country)
        except Exception as e:
            if not self._is_current(epoch):
                self._drop_stale(country, epoch)
                return
            message = e.message if isinstance(e, CityLookupError) else str(e)
            self._apply_failure(scope, country, message or UNKNOWN_ERROR_MESSAGE)
            return

        if not self._is_current(epoch):
            self._drop_stale(country, epoch)
            return

        if cities:
            self._apply_success(scope, country, cities)
        else:
            self._apply_failure(scope, country, EMPTY_RESULT_MESSAGE)

    def _apply_success(
        self, scope: ScopeFields, country: str, cities: list[str]
    ) -> None:
        self.state.status = LookupStatus.SUCCESS
        self.state.candidates = tuple(cities)
        self.state.error_message = None
        scope.regional_city = cities[0]

        logger.info(
            "city_lookup_succeeded",
            extra={"country": country, "count": len(cities)},
        )

    def _apply_failure(self, scope: ScopeFields, country: str, message: str) -> None:
        self.state.status = LookupStatus.ERROR
        self.state.candidates = ()
        self.state.error_message = message
        scope.regional_city = ""
        # Sticky until the user turns automatic lookup back on
        scope.is_manual_city = True
        self.supersede()
        self._latest = None

        logger.warning(
            "city_lookup_failed",
            extra={"country": country, "error": message[:200]},
        )

    def _drop_stale(self, country: str, epoch: int) -> None:
        self._stale_dropped += 1
        logger.debug(
            "city_lookup_stale_dropped",
            extra={"country": country, "epoch": epoch},
        )
