"""Character lookup pipeline: validate, consult the cache, fetch, publish.

All state changes (response cache, recent searches, published state) happen
inside the single lookup task running on the event loop, and every
transition is published as one immutable ``LookupState`` snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace

from data.character_cache import CharacterCache, normalize_cache_key
from data.clients.connectivity import ConnectivityMonitor
from data.clients.tibiadata_client import TibiaDataClient
from data.repositories.recent_searches import RecentSearchStore
from models.app import LookupPhase, LookupState, RecentSearchEntry
from models.tibia import CharacterResponse
from services.name_validator import TibiaNameValidator
from utils.exceptions import (
    CharacterLookupError,
    NameValidationError,
    NoConnectivityError,
)
from utils.metrics import MetricsCollector, get_metrics
from utils.signal_bus import LookupSignalBus

logger = logging.getLogger(__name__)

DEFAULT_MIN_LOADING_SECONDS = 0.5
DEFAULT_POLL_INTERVAL = 10.0


class CharacterLookupService:
    """Looks up Tibia characters and publishes the result.

    At most one lookup runs at a time: starting a new one cancels the lookup
    in flight, and a cancelled lookup publishes nothing further.

    Example:
        ```python
        service = CharacterLookupService(client, cache, store, connectivity)
        service.signals.state_changed.connect(render)
        state = await service.fetch_character("Gandalf")
        ```
    """

    def __init__(
        self,
        client: TibiaDataClient,
        cache: CharacterCache,
        recent_searches: RecentSearchStore,
        connectivity: ConnectivityMonitor,
        signal_bus: LookupSignalBus | None = None,
        validator: TibiaNameValidator | None = None,
        metrics: MetricsCollector | None = None,
        min_loading_seconds: float = DEFAULT_MIN_LOADING_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the lookup service.

        Args:
            client: TibiaData client used for network lookups
            cache: Response cache
            recent_searches: Persisted recent searches
            connectivity: Connectivity monitor consulted before a request
            signal_bus: Bus state changes are published on
            validator: Character name validator
            metrics: Metrics collector for lookup outcomes
            min_loading_seconds: Minimum time the loading flag stays set
                for a network lookup
            sleep: Coroutine used to hold the loading flag (injectable for tests)
        """
        self._client = client
        self._cache = cache
        self._recent = recent_searches
        self._connectivity = connectivity
        self.signals = signal_bus or LookupSignalBus()
        self._validator = validator or TibiaNameValidator()
        self._metrics = metrics or get_metrics()
        self.min_loading_seconds = min_loading_seconds
        self._sleep = sleep

        self._state = LookupState(recent_searches=tuple(recent_searches.entries))
        self._current_task: asyncio.Task[LookupState] | None = None

    @property
    def state(self) -> LookupState:
        """The most recently published state."""
        return self._state

    @property
    def recent_searches(self) -> tuple[RecentSearchEntry, ...]:
        return self._state.recent_searches

    @property
    def is_busy(self) -> bool:
        return self._current_task is not None and not self._current_task.done()

    def start_lookup(
        self, name: str, refresh: bool = False, from_recent_search: bool = False
    ) -> asyncio.Task[LookupState]:
        """Start a lookup in the background, cancelling any lookup in flight.

        Args:
            name: Character name as entered
            refresh: Revalidate over the network even when cached
            from_recent_search: The lookup replays a recent search entry,
                so the recent searches list is left untouched

        Returns:
            The lookup task, resolving to the final published state
        """
        if self.is_busy:
            assert self._current_task is not None
            logger.debug("Cancelling lookup in flight: %s", self._current_task.get_name())
            self._current_task.cancel()

        task = asyncio.create_task(
            self._lookup(name, refresh, from_recent_search), name=f"lookup:{name}"
        )
        self._current_task = task
        task.add_done_callback(self._on_task_done)
        return task

    async def fetch_character(
        self, name: str, refresh: bool = False, from_recent_search: bool = False
    ) -> LookupState | None:
        """Look up a character and wait for the outcome.

        Returns:
            The final published state, or None if a newer lookup superseded
            this one before it finished
        """
        task = self.start_lookup(name, refresh, from_recent_search)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or current.cancelling() == 0):
                logger.debug("Lookup for %s was superseded", name)
                return None
            raise

    async def select_recent_search(self, entry: RecentSearchEntry) -> LookupState | None:
        """Replay a recent search without reordering the recent searches list."""
        return await self.fetch_character(entry.lookup_name, from_recent_search=True)

    def cancel(self) -> None:
        """Cancel the lookup in flight, if any, and stop the loading flag."""
        if not self.is_busy:
            return
        assert self._current_task is not None
        self._current_task.cancel()
        self._current_task = None
        phase = self._state.phase
        if phase in (LookupPhase.VALIDATING, LookupPhase.REQUESTING):
            phase = LookupPhase.IDLE
        self._publish(replace(self._state, phase=phase, is_loading=False))

    def clear_current_search(self) -> None:
        """Cancel any lookup and clear the displayed result."""
        self.cancel()
        self._publish(self._cleared_state())

    def clear_recent_searches(self) -> None:
        """Forget all recent searches."""
        self._recent.clear()
        self._publish(replace(self._state, recent_searches=()))

    async def start(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> bool:
        """Probe connectivity once, then keep the flag current in the background.

        Returns:
            Whether the network was reachable at start
        """
        connected = await self._connectivity.check()
        self._connectivity.start(poll_interval)
        return connected

    async def close(self) -> None:
        """Cancel any lookup and release the monitor, client and store."""
        self.cancel()
        await self._connectivity.stop()
        await self._client.close()
        self._recent.close()

    async def _lookup(
        self, name: str, refresh: bool, from_recent_search: bool
    ) -> LookupState:
        cleaned = name.strip()
        base = self._state if refresh else self._cleared_state()
        self._publish(replace(base, phase=LookupPhase.VALIDATING, error=None))

        violation = self._validator.validate(cleaned)
        if violation is not None:
            logger.info("Rejected character name %r: %s", cleaned, violation.message)
            return self._fail(NameValidationError(violation), keep_data=refresh)

        self._publish(replace(self._state, is_loading=True))

        cached = self._cache.get(cleaned)
        if cached is not None:
            self._metrics.increment("lookup.cache_hit")
            self._publish(
                replace(
                    self._with_response(cached),
                    phase=LookupPhase.CACHE_HIT,
                    is_loading=True,
                )
            )
            recent = self._state.recent_searches
            if not from_recent_search:
                recent = self._record_recent(cached, cleaned)
            state = self._publish(
                replace(
                    self._state,
                    phase=LookupPhase.SUCCESS,
                    is_loading=refresh,
                    recent_searches=recent,
                )
            )
            if not refresh:
                return state
            logger.debug("Served %s from cache, revalidating", cleaned)
        else:
            self._metrics.increment("lookup.cache_miss")

        if not self._connectivity.is_connected:
            if cached is not None:
                logger.warning("Offline, keeping cached data for %s", cleaned)
                return self._publish(replace(self._state, is_loading=False))
            return self._fail(NoConnectivityError(), keep_data=refresh)

        if cached is None:
            self._publish(replace(self._state, phase=LookupPhase.REQUESTING))

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            response = await self._client.get_character(cleaned)
        except CharacterLookupError as e:
            await self._hold_loading(started)
            return self._fail(e, keep_data=refresh or cached is not None)

        await self._hold_loading(started)
        self._cache.put(cleaned, response)

        recent = self._state.recent_searches
        if not from_recent_search:
            recent = self._record_recent(response, cleaned)
        logger.info("Loaded character %s", response.character.character.name)
        return self._publish(
            replace(
                self._with_response(response),
                phase=LookupPhase.SUCCESS,
                is_loading=False,
                recent_searches=recent,
            )
        )

    async def _hold_loading(self, started: float) -> None:
        elapsed = asyncio.get_running_loop().time() - started
        remaining = self.min_loading_seconds - elapsed
        if remaining > 0:
            await self._sleep(remaining)

    def _record_recent(
        self, response: CharacterResponse, query: str
    ) -> tuple[RecentSearchEntry, ...]:
        entry = RecentSearchEntry.from_character(
            response.character.character, query=normalize_cache_key(query)
        )
        for evicted in self._recent.record(entry):
            self._cache.evict(evicted.lookup_name)
        return tuple(self._recent.entries)

    def _with_response(self, response: CharacterResponse) -> LookupState:
        data = response.character
        return replace(
            self._state,
            character=data.character,
            deaths=tuple(data.deaths),
            achievements=tuple(data.achievements),
            account_info=data.account_information,
            other_characters=tuple(data.listed_other_characters),
            is_online=data.is_online,
            error=None,
        )

    def _cleared_state(self) -> LookupState:
        return LookupState(recent_searches=self._state.recent_searches)

    def _fail(self, error: CharacterLookupError, keep_data: bool) -> LookupState:
        self._metrics.increment("lookup.failure")
        base = self._state if keep_data else self._cleared_state()
        state = self._publish(
            replace(base, phase=LookupPhase.FAILURE, error=error, is_loading=False)
        )
        self.signals.error_occurred.emit(error.user_message)
        return state

    def _publish(self, state: LookupState) -> LookupState:
        previous = self._state
        self._state = state
        if state.recent_searches != previous.recent_searches:
            self.signals.recent_searches_changed.emit(list(state.recent_searches))
        self.signals.state_changed.emit(state)
        return state

    def _on_task_done(self, task: asyncio.Task) -> None:
        if self._current_task is task:
            self._current_task = None
