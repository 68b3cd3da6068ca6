"""Tests for the character lookup pipeline."""

import asyncio

import httpx
import pytest

from data.clients.connectivity import ConnectivityMonitor
from data.clients.tibiadata_client import TibiaDataClient
from data.repositories.recent_searches import RecentSearchStore
from models.app import LookupPhase
from services.character_lookup_service import CharacterLookupService
from services.name_validator import NameViolation
from utils.exceptions import (
    CharacterNotFoundError,
    NameValidationError,
    NoConnectivityError,
    ServerError,
    TibiaConnectionError,
)


@pytest.fixture
def published(service):
    states = []
    service.signals.state_changed.connect(states.append)
    return states


# =============================================================================
# Scenarios
# =============================================================================


@pytest.mark.asyncio
async def test_first_lookup_succeeds_and_records_recent_search(service, tibiadata):
    state = await service.fetch_character("Gandalf")

    assert state.phase is LookupPhase.SUCCESS
    assert state.character.name == "Gandalf"
    assert state.is_loading is False
    assert state.error is None
    assert [e.name for e in state.recent_searches] == ["Gandalf"]
    assert tibiadata.calls == 1


@pytest.mark.asyncio
async def test_too_short_name_fails_without_network(service, tibiadata, cache):
    state = await service.fetch_character("a")

    assert state.phase is LookupPhase.FAILURE
    assert isinstance(state.error, NameValidationError)
    assert state.error.violation is NameViolation.TOO_SHORT
    assert state.error_message == NameViolation.TOO_SHORT.message
    assert tibiadata.calls == 0
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_not_found_fails_and_leaves_cache_empty(service, tibiadata, cache):
    tibiadata.characters.clear()

    state = await service.fetch_character("Gandalf")

    assert state.phase is LookupPhase.FAILURE
    assert isinstance(state.error, CharacterNotFoundError)
    assert state.error_message == "Character not found"
    assert state.character is None
    assert cache.get("Gandalf") is None
    assert state.recent_searches == ()


@pytest.mark.asyncio
async def test_cached_lookup_never_touches_transport(service, tibiadata):
    await service.fetch_character("Gandalf")
    tibiadata.fail_with = httpx.ConnectError("transport must not be called")

    state = await service.fetch_character("Gandalf")

    assert state.phase is LookupPhase.SUCCESS
    assert state.character.name == "Gandalf"
    assert tibiadata.calls == 1


@pytest.mark.asyncio
async def test_missing_loyalty_title_still_succeeds(service, tibiadata, make_payload):
    payload = make_payload("Gandalf")
    del payload["character"]["account_information"]["loyalty_title"]
    tibiadata.add("Gandalf", payload)

    state = await service.fetch_character("Gandalf")

    assert state.phase is LookupPhase.SUCCESS
    assert state.account_info is not None
    assert state.account_info.loyalty_title is None


# =============================================================================
# Validation and cache properties
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name", ["", "x", "A" * 30, "Gandalf3", "-Gandalf", "Gandalf-", "Gan  dalf", "Gan--dalf"]
)
async def test_invalid_names_never_reach_network(service, tibiadata, name):
    state = await service.fetch_character(name)

    assert isinstance(state.error, NameValidationError)
    assert state.is_loading is False
    assert tibiadata.calls == 0


@pytest.mark.asyncio
async def test_name_is_trimmed_before_validation(service, tibiadata):
    state = await service.fetch_character("  Gandalf  ")

    assert state.phase is LookupPhase.SUCCESS
    assert tibiadata.requests[0].url.raw_path == b"/v4/character/Gandalf"


@pytest.mark.asyncio
async def test_lookup_after_ttl_issues_one_new_request(service, tibiadata, clock):
    await service.fetch_character("Gandalf")
    clock.advance(61)

    state = await service.fetch_character("Gandalf")

    assert state.phase is LookupPhase.SUCCESS
    assert tibiadata.calls == 2


@pytest.mark.asyncio
async def test_cache_key_ignores_case(service, tibiadata):
    await service.fetch_character("Gandalf")
    await service.fetch_character("gandalf")

    assert tibiadata.calls == 1


@pytest.mark.asyncio
async def test_cache_hit_publishes_cache_hit_then_success(service, published):
    await service.fetch_character("Gandalf")
    published.clear()

    await service.fetch_character("Gandalf")

    phases = [s.phase for s in published]
    assert phases[-2:] == [LookupPhase.CACHE_HIT, LookupPhase.SUCCESS]
    assert LookupPhase.REQUESTING not in phases


@pytest.mark.asyncio
async def test_cache_metrics(service, metrics):
    await service.fetch_character("Gandalf")
    await service.fetch_character("Gandalf")

    assert metrics.count("lookup.cache_miss") == 1
    assert metrics.count("lookup.cache_hit") == 1


# =============================================================================
# Refresh
# =============================================================================


@pytest.mark.asyncio
async def test_refresh_revalidates_over_network(service, tibiadata, make_payload):
    await service.fetch_character("Gandalf")
    tibiadata.add("Gandalf", make_payload("Gandalf", level=313))

    state = await service.fetch_character("Gandalf", refresh=True)

    assert tibiadata.calls == 2
    assert state.character.level == 313
    assert state.is_loading is False


@pytest.mark.asyncio
async def test_refresh_serves_cache_first(service, tibiadata, make_payload, published):
    await service.fetch_character("Gandalf")
    tibiadata.add("Gandalf", make_payload("Gandalf", level=313))
    published.clear()

    await service.fetch_character("Gandalf", refresh=True)

    cached_success = next(s for s in published if s.phase is LookupPhase.SUCCESS)
    assert cached_success.character.level == 312
    assert cached_success.is_loading is True
    assert published[-1].character.level == 313


@pytest.mark.asyncio
async def test_refresh_updates_cache(service, tibiadata, make_payload, cache):
    await service.fetch_character("Gandalf")
    tibiadata.add("Gandalf", make_payload("Gandalf", level=313))

    await service.fetch_character("Gandalf", refresh=True)

    assert cache.get("Gandalf").character.character.level == 313


@pytest.mark.asyncio
async def test_refresh_failure_keeps_displayed_character(service, tibiadata):
    await service.fetch_character("Gandalf")
    tibiadata.status_code = 503

    state = await service.fetch_character("Gandalf", refresh=True)

    assert state.phase is LookupPhase.FAILURE
    assert isinstance(state.error, ServerError)
    assert state.error.status_code == 503
    assert state.character.name == "Gandalf"


# =============================================================================
# Connectivity and transport failures
# =============================================================================


@pytest.mark.asyncio
async def test_offline_without_cache_fails(service, tibiadata, connectivity):
    connectivity.set_connected(False)

    state = await service.fetch_character("Gandalf")

    assert isinstance(state.error, NoConnectivityError)
    assert state.error_message == "No internet connection and no cached data available"
    assert tibiadata.calls == 0


@pytest.mark.asyncio
async def test_offline_with_cache_serves_cache(service, tibiadata, connectivity):
    await service.fetch_character("Gandalf")
    connectivity.set_connected(False)

    state = await service.fetch_character("Gandalf")
    assert state.phase is LookupPhase.SUCCESS

    refreshed = await service.fetch_character("Gandalf", refresh=True)
    assert refreshed.phase is LookupPhase.SUCCESS
    assert refreshed.is_loading is False
    assert tibiadata.calls == 1


@pytest.mark.asyncio
async def test_start_checks_connectivity_before_lookups(
    service, tibiadata, monkeypatch
):
    checks = []

    async def unreachable(self):
        checks.append(self.probe_host)
        self.set_connected(False)
        return False

    monkeypatch.setattr(ConnectivityMonitor, "check", unreachable)

    assert await service.start(poll_interval=60) is False
    state = await service.fetch_character("Gandalf")

    assert isinstance(state.error, NoConnectivityError)
    assert tibiadata.calls == 0
    assert checks
    await service.close()


@pytest.mark.asyncio
async def test_close_stops_connectivity_polling(service, connectivity, monkeypatch):
    async def reachable(self):
        return True

    monkeypatch.setattr(ConnectivityMonitor, "check", reachable)
    await service.start(poll_interval=60)
    poll_task = connectivity._poll_task
    assert poll_task is not None and not poll_task.done()

    await service.close()

    assert poll_task.done()
    assert connectivity._poll_task is None


@pytest.mark.asyncio
async def test_connection_error_is_reported(service, tibiadata, metrics):
    tibiadata.fail_with = httpx.ConnectError("network unreachable")

    state = await service.fetch_character("Gandalf")

    assert isinstance(state.error, TibiaConnectionError)
    assert state.character is None
    assert tibiadata.calls == 1
    assert metrics.count("lookup.failure") == 1


@pytest.mark.asyncio
async def test_failure_is_emitted_on_error_signal(service, tibiadata):
    messages = []
    service.signals.error_occurred.connect(messages.append)
    tibiadata.characters.clear()

    await service.fetch_character("Gandalf")

    assert messages == ["Character not found"]


# =============================================================================
# Recent searches
# =============================================================================


@pytest.mark.asyncio
async def test_recent_searches_bounded_and_evict_cache(service, tibiadata, cache):
    names = ["Alpha", "Bravo", "Charlie", "Delta", "Echo"]
    for name in names:
        tibiadata.add(name)
        await service.fetch_character(name)

    assert [e.name for e in service.recent_searches] == [
        "Echo",
        "Delta",
        "Charlie",
        "Bravo",
    ]
    assert "Alpha" not in cache
    assert "Bravo" in cache


@pytest.mark.asyncio
async def test_former_name_entry_evicts_its_cache_entry(
    service, tibiadata, cache, make_payload
):
    tibiadata.add("Old Name", make_payload("Gandalf"))
    await service.fetch_character("Old Name")
    assert service.recent_searches[0].name == "Gandalf"
    assert service.recent_searches[0].query == "old name"

    for name in ["Alpha", "Bravo", "Charlie", "Delta"]:
        tibiadata.add(name)
        await service.fetch_character(name)

    assert [e.name for e in service.recent_searches] == [
        "Delta",
        "Charlie",
        "Bravo",
        "Alpha",
    ]
    assert "Old Name" not in cache


@pytest.mark.asyncio
async def test_replaying_former_name_entry_hits_cache(
    service, tibiadata, make_payload
):
    tibiadata.add("Old Name", make_payload("Gandalf"))
    await service.fetch_character("Old Name")

    state = await service.select_recent_search(service.recent_searches[0])

    assert state.phase is LookupPhase.SUCCESS
    assert state.character.name == "Gandalf"
    assert tibiadata.calls == 1


@pytest.mark.asyncio
async def test_current_name_search_replaces_former_name_entry(
    service, tibiadata, cache, make_payload
):
    tibiadata.add("Old Name", make_payload("Gandalf"))
    await service.fetch_character("Old Name")

    await service.fetch_character("Gandalf")

    assert [e.lookup_name for e in service.recent_searches] == ["gandalf"]
    assert "Old Name" not in cache
    assert "Gandalf" in cache


@pytest.mark.asyncio
async def test_repeat_search_moves_entry_to_front(service, tibiadata):
    tibiadata.add("Radagast")
    await service.fetch_character("Gandalf")
    await service.fetch_character("Radagast")

    state = await service.fetch_character("gandalf")

    assert [e.name for e in state.recent_searches] == ["Gandalf", "Radagast"]


@pytest.mark.asyncio
async def test_replaying_recent_search_does_not_record(
    service, tibiadata, store, monkeypatch
):
    tibiadata.add("Radagast")
    await service.fetch_character("Gandalf")
    await service.fetch_character("Radagast")
    before = service.recent_searches

    recorded = []
    monkeypatch.setattr(store, "record", lambda entry: recorded.append(entry) or [])

    state = await service.select_recent_search(before[1])

    assert state.phase is LookupPhase.SUCCESS
    assert state.character.name == "Gandalf"
    assert recorded == []
    assert state.recent_searches == before


@pytest.mark.asyncio
async def test_replaying_expired_recent_search_fetches_without_recording(
    service, tibiadata, store, clock, monkeypatch
):
    await service.fetch_character("Gandalf")
    clock.advance(120)
    recorded = []
    monkeypatch.setattr(store, "record", lambda entry: recorded.append(entry) or [])

    state = await service.select_recent_search(service.recent_searches[0])

    assert state.phase is LookupPhase.SUCCESS
    assert tibiadata.calls == 2
    assert recorded == []


@pytest.mark.asyncio
async def test_recent_searches_loaded_at_startup(
    tmp_path, client, cache, connectivity, metrics
):
    first_store = RecentSearchStore(tmp_path / "persisted")
    first = CharacterLookupService(
        client, cache, first_store, connectivity, metrics=metrics, min_loading_seconds=0
    )
    await first.fetch_character("Gandalf")
    first_store.close()

    second_store = RecentSearchStore(tmp_path / "persisted")
    try:
        second = CharacterLookupService(
            client, cache, second_store, connectivity, min_loading_seconds=0
        )
        assert [e.name for e in second.state.recent_searches] == ["Gandalf"]
    finally:
        second_store.close()


@pytest.mark.asyncio
async def test_recent_searches_signal_only_on_change(service):
    updates = []
    service.signals.recent_searches_changed.connect(updates.append)

    await service.fetch_character("Gandalf")
    await service.fetch_character("Nobody")
    await service.fetch_character("a")

    assert len(updates) == 1
    assert [e.name for e in updates[0]] == ["Gandalf"]


@pytest.mark.asyncio
async def test_clear_recent_searches(service, store):
    await service.fetch_character("Gandalf")

    service.clear_recent_searches()

    assert service.recent_searches == ()
    assert store.entries == []


# =============================================================================
# Published state
# =============================================================================


@pytest.mark.asyncio
async def test_success_state_carries_all_sections(service):
    state = await service.fetch_character("Gandalf")

    assert [d.level for d in state.deaths] == [311, 298]
    assert [a.name for a in state.achievements] == ["Allow Cookies?", "Gold Digger"]
    assert state.account_info.loyalty_title == "Sentinel of Tibia"
    assert [c.name for c in state.other_characters] == ["Radagast"]
    assert state.is_online is True


@pytest.mark.asyncio
async def test_network_lookup_transitions(service, published):
    await service.fetch_character("Gandalf")

    phases = [s.phase for s in published]
    assert phases[0] is LookupPhase.VALIDATING
    assert LookupPhase.REQUESTING in phases
    assert phases[-1] is LookupPhase.SUCCESS
    requesting = next(s for s in published if s.phase is LookupPhase.REQUESTING)
    assert requesting.is_loading is True


@pytest.mark.asyncio
async def test_new_search_clears_previous_result(service, tibiadata, published):
    await service.fetch_character("Gandalf")
    published.clear()
    tibiadata.characters.pop("gandalf")
    tibiadata.add("Radagast")

    await service.fetch_character("Radagast")

    assert published[0].character is None
    assert published[-1].character.name == "Radagast"


@pytest.mark.asyncio
async def test_clear_current_search(service):
    await service.fetch_character("Gandalf")

    service.clear_current_search()

    assert service.state.character is None
    assert service.state.phase is LookupPhase.IDLE
    assert [e.name for e in service.state.recent_searches] == ["Gandalf"]


# =============================================================================
# Loading delay and cancellation
# =============================================================================


@pytest.mark.asyncio
async def test_minimum_loading_time_applies_to_success_and_failure(
    client, cache, store, connectivity, tibiadata
):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    service = CharacterLookupService(
        client, cache, store, connectivity, min_loading_seconds=0.5, sleep=fake_sleep
    )

    await service.fetch_character("Gandalf")
    tibiadata.characters.clear()
    await service.fetch_character("Radagast")

    assert len(sleeps) == 2
    assert all(0 < s <= 0.5 for s in sleeps)


@pytest.mark.asyncio
async def test_minimum_loading_time_skipped_for_cache_and_validation(
    client, cache, store, connectivity
):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    service = CharacterLookupService(
        client, cache, store, connectivity, min_loading_seconds=0.5, sleep=fake_sleep
    )
    await service.fetch_character("Gandalf")
    sleeps.clear()

    await service.fetch_character("Gandalf")
    await service.fetch_character("a")

    assert sleeps == []


@pytest.mark.asyncio
async def test_new_lookup_cancels_in_flight(cache, store, connectivity, make_payload):
    release = asyncio.Event()
    seen = []

    async def handler(request):
        name = request.url.path.rsplit("/", 1)[-1]
        seen.append(name)
        if name == "Gandalf":
            await release.wait()
        return httpx.Response(200, json=make_payload(name))

    transport = httpx.MockTransport(handler)

    service = CharacterLookupService(
        TibiaDataClient(user_agent="test", transport=transport),
        cache,
        store,
        connectivity,
        min_loading_seconds=0,
    )

    first = asyncio.create_task(service.fetch_character("Gandalf"))
    while seen != ["Gandalf"]:
        await asyncio.sleep(0)

    second = await service.fetch_character("Radagast")
    release.set()

    assert await first is None
    assert second.character.name == "Radagast"
    assert service.state.character.name == "Radagast"
    assert "Gandalf" not in cache
    assert [e.name for e in service.recent_searches] == ["Radagast"]


@pytest.mark.asyncio
async def test_cancel_stops_loading(cache, store, connectivity, make_payload):
    release = asyncio.Event()
    started = asyncio.Event()

    async def handler(request):
        started.set()
        await release.wait()
        return httpx.Response(200, json=make_payload("Gandalf"))

    service = CharacterLookupService(
        TibiaDataClient(user_agent="test", transport=httpx.MockTransport(handler)),
        cache,
        store,
        connectivity,
        min_loading_seconds=0,
    )

    task = service.start_lookup("Gandalf")
    await started.wait()
    assert service.is_busy
    assert service.state.is_loading is True

    service.cancel()
    release.set()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert service.is_busy is False
    assert service.state.is_loading is False
    assert service.state.character is None
