"""Pytest configuration and shared fixtures."""

import copy
import sys
from pathlib import Path

import httpx
import pytest

# Add src to Python path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from data.character_cache import CharacterCache  # noqa: E402
from data.clients.connectivity import ConnectivityMonitor  # noqa: E402
from data.clients.tibiadata_client import TibiaDataClient  # noqa: E402
from data.repositories.recent_searches import RecentSearchStore  # noqa: E402
from services.character_lookup_service import CharacterLookupService  # noqa: E402
from utils.metrics import MetricsCollector  # noqa: E402

BASE_URL = "https://api.tibiadata.com/v4"

_CHARACTER_TEMPLATE = {
    "character": {
        "character": {
            "name": "Gandalf",
            "former_names": ["Gandalf the Grey"],
            "traded": False,
            "sex": "male",
            "title": "Archmage",
            "unlocked_titles": 7,
            "vocation": "Master Sorcerer",
            "level": 312,
            "achievement_points": 845,
            "world": "Antica",
            "former_worlds": [],
            "residence": "Thais",
            "married_to": "Galadriel",
            "houses": [
                {
                    "name": "Upper Swamp Lane 2",
                    "town": "Thais",
                    "paid": "2024-09-01",
                    "houseid": 10101,
                }
            ],
            "guild": {"name": "White Council", "rank": "Leader"},
            "last_login": "2024-08-24T18:02:11Z",
            "account_status": "Premium Account",
            "comment": "You shall not pass",
        },
        "achievements": [
            {"name": "Allow Cookies?", "grade": 1, "secret": False},
            {"name": "Gold Digger", "grade": 2, "secret": True},
        ],
        "deaths": [
            {
                "time": "2024-08-20T21:14:03Z",
                "level": 311,
                "killers": [
                    {"name": "a balrog", "player": False, "traded": False, "summon": ""}
                ],
                "assists": [],
                "reason": "Killed at Level 311 by a balrog.",
            },
            {
                "time": "2024-07-02T10:00:00Z",
                "level": 298,
                "killers": [
                    {"name": "Saruman", "player": True, "traded": False, "summon": ""}
                ],
                "assists": [],
                "reason": "Killed at Level 298 by Saruman.",
            },
        ],
        "deaths_truncated": False,
        "account_information": {
            "created": "2003-05-12T14:22:07Z",
            "loyalty_title": "Sentinel of Tibia",
        },
        "other_characters": [
            {
                "name": "Gandalf",
                "world": "Antica",
                "status": "online",
                "deleted": False,
                "main": True,
                "traded": False,
            },
            {
                "name": "Radagast",
                "world": "Secura",
                "status": "offline",
                "deleted": False,
                "main": False,
                "traded": False,
            },
        ],
    },
    "information": {
        "api": {"version": 4, "release": "4.2.0", "commit": "abc123"},
        "timestamp": "2024-08-24T18:30:00Z",
        "status": {"http_code": 200},
    },
}


def make_character_payload(name: str = "Gandalf", **character_fields) -> dict:
    """Build a TibiaData character response body for the given name."""
    payload = copy.deepcopy(_CHARACTER_TEMPLATE)
    payload["character"]["character"]["name"] = name
    payload["character"]["other_characters"][0]["name"] = name
    payload["character"]["character"].update(character_fields)
    return payload


class FakeTibiaData:
    """httpx.MockTransport handler that serves configured characters.

    Unknown names get a 404. Set ``fail_with`` to an exception to make every
    request raise it, or ``status_code`` to force an error status.
    """

    def __init__(self) -> None:
        self.characters: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.fail_with: Exception | None = None
        self.status_code: int | None = None

    @property
    def calls(self) -> int:
        return len(self.requests)

    def add(self, name: str, payload: dict | None = None) -> None:
        self.characters[name.lower()] = payload or make_character_payload(name)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if self.status_code is not None:
            return httpx.Response(self.status_code, json={})
        # url.path is already percent-decoded
        name = request.url.path.rsplit("/", 1)[-1]
        payload = self.characters.get(name.lower())
        if payload is None:
            return httpx.Response(
                404, json={"information": {"status": {"http_code": 404}}}
            )
        return httpx.Response(200, json=payload)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tibiadata() -> FakeTibiaData:
    fake = FakeTibiaData()
    fake.add("Gandalf")
    return fake


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(tibiadata, metrics) -> TibiaDataClient:
    return TibiaDataClient(
        base_url=BASE_URL,
        request_timeout=15.0,
        resource_timeout=30.0,
        user_agent="tibia-character-lookup/test",
        transport=httpx.MockTransport(tibiadata),
        metrics=metrics,
    )


@pytest.fixture
def cache(clock, metrics) -> CharacterCache:
    return CharacterCache(ttl_seconds=60.0, clock=clock, metrics=metrics)


@pytest.fixture
def store(tmp_path):
    recent = RecentSearchStore(tmp_path / "store")
    yield recent
    recent.close()


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor()


@pytest.fixture
def service(client, cache, store, connectivity, metrics) -> CharacterLookupService:
    return CharacterLookupService(
        client=client,
        cache=cache,
        recent_searches=store,
        connectivity=connectivity,
        metrics=metrics,
        min_loading_seconds=0,
    )


@pytest.fixture
def make_payload():
    return make_character_payload
