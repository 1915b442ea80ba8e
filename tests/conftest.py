"""
tests/conftest.py

Purpose:
    Shared fakes for the resolver's collaborators (registry store, GRID
    client) and small fixture data sets.
"""

from typing import Dict, List, Optional

import pytest

from team_resolver.aliases.alias_table import AliasTable
from team_resolver.cache.resolution_cache import ResolutionCache
from team_resolver.models.team import CanonicalTeamRecord, StoreMatch
from team_resolver.storage.team_store import TrigramUnavailableError


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStore:
    """Registry stand-in recording every call."""

    def __init__(
        self,
        count: int = 0,
        trigram_results: Optional[List[StoreMatch]] = None,
        basic_results: Optional[List[StoreMatch]] = None,
        trigram_available: bool = True,
        error: Optional[Exception] = None,
    ):
        self.count = count
        self.trigram_results = trigram_results or []
        self.basic_results = basic_results or []
        self.trigram_available = trigram_available
        self.error = error
        self.calls: Dict[str, int] = {"count": 0, "trigram": 0, "basic": 0}
        self.queries: List[str] = []

    async def get_record_count(self) -> int:
        self.calls["count"] += 1
        if self.error:
            raise self.error
        return self.count

    async def search_by_trigram(self, query: str, limit: int = 5) -> List[StoreMatch]:
        self.calls["trigram"] += 1
        self.queries.append(query)
        if not self.trigram_available:
            raise TrigramUnavailableError("Trigram search unavailable (42883)")
        return self.trigram_results[:limit]

    async def search_basic(self, query: str, limit: int = 5) -> List[StoreMatch]:
        self.calls["basic"] += 1
        self.queries.append(query)
        return self.basic_results[:limit]


class FakeLiveClient:
    def __init__(self, results: Optional[Dict[str, List[CanonicalTeamRecord]]] = None):
        self.results = results or {}
        self.calls: List[str] = []

    async def search_teams_by_name(self, name: str) -> List[CanonicalTeamRecord]:
        self.calls.append(name)
        return list(self.results.get(name.lower().strip(), []))


@pytest.fixture
def alias_table():
    return AliasTable.from_mapping(
        {
            "cs2": {
                "natus vincere": {
                    "canonical_name": "Natus Vincere",
                    "canonical_id": "123",
                    "aliases": ["navi", "na'vi"],
                },
                "faze": {
                    "canonical_name": "FaZe Clan",
                    "canonical_id": "",
                    "aliases": ["faze clan", "fazeclan"],
                },
            }
        }
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResolutionCache(ttl_seconds=24 * 60 * 60, max_size=100, clock=clock)


@pytest.fixture
def cs2_records():
    return [
        CanonicalTeamRecord(id="789", name="Complexity Gaming", game="cs2"),
        CanonicalTeamRecord(id="456", name="Team Liquid", game="cs2"),
        CanonicalTeamRecord(id="321", name="Astralis"),
        CanonicalTeamRecord(id="999", name="T1", game="lol"),
    ]
