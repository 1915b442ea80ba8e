from datetime import datetime, timedelta, timezone

import httpx
import pytest

from team_resolver.clients.base_client import (
    AuthenticationError,
    GridClientError,
    RateLimitError,
)
from team_resolver.models.team import CanonicalTeamRecord, TeamsPage
from team_resolver.sync.team_sync import get_registry_status, sync_team_registry


class _RegistryStore:
    def __init__(self, count=0, last_sync=None):
        self.count = count
        self.last_sync = last_sync
        self.upserted = []

    async def get_record_count(self):
        return self.count

    async def get_last_sync_time(self):
        return self.last_sync

    async def upsert_teams(self, records):
        self.upserted = list(records)
        return {"inserted": len(records), "updated": 0}


class _PagedGrid:
    """Serves pages (or raises queued exceptions) in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.cursors = []

    async def fetch_teams_page(self, first=50, after=None):
        self.cursors.append(after)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _records(*ids):
    return [CanonicalTeamRecord(id=i, name=f"Team {i}") for i in ids]


@pytest.mark.asyncio
async def test_sync_pages_through_all_teams():
    grid = _PagedGrid(
        [
            TeamsPage(records=_records("1", "2"), has_next_page=True, end_cursor="c1"),
            TeamsPage(records=_records("2", "3"), has_next_page=False),
        ]
    )
    store = _RegistryStore()

    report = await sync_team_registry(grid, store, page_delay=0)

    assert grid.cursors == [None, "c1"]
    assert [r.id for r in store.upserted] == ["1", "2", "3"]
    assert report.pages == 2
    assert report.teams_fetched == 3
    assert report.inserted == 3
    assert report.skipped_reason is None


@pytest.mark.asyncio
async def test_sync_skipped_within_cooldown():
    recent = datetime.now(timezone.utc) - timedelta(hours=1)
    store = _RegistryStore(count=500, last_sync=recent)
    grid = _PagedGrid([])

    report = await sync_team_registry(grid, store, page_delay=0)

    assert report.skipped_reason
    assert grid.cursors == []


@pytest.mark.asyncio
async def test_force_ignores_cooldown():
    recent = datetime.now(timezone.utc) - timedelta(hours=1)
    store = _RegistryStore(count=500, last_sync=recent)
    grid = _PagedGrid([TeamsPage(records=_records("1"))])

    report = await sync_team_registry(grid, store, force=True, page_delay=0)

    assert report.teams_fetched == 1


@pytest.mark.asyncio
async def test_sync_retries_failed_pages():
    grid = _PagedGrid(
        [
            TeamsPage(records=_records("1"), has_next_page=True, end_cursor="c1"),
            RateLimitError("slow down"),
            TeamsPage(records=_records("2")),
        ]
    )
    store = _RegistryStore()

    report = await sync_team_registry(grid, store, page_delay=0)

    assert grid.cursors == [None, "c1", "c1"]
    assert report.teams_fetched == 2


@pytest.mark.asyncio
async def test_sync_gives_up_after_repeated_failures_but_keeps_progress():
    grid = _PagedGrid(
        [TeamsPage(records=_records("1"), has_next_page=True, end_cursor="c1")]
        + [RateLimitError("slow down")] * 6
    )
    store = _RegistryStore()

    report = await sync_team_registry(grid, store, page_delay=0)

    assert report.teams_fetched == 1
    assert [r.id for r in store.upserted] == ["1"]
    assert grid.cursors == [None] + ["c1"] * 6


@pytest.mark.asyncio
async def test_sync_aborts_on_authentication_error():
    grid = _PagedGrid([AuthenticationError("bad key")])
    with pytest.raises(AuthenticationError):
        await sync_team_registry(grid, _RegistryStore(), page_delay=0)
    assert grid.cursors == [None]


@pytest.mark.asyncio
async def test_sync_respects_max_pages():
    grid = _PagedGrid(
        [
            TeamsPage(records=_records(str(i)), has_next_page=True, end_cursor=f"c{i}")
            for i in range(5)
        ]
    )
    report = await sync_team_registry(grid, _RegistryStore(), page_delay=0, max_pages=3)
    assert report.pages == 3


@pytest.mark.asyncio
async def test_registry_status_staleness():
    old = datetime.now(timezone.utc) - timedelta(hours=30)
    status = await get_registry_status(_RegistryStore(count=10, last_sync=old))
    assert status.is_stale
    assert status.age_hours == pytest.approx(30, abs=0.1)

    empty = await get_registry_status(_RegistryStore())
    assert empty.is_stale
    assert empty.last_sync is None


@pytest.mark.asyncio
async def test_sync_retries_transport_errors():
    grid = _PagedGrid(
        [
            httpx.ConnectError("connection reset"),
            GridClientError("HTTP error: 502"),
            TeamsPage(records=_records("1", "2")),
        ]
    )
    store = _RegistryStore()

    report = await sync_team_registry(grid, store, page_delay=0)

    assert grid.cursors == [None, None, None]
    assert report.pages == 1
    assert report.teams_fetched == 2
