# team_resolver/sync/team_sync.py
"""Populates the team registry from the full GRID teams connection.

GRID allows roughly 20 requests per minute, so pages are fetched with a
fixed delay and failed pages are retried with tenacity after an exponential
backoff.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from team_resolver.clients.base_client import AuthenticationError, GridClientError
from team_resolver.clients.grid_client import MAX_PAGE_SIZE, GridClient
from team_resolver.config.settings import settings
from team_resolver.models.resolution import RegistryStatus, SyncReport
from team_resolver.models.team import CanonicalTeamRecord, TeamsPage
from team_resolver.storage.team_store import TeamStore

MAX_BACKOFF_SECONDS = 10.0
MAX_CONSECUTIVE_FAILURES = 5


def _log_page_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Team page fetch failed (attempt {retry_state.attempt_number}): {error}; "
        f"retrying in {delay:.1f}s"
    )


async def _fetch_page(
    grid_client: GridClient, cursor: Optional[str], page_delay: float
) -> TeamsPage:
    """Fetches one page, retrying transient failures with exponential backoff."""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(MAX_CONSECUTIVE_FAILURES + 1),
        wait=wait_exponential(multiplier=page_delay, max=MAX_BACKOFF_SECONDS),
        retry=(
            retry_if_exception_type((GridClientError, httpx.HTTPError))
            & retry_if_not_exception_type(AuthenticationError)
        ),
        before_sleep=_log_page_retry,
        reraise=True,
    ):
        with attempt:
            return await grid_client.fetch_teams_page(MAX_PAGE_SIZE, cursor)


async def get_registry_status(store: TeamStore) -> RegistryStatus:
    """Record count and freshness of the registry."""
    record_count = await store.get_record_count()
    last_sync = await store.get_last_sync_time()

    age_hours: Optional[float] = None
    if last_sync is not None:
        age_hours = (datetime.now(timezone.utc) - last_sync).total_seconds() / 3600

    is_stale = (
        record_count == 0
        or age_hours is None
        or age_hours >= settings.sync_cooldown_hours
    )
    return RegistryStatus(
        record_count=record_count,
        last_sync=last_sync,
        age_hours=age_hours,
        is_stale=is_stale,
    )


async def sync_team_registry(
    grid_client: GridClient,
    store: TeamStore,
    force: bool = False,
    page_delay: Optional[float] = None,
    max_pages: Optional[int] = None,
) -> SyncReport:
    """Fetches every GRID team and bulk-upserts it into the registry.

    Skipped while the last sync is younger than the cooldown, unless
    ``force`` is set. Authentication failures abort the sync; other page
    failures are retried up to ``MAX_CONSECUTIVE_FAILURES`` times in a row,
    after which the teams fetched so far are still written.
    """
    page_delay = settings.sync_page_delay_seconds if page_delay is None else page_delay
    max_pages = max_pages or settings.sync_max_pages
    started = time.monotonic()

    if not force:
        status = await get_registry_status(store)
        if not status.is_stale:
            reason = (
                f"last sync {status.age_hours:.1f}h ago "
                f"(cooldown {settings.sync_cooldown_hours}h)"
            )
            logger.info(f"Skipping team registry sync: {reason}")
            return SyncReport(skipped_reason=reason)

    teams: Dict[str, CanonicalTeamRecord] = {}
    cursor: Optional[str] = None
    pages = 0

    while pages < max_pages:
        try:
            page = await _fetch_page(grid_client, cursor, page_delay)
        except AuthenticationError:
            logger.error("GRID rejected the API key; aborting team sync.")
            raise
        except (GridClientError, httpx.HTTPError) as e:
            logger.error(
                f"Giving up on GRID team sync after {MAX_CONSECUTIVE_FAILURES} retries: {e}"
            )
            break

        pages += 1
        for record in page.records:
            teams[record.id] = record

        total = page.total_count or len(teams)
        logger.info(f"Page {pages}: {len(page.records)} teams ({len(teams)}/{total} total)")

        if not page.has_next_page or not page.end_cursor:
            break
        cursor = page.end_cursor
        await asyncio.sleep(page_delay)

    counts = await store.upsert_teams(list(teams.values()))
    report = SyncReport(
        teams_fetched=len(teams),
        inserted=counts["inserted"],
        updated=counts["updated"],
        pages=pages,
        duration_seconds=round(time.monotonic() - started, 2),
    )
    logger.success(
        f"Team registry sync complete: {report.teams_fetched} teams, "
        f"{report.inserted} new, {report.updated} updated in {report.duration_seconds}s"
    )
    return report
