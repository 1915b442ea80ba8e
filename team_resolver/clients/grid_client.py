# team_resolver/clients/grid_client.py

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from team_resolver.config.settings import settings
from team_resolver.models.team import CanonicalTeamRecord, TeamsPage
from .base_client import (
    AuthenticationError,
    BaseClient,
    GridClientError,
    RateLimitError,
)

# Teams connection of the Central Data feed. GRID caps ``first`` at 50.
GET_TEAMS = """
query GetTeams($first: Int, $after: Cursor) {
  teams(first: $first, after: $after) {
    totalCount
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        id
        name
        colorPrimary
        colorSecondary
        logoUrl
      }
    }
  }
}
"""

MAX_PAGE_SIZE = 50
MAX_SEARCH_RESULTS = 5

_RATE_LIMIT_MARKERS = ("rate limit", "exceeded", "enhance_your_calm")


def _classify_graphql_errors(errors: List[Dict[str, Any]]) -> GridClientError:
    """Maps a GraphQL ``errors`` array onto the client exception hierarchy."""
    messages = []
    for error in errors:
        extensions = error.get("extensions") or {}
        message = str(error.get("message", ""))
        messages.append(message)
        if (
            extensions.get("errorDetail") == "ENHANCE_YOUR_CALM"
            or extensions.get("errorType") == "UNAVAILABLE"
            or any(marker in message.lower() for marker in _RATE_LIMIT_MARKERS)
        ):
            return RateLimitError(f"GRID rate limit: {message}")
        if extensions.get("errorType") == "UNAUTHENTICATED":
            return AuthenticationError(f"GRID authentication failed: {message}")
    return GridClientError(f"GraphQL error: {'; '.join(messages)}")


def _node_to_record(node: Dict[str, Any]) -> CanonicalTeamRecord:
    return CanonicalTeamRecord(
        id=str(node["id"]),
        name=node["name"],
        color_primary=node.get("colorPrimary"),
        color_secondary=node.get("colorSecondary"),
        logo_url=node.get("logoUrl"),
    )


class GridClient(BaseClient):
    """Client for the GRID Central Data GraphQL feed (team lookups)."""

    name: str = "GRID Central Data"

    def __init__(
        self,
        *args,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.url = url or settings.grid_central_data_url
        api_key = api_key or settings.grid_api_key

        if not api_key:
            logger.warning("GRID API key is not set; live team search will fail.")
        else:
            # Sent with every request made by this client instance
            self.client.headers.update({"x-api-key": api_key})

    @retry(
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=2, min=2, max=10),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async def _execute_query(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Runs a GraphQL query and returns its ``data`` object.

        Throttling (HTTP 429 or an ENHANCE_YOUR_CALM error in a 200 body) is
        retried with backoff; transport errors are retried by ``_make_request``.

        Raises:
            AuthenticationError: invalid or missing API key.
            RateLimitError: GRID still throttles us after the last attempt.
            GridClientError: any other transport or GraphQL failure.
        """
        response = await self._make_request(
            "POST", self.url, json_data={"query": query, "variables": variables or {}}
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise GridClientError(f"Invalid JSON from {self.name}") from e

        if payload.get("errors"):
            error = _classify_graphql_errors(payload["errors"])
            logger.warning(f"{self.name} returned errors: {error}")
            raise error

        return payload.get("data") or {}

    async def fetch_teams_page(
        self, first: int = MAX_PAGE_SIZE, after: Optional[str] = None
    ) -> TeamsPage:
        """Fetches one page of the ``teams`` connection."""
        data = await self._execute_query(
            GET_TEAMS, {"first": min(first, MAX_PAGE_SIZE), "after": after}
        )
        teams = data.get("teams") or {}
        page_info = teams.get("pageInfo") or {}
        records = [
            _node_to_record(edge["node"])
            for edge in teams.get("edges") or []
            if edge.get("node")
        ]
        return TeamsPage(
            records=records,
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
            total_count=teams.get("totalCount"),
        )

    async def search_teams_by_name(self, name: str) -> List[CanonicalTeamRecord]:
        """Scans the first few pages of GRID teams for ``name``.

        Exact (case-insensitive) matches end the scan early. Otherwise the
        starts-with matches are returned, then the contains matches, at most
        five either way. Returns an empty list on any failure.
        """
        query = name.lower().strip()
        if not query:
            return []

        teams: List[CanonicalTeamRecord] = []
        cursor: Optional[str] = None
        try:
            for page_number in range(1, settings.live_max_pages + 1):
                logger.debug(
                    f"Fetching GRID teams page {page_number}/{settings.live_max_pages} for '{name}'"
                )
                page = await self.fetch_teams_page(settings.live_page_size, cursor)
                teams.extend(page.records)

                exact = [t for t in teams if t.name.lower() == query]
                if exact:
                    logger.info(f"Exact GRID match for '{name}' on page {page_number}")
                    return exact

                if not page.has_next_page:
                    break
                cursor = page.end_cursor
        except (GridClientError, httpx.HTTPError) as e:
            logger.warning(f"GRID live search failed for '{name}': {e}")
            return []
        except Exception as e:
            logger.exception(f"Unexpected error in GRID live search for '{name}': {e}")
            return []

        starts_with = [t for t in teams if t.name.lower().startswith(query)]
        if starts_with:
            return starts_with[:MAX_SEARCH_RESULTS]

        contains = [t for t in teams if query in t.name.lower()]
        if not contains:
            logger.info(f"No GRID match for '{name}' in first {len(teams)} teams")
        return contains[:MAX_SEARCH_RESULTS]
