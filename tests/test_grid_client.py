import json

import httpx
import pytest
from tenacity import wait_none

from team_resolver.clients.base_client import (
    AuthenticationError,
    BaseClient,
    GridClientError,
    RateLimitError,
)
from team_resolver.clients.grid_client import GridClient


def _page(names, has_next=False, cursor=None, start=0):
    return {
        "data": {
            "teams": {
                "totalCount": 1000,
                "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
                "edges": [
                    {"node": {"id": str(start + i), "name": name, "logoUrl": None}}
                    for i, name in enumerate(names)
                ],
            }
        }
    }


def _client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GridClient(http, api_key="secret-key", url="https://grid.test/graphql")


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(BaseClient._make_request.retry, "wait", wait_none())
    monkeypatch.setattr(GridClient._execute_query.retry, "wait", wait_none())


def _rate_limited():
    return httpx.Response(
        200,
        json={"errors": [{"message": "Too many requests", "extensions": {"errorDetail": "ENHANCE_YOUR_CALM"}}]},
    )


@pytest.mark.asyncio
async def test_fetch_teams_page_sends_key_and_cursor():
    seen = {}

    def handler(request):
        seen["key"] = request.headers.get("x-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_page(["Astralis"], has_next=True, cursor="c1"))

    client = _client(handler)
    page = await client.fetch_teams_page(first=200, after="c0")

    assert seen["key"] == "secret-key"
    assert seen["body"]["variables"] == {"first": 50, "after": "c0"}
    assert [r.name for r in page.records] == ["Astralis"]
    assert page.has_next_page and page.end_cursor == "c1"
    assert page.total_count == 1000


@pytest.mark.asyncio
async def test_search_stops_at_exact_match():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(
            200, json=_page(["Astralis Talent", "Astralis"], has_next=True, cursor="c1")
        )

    results = await _client(handler).search_teams_by_name("ASTRALIS")

    assert [r.name for r in results] == ["Astralis"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_search_prefers_starts_with_over_contains():
    pages = [
        _page(["Team Liquid", "Liquid Academy"], has_next=True, cursor="c1"),
        _page(["Liquidity"], start=10),
    ]

    def handler(request):
        return httpx.Response(200, json=pages.pop(0))

    results = await _client(handler).search_teams_by_name("liquid")

    assert [r.name for r in results] == ["Liquid Academy", "Liquidity"]


@pytest.mark.asyncio
async def test_search_falls_back_to_contains():
    def handler(request):
        return httpx.Response(200, json=_page(["Team Liquid", "Astralis"]))

    results = await _client(handler).search_teams_by_name("liquid")
    assert [r.id for r in results] == ["0"]


@pytest.mark.asyncio
async def test_search_retries_graphql_rate_limit():
    responses = [_rate_limited(), httpx.Response(200, json=_page(["Astralis"]))]
    calls = []

    def handler(request):
        calls.append(1)
        return responses.pop(0)

    results = await _client(handler).search_teams_by_name("Astralis")

    assert [r.name for r in results] == ["Astralis"]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_http_429_is_retried():
    responses = [httpx.Response(429), httpx.Response(200, json=_page(["Astralis"]))]
    calls = []

    def handler(request):
        calls.append(1)
        return responses.pop(0)

    page = await _client(handler).fetch_teams_page()

    assert [r.name for r in page.records] == ["Astralis"]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_search_returns_empty_when_rate_limit_persists():
    calls = []

    def handler(request):
        calls.append(1)
        return _rate_limited()

    assert await _client(handler).search_teams_by_name("liquid") == []
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_search_returns_empty_on_graphql_error():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(200, json={"errors": [{"message": "Cannot query field"}]})

    assert await _client(handler).search_teams_by_name("liquid") == []
    assert len(calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        ({"message": "slow down", "extensions": {"errorDetail": "ENHANCE_YOUR_CALM"}}, RateLimitError),
        ({"message": "Rate limit exceeded"}, RateLimitError),
        ({"message": "bad key", "extensions": {"errorType": "UNAUTHENTICATED"}}, AuthenticationError),
        ({"message": "Cannot query field"}, GridClientError),
    ],
)
async def test_graphql_errors_are_classified(error, expected):
    def handler(request):
        return httpx.Response(200, json={"errors": [error]})

    with pytest.raises(expected):
        await _client(handler).fetch_teams_page()


@pytest.mark.asyncio
async def test_http_401_is_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(401)

    with pytest.raises(AuthenticationError):
        await _client(handler).fetch_teams_page()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_errors_are_retried():
    responses = [httpx.Response(503), httpx.Response(200, json=_page(["Astralis"]))]

    def handler(request):
        return responses.pop(0)

    page = await _client(handler).fetch_teams_page()
    assert [r.name for r in page.records] == ["Astralis"]


@pytest.mark.asyncio
async def test_non_retryable_status_raises_client_error():
    def handler(request):
        return httpx.Response(400)

    with pytest.raises(GridClientError):
        await _client(handler).fetch_teams_page()
