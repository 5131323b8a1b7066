from __future__ import annotations

import asyncio
import time

import httpx

from buckit.config import AppConfig
from buckit.data.reddit import RedditClient

NOW = 1_768_482_000.0
DAY = 86400


def _child(**data) -> dict:
    base = {
        "id": "p1",
        "title": "Gas prices for Friday",
        "selftext": "|Regular| UP 3.6 |162.1|",
        "author": "buckit",
        "permalink": "/r/halifax/comments/p1/gas/",
        "created_utc": NOW - DAY,
    }
    base.update(data)
    return {"kind": "t3", "data": base}


def _listing(*children: dict) -> dict:
    return {"data": {"children": list(children)}}


def _client(handler, config: AppConfig | None = None) -> RedditClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RedditClient(config or AppConfig(), client=http)


class TestFetchBuckitPost:
    def test_returns_first_matching_post(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["ua"] = request.headers.get("user-agent")
            return httpx.Response(200, json=_listing(
                _child(id="other", author="someone_else"),
                _child(id="p1"),
                _child(id="p0", created_utc=NOW - 2 * DAY),
            ))

        post = asyncio.run(_client(handler).fetch_buckit_post(now=NOW))
        assert post.id == "p1"
        assert seen["url"] == "https://www.reddit.com/r/halifax/new.json?limit=100"
        assert seen["ua"] == "buckit/0.1 (fuel price bot)"

    def test_author_case_insensitive(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_listing(_child(author="BuckIt")))

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)).id == "p1"

    def test_title_must_mention_fuel(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_listing(_child(title="Lost cat in Dartmouth")))

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is None

    def test_interrupter_title_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_listing(_child(title="Interrupter clause tonight")))

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is not None

    def test_outside_lookback_ignored(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_listing(_child(created_utc=NOW - 8 * DAY)))

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is None

    def test_lookback_defaults_to_wall_clock(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_listing(_child(created_utc=time.time() - 60)))

        assert asyncio.run(_client(handler).fetch_buckit_post()) is not None

    def test_http_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="busy")

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is None

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is None

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        assert asyncio.run(_client(handler).fetch_buckit_post(now=NOW)) is None


class TestFetchCommunityContext:
    def test_collects_titles_from_each_subreddit(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["t"] == "week"
            assert request.url.params["limit"] == "10"
            sub = request.url.path.split("/")[2]
            return httpx.Response(200, json=_listing(
                {"data": {"title": f"{sub} one"}},
                {"data": {"title": ""}},
                {"data": {"title": f"{sub} two"}},
            ))

        titles = asyncio.run(_client(handler).fetch_community_context())
        assert titles == ["halifax one", "halifax two", "novascotia one", "novascotia two"]

    def test_failed_subreddit_contributes_nothing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "novascotia" in request.url.path:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json=_listing({"data": {"title": "Snow day"}}))

        assert asyncio.run(_client(handler).fetch_community_context()) == ["Snow day"]

    def test_no_subreddits(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no requests expected")

        client = _client(handler, AppConfig(community_subreddits=()))
        assert asyncio.run(client.fetch_community_context()) == []


class TestLifecycle:
    def test_injected_client_not_closed(self) -> None:
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = RedditClient(AppConfig(), client=http)
        asyncio.run(client.close())
        assert not http.is_closed

    def test_start_creates_and_close_releases(self) -> None:
        async def _run() -> None:
            client = RedditClient(AppConfig())
            await client.start()
            assert client._client is not None
            await client.close()
            assert client._client is None

        asyncio.run(_run())
