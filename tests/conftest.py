from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from yt_subfeed.models import AggregationRequest, AggregationResult
from yt_subfeed.pipeline import aggregate_subscription_feed

GOOD_TOKEN = "good-token"
BASE_TIME = datetime(2024, 5, 1, tzinfo=timezone.utc)


def ts(hours: int) -> str:
    """Timestamp RFC3339 `hours` horas depois de BASE_TIME (maior = mais recente)."""
    return (BASE_TIME + timedelta(hours=hours)).strftime("%Y-%m-%dT%H:%M:%SZ")


def google_error(status: int, reason: str, message: str) -> web.Response:
    return web.json_response(
        {"error": {"code": status, "message": message, "errors": [{"reason": reason, "domain": "youtube"}]}},
        status=status,
    )


def _thumbnails(video_id: str) -> Dict[str, Any]:
    return {
        "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
        "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
    }


class FakeYouTube:
    """YouTube Data API v3 em memória, servido por aiohttp.web."""

    def __init__(self) -> None:
        self.subscriptions: List[str] = []
        self.activities: Dict[str, List[Dict[str, Any]]] = {}
        self.videos: Dict[str, Dict[str, Any]] = {}
        self.failing_channels: Set[str] = set()
        self.failing_video_ids: Set[str] = set()
        self.subscriptions_error: Optional[Tuple[int, str]] = None
        self.channel_delays: Dict[str, float] = {}
        self.activity_delay = 0.0
        self.calls: List[Tuple[str, Dict[str, str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    # ---- montagem dos dados ----

    def subscribe(self, *channel_ids: str) -> None:
        for cid in channel_ids:
            self.subscriptions.append(cid)
            self.activities.setdefault(cid, [])

    def add_upload(self, channel_id: str, video_id: str, published_at: str, *, title: Optional[str] = None) -> None:
        title = title or f"Video {video_id}"
        snippet = {
            "publishedAt": published_at,
            "channelId": channel_id,
            "channelTitle": f"Channel {channel_id}",
            "title": title,
            "thumbnails": _thumbnails(video_id),
        }
        self.activities.setdefault(channel_id, []).append({
            "kind": "youtube#activity",
            "snippet": dict(snippet, type="upload"),
            "contentDetails": {"upload": {"videoId": video_id}},
        })
        self.videos[video_id] = {
            "kind": "youtube#video",
            "id": video_id,
            "snippet": dict(snippet, description=f"About {video_id}", defaultAudioLanguage="en"),
            "contentDetails": {"duration": "PT4M13S"},
        }

    def add_playlist_add(self, channel_id: str, video_id: str, published_at: str) -> None:
        self.activities.setdefault(channel_id, []).append({
            "kind": "youtube#activity",
            "snippet": {
                "publishedAt": published_at,
                "channelId": channel_id,
                "channelTitle": f"Channel {channel_id}",
                "title": f"Added {video_id}",
                "type": "playlistItem",
            },
            "contentDetails": {"playlistItem": {"resourceId": {"kind": "youtube#video", "videoId": video_id}}},
        })

    def calls_to(self, endpoint: str) -> List[Dict[str, str]]:
        return [params for name, params in self.calls if name == endpoint]

    # ---- servidor ----

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/subscriptions", self._subscriptions)
        app.router.add_get("/activities", self._activities)
        app.router.add_get("/search", self._search)
        app.router.add_get("/videos", self._videos)
        return app

    def _denied(self, request: web.Request) -> Optional[web.Response]:
        if request.headers.get("Authorization") != f"Bearer {GOOD_TOKEN}":
            return google_error(401, "authError", "Request had invalid authentication credentials.")
        return None

    async def _subscriptions(self, request: web.Request) -> web.Response:
        self.calls.append(("subscriptions", dict(request.query)))
        denied = self._denied(request)
        if denied is not None:
            return denied
        if self.subscriptions_error is not None:
            status, reason = self.subscriptions_error
            return google_error(status, reason, "subscriptions failed")
        limit = int(request.query.get("maxResults", "5"))
        items = [
            {"kind": "youtube#subscription",
             "snippet": {"resourceId": {"kind": "youtube#channel", "channelId": cid}}}
            for cid in self.subscriptions[:limit]
        ]
        return web.json_response({"kind": "youtube#subscriptionListResponse", "items": items})

    async def _channel_events(self, request: web.Request, endpoint: str):
        self.calls.append((endpoint, dict(request.query)))
        denied = self._denied(request)
        if denied is not None:
            return denied, []
        cid = request.query["channelId"]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.channel_delays.get(cid, self.activity_delay)
            if delay:
                await asyncio.sleep(delay)
        finally:
            self.in_flight -= 1
        if cid in self.failing_channels:
            return google_error(500, "backendError", "Backend Error"), []

        events = sorted(self.activities.get(cid, []), key=lambda a: a["snippet"]["publishedAt"], reverse=True)
        before = request.query.get("publishedBefore")
        after = request.query.get("publishedAfter")
        if before:
            events = [a for a in events if a["snippet"]["publishedAt"] < before]
        if after:
            events = [a for a in events if a["snippet"]["publishedAt"] > after]
        return None, events[: int(request.query.get("maxResults", "5"))]

    async def _activities(self, request: web.Request) -> web.Response:
        error, events = await self._channel_events(request, "activities")
        if error is not None:
            return error
        return web.json_response({"kind": "youtube#activityListResponse", "items": events})

    async def _search(self, request: web.Request) -> web.Response:
        error, events = await self._channel_events(request, "search")
        if error is not None:
            return error
        items = [
            {"kind": "youtube#searchResult",
             "id": {"kind": "youtube#video", "videoId": a["contentDetails"]["upload"]["videoId"]},
             "snippet": {k: v for k, v in a["snippet"].items() if k != "type"}}
            for a in events
            if a["snippet"]["type"] == "upload"
        ]
        return web.json_response({"kind": "youtube#searchListResponse", "items": items})

    async def _videos(self, request: web.Request) -> web.Response:
        self.calls.append(("videos", dict(request.query)))
        denied = self._denied(request)
        if denied is not None:
            return denied
        ids = request.query["id"].split(",")
        if self.failing_video_ids & set(ids):
            return google_error(503, "backendError", "Service unavailable")
        items = [self.videos[v] for v in ids if v in self.videos]
        return web.json_response({"kind": "youtube#videoListResponse", "items": items})


@pytest.fixture
def fake() -> FakeYouTube:
    return FakeYouTube()


@pytest.fixture
def run_feed(fake: FakeYouTube) -> Callable[..., AggregationResult]:
    """Executa aggregate_subscription_feed contra o FakeYouTube."""

    def _run(request: Optional[AggregationRequest] = None, **kwargs: Any) -> AggregationResult:
        request = request or AggregationRequest.build(GOOD_TOKEN)
        kwargs.setdefault("rps", None)

        async def _main() -> AggregationResult:
            async with TestServer(fake.make_app()) as server:
                return await aggregate_subscription_feed(
                    request, base_url=str(server.make_url("/")), **kwargs
                )

        return asyncio.run(_main())

    return _run
