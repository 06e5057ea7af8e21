"""Wrappers assíncronos para endpoints da YouTube Data API v3 (OAuth bearer)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import aiohttp

from .config import BATCH_SIZE_IDS, MAX_ATTEMPTS, SUBSCRIPTIONS_PAGE_MAX, TIMEOUT_SECS, YOUTUBE_API_URL
from .http_client import http_get_json
from .models import ActivityEvent, Credential, VideoDetail
from .quota import QuotaTracker
from .rate_limiter import RateLimiter
from .utils import as_dict


@dataclass
class UpstreamContext:
    """Tudo que uma chamada ao YouTube precisa; montado por execução, nunca global."""

    session: aiohttp.ClientSession
    credential: Credential
    quota: QuotaTracker
    limiter: Optional[RateLimiter] = None
    base_url: str = YOUTUBE_API_URL
    max_attempts: int = MAX_ATTEMPTS
    timeout_secs: float = TIMEOUT_SECS


async def _get(ctx: UpstreamContext, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
    if ctx.limiter is not None:
        await ctx.limiter.acquire()
    return await http_get_json(
        ctx.session,
        f"{ctx.base_url}/{endpoint}",
        params,
        endpoint=endpoint,
        headers=ctx.credential.headers(),
        max_attempts=ctx.max_attempts,
        timeout_secs=ctx.timeout_secs,
    )


def _items(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = data.get("items")
    if not isinstance(items, list):
        return []
    return [it for it in items if isinstance(it, dict)]


def _time_window(params: Dict[str, Any], published_before: Optional[str], published_after: Optional[str]):
    if published_before:
        params["publishedBefore"] = published_before
    if published_after:
        params["publishedAfter"] = published_after


async def subscriptions_list(ctx: UpstreamContext, *, max_results: int) -> List[str]:
    """IDs dos canais inscritos (`subscriptions.list`, mine=true), na ordem do upstream."""
    params = {
        "part": "snippet",
        "mine": "true",
        "maxResults": min(max_results, SUBSCRIPTIONS_PAGE_MAX),
    }
    ctx.quota.ensure_available("subscriptions")
    ctx.quota.charge("subscriptions")
    data = await _get(ctx, "subscriptions", params)

    channel_ids: List[str] = []
    for it in _items(data):
        cid = as_dict(as_dict(it.get("snippet")).get("resourceId")).get("channelId")
        if cid and isinstance(cid, str) and cid not in channel_ids:
            channel_ids.append(cid)
    return channel_ids


async def activities_list(
    ctx: UpstreamContext,
    channel_id: str,
    *,
    max_results: int,
    published_before: Optional[str] = None,
    published_after: Optional[str] = None,
) -> List[ActivityEvent]:
    """Uploads recentes de um canal via `activities.list` (1 unidade)."""
    params: Dict[str, Any] = {
        "part": "snippet,contentDetails",
        "channelId": channel_id,
        "maxResults": max_results,
    }
    _time_window(params, published_before, published_after)
    ctx.quota.ensure_available("activities")
    ctx.quota.charge("activities")
    data = await _get(ctx, "activities", params)

    events: List[ActivityEvent] = []
    for it in _items(data):
        ev = ActivityEvent.from_activity(it)
        if ev is not None:
            events.append(ev)
    return events


async def search_list_videos_of_channel(
    ctx: UpstreamContext,
    channel_id: str,
    *,
    max_results: int,
    published_before: Optional[str] = None,
    published_after: Optional[str] = None,
    order: str = "date",
) -> List[ActivityEvent]:
    """Vídeos recentes de um canal via `search.list` (100 unidades; modo legado)."""
    params: Dict[str, Any] = {
        "part": "snippet",
        "channelId": channel_id,
        "type": "video",
        "order": order,
        "maxResults": max_results,
    }
    _time_window(params, published_before, published_after)
    ctx.quota.ensure_available("search")
    ctx.quota.charge("search")
    data = await _get(ctx, "search", params)

    events: List[ActivityEvent] = []
    for it in _items(data):
        ev = ActivityEvent.from_search_result(it)
        if ev is not None:
            events.append(ev)
    return events


async def videos_list_details(
    ctx: UpstreamContext,
    video_ids: List[str],
    *,
    parts: str = "snippet,contentDetails",
) -> List[VideoDetail]:
    """Detalhes de um lote de até 50 vídeos (`videos.list`); cobra só se a chamada der certo."""
    if not video_ids:
        return []
    if len(video_ids) > BATCH_SIZE_IDS:
        raise ValueError(f"videos.list aceita no máximo {BATCH_SIZE_IDS} IDs por chamada")

    ctx.quota.ensure_available("videos")
    data = await _get(ctx, "videos", {"id": ",".join(video_ids), "part": parts})
    ctx.quota.charge("videos")

    out: List[VideoDetail] = []
    for it in _items(data):
        detail = VideoDetail.from_api(it)
        if detail is not None:
            out.append(detail)
    return out
