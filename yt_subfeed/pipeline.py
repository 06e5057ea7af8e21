# -*- coding: utf-8 -*-
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence

import aiohttp

from .config import (
    ACTIVITIES_PER_CHANNEL,
    ACTIVITY_SOURCES,
    BATCH_SIZE_IDS,
    CHANNEL_CONCURRENCY,
    DEFAULT_ACTIVITY_SOURCE,
    DEFAULT_QUOTA_POLICY,
    DEFAULT_RPS,
    MAX_ATTEMPTS,
    TIMEOUT_SECS,
    YOUTUBE_API_URL,
)
from .errors import UpstreamError
from .models import ActivityEvent, AggregationRequest, AggregationResult, VideoDetail
from .pool import gather_bounded
from .quota import QuotaTracker
from .rate_limiter import RateLimiter
from .youtube_api import (
    UpstreamContext,
    activities_list,
    search_list_videos_of_channel,
    subscriptions_list,
    videos_list_details,
)

logger = logging.getLogger(__name__)


async def enumerate_channels(ctx: UpstreamContext, max_channels: int) -> List[str]:
    """Inscrições do usuário → até `max_channels` IDs de canal (busca 2x para sobrar margem)."""
    channel_ids = await subscriptions_list(ctx, max_results=2 * max_channels)
    return channel_ids[:max_channels]


async def fetch_channel_activities(
    ctx: UpstreamContext,
    channel_id: str,
    *,
    limit: int,
    published_before: Optional[str] = None,
    published_after: Optional[str] = None,
    source: str = DEFAULT_ACTIVITY_SOURCE,
    timeout_secs: Optional[float] = None,
) -> List[ActivityEvent]:
    """Uploads de um canal; qualquer falha vira lista vazia."""
    fetch = activities_list if source == "activities" else search_list_videos_of_channel
    call = fetch(
        ctx, channel_id,
        max_results=limit,
        published_before=published_before,
        published_after=published_after,
    )
    try:
        if timeout_secs is not None:
            return await asyncio.wait_for(call, timeout=timeout_secs)
        return await call
    except asyncio.TimeoutError:
        logger.warning("canal %s: timeout após %.1fs", channel_id, timeout_secs)
    except UpstreamError as exc:
        logger.warning("canal %s: falha ao buscar atividades (%s): %s", channel_id, exc.kind.value, exc)
    except (AttributeError, TypeError) as exc:
        logger.warning("canal %s: resposta malformada: %r", channel_id, exc)
    return []


async def collect_activities(
    ctx: UpstreamContext,
    channel_ids: Sequence[str],
    *,
    limit: int,
    published_before: Optional[str] = None,
    published_after: Optional[str] = None,
    source: str = DEFAULT_ACTIVITY_SOURCE,
    concurrency: int = CHANNEL_CONCURRENCY,
    timeout_secs: Optional[float] = None,
) -> List[ActivityEvent]:
    """Fan-out limitado por canal; junta os eventos na ordem dos canais."""

    async def _one(cid: str) -> List[ActivityEvent]:
        return await fetch_channel_activities(
            ctx, cid,
            limit=limit,
            published_before=published_before,
            published_after=published_after,
            source=source,
            timeout_secs=timeout_secs,
        )

    per_channel = await gather_bounded(channel_ids, _one, concurrency=concurrency)
    events: List[ActivityEvent] = []
    for chunk in per_channel:
        events.extend(chunk)
    return events


def select_video_ids(events: Iterable[ActivityEvent], exclude: Iterable[str] = ()) -> List[str]:
    """IDs únicos (primeira ocorrência) e fora da lista de exclusão."""
    excluded = set(exclude)
    seen = set()
    out: List[str] = []
    for ev in events:
        vid = ev.video_id
        if vid in excluded or vid in seen:
            continue
        seen.add(vid)
        out.append(vid)
    return out


async def fetch_video_details(
    ctx: UpstreamContext,
    video_ids: Sequence[str],
    *,
    batch_size: int = BATCH_SIZE_IDS,
) -> List[VideoDetail]:
    """videos.list em lotes sequenciais; lote com falha é registrado e pulado."""
    out: List[VideoDetail] = []
    for i in range(0, len(video_ids), batch_size):
        chunk = list(video_ids[i : i + batch_size])
        try:
            out.extend(await videos_list_details(ctx, chunk))
        except UpstreamError as exc:
            logger.warning(
                "lote de detalhes %d (%d ids) falhou (%s): %s",
                i // batch_size, len(chunk), exc.kind.value, exc,
            )
        except (AttributeError, TypeError) as exc:
            logger.warning(
                "lote de detalhes %d (%d ids): resposta malformada: %r",
                i // batch_size, len(chunk), exc,
            )
    return out


def assemble_results(details: Iterable[VideoDetail], max_results: int) -> List[VideoDetail]:
    """Dedup por ID, ordena por publishedAt (mais recente primeiro, estável) e corta."""
    unique: List[VideoDetail] = []
    seen = set()
    for d in details:
        if d.video_id in seen:
            continue
        seen.add(d.video_id)
        unique.append(d)
    unique.sort(key=lambda d: d.published_dt, reverse=True)
    return unique[:max_results]


async def _aggregate(ctx: UpstreamContext, request: AggregationRequest, *, source: str,
                     concurrency: int, channel_timeout_secs: Optional[float]) -> AggregationResult:
    # 1) subscriptions.list (falha aqui aborta tudo)
    channel_ids = await enumerate_channels(ctx, request.max_channels)
    logger.info("canais selecionados: %d (max_channels=%d)", len(channel_ids), request.max_channels)

    videos: List[VideoDetail] = []
    if channel_ids:
        # 2) atividades por canal (fan-out limitado)
        events = await collect_activities(
            ctx, channel_ids,
            limit=min(request.max_results, ACTIVITIES_PER_CHANNEL),
            published_before=request.published_before,
            published_after=request.published_after,
            source=source,
            concurrency=concurrency,
            timeout_secs=channel_timeout_secs,
        )
        # 3) exclusão antes dos detalhes: não paga detalhe de vídeo já visto
        video_ids = select_video_ids(events, request.exclude)
        logger.info("uploads encontrados: %d, após dedup/exclusão: %d", len(events), len(video_ids))

        # 4) videos.list em lotes + montagem
        details = await fetch_video_details(ctx, video_ids)
        videos = assemble_results(details, request.max_results)

    return AggregationResult(
        videos=tuple(videos),
        requested_count=request.max_results,
        channels_processed=len(channel_ids),
        quota_units=ctx.quota.used,
        quota_breakdown=ctx.quota.breakdown(),
    )


async def aggregate_subscription_feed(
    request: AggregationRequest,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    base_url: str = YOUTUBE_API_URL,
    rps: Optional[int] = DEFAULT_RPS,
    concurrency: int = CHANNEL_CONCURRENCY,
    channel_timeout_secs: Optional[float] = None,
    source: str = DEFAULT_ACTIVITY_SOURCE,
    quota_limit: Optional[int] = None,
    quota_policy: str = DEFAULT_QUOTA_POLICY,
    max_attempts: int = MAX_ATTEMPTS,
    timeout_secs: float = TIMEOUT_SECS,
) -> AggregationResult:
    """
    Fluxo: subscriptions.list → activities.list por canal → dedup/exclusão
    → videos.list em lotes → ordena e corta.

    Falhas por canal ou por lote não abortam a execução; falha na listagem de
    inscrições sim. `rps=None` desativa o limitador de requisições.
    """
    if source not in ACTIVITY_SOURCES:
        raise ValueError(f"fonte de atividades desconhecida: {source!r}")

    quota = QuotaTracker(limit=quota_limit, policy=quota_policy)
    limiter = RateLimiter(rps=rps) if rps else None

    async def _run(s: aiohttp.ClientSession) -> AggregationResult:
        ctx = UpstreamContext(
            session=s,
            credential=request.credential,
            quota=quota,
            limiter=limiter,
            base_url=base_url.rstrip("/"),
            max_attempts=max_attempts,
            timeout_secs=timeout_secs,
        )
        try:
            return await _aggregate(ctx, request, source=source, concurrency=concurrency,
                                    channel_timeout_secs=channel_timeout_secs)
        finally:
            logger.info("quota consumida: %d unidades %s chamadas=%s", quota.used, quota.breakdown(), quota.calls)

    if session is not None:
        return await _run(session)

    connector = aiohttp.TCPConnector(limit=max(concurrency, 1) + 2, ttl_dns_cache=300)
    async with aiohttp.ClientSession(connector=connector) as s:
        return await _run(s)
