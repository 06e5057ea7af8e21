# -*- coding: utf-8 -*-
from typing import Any, Dict, Optional
import asyncio
import logging

import aiohttp

from .config import MAX_ATTEMPTS, TIMEOUT_SECS
from .errors import UpstreamTransientError, classify_http_error

logger = logging.getLogger(__name__)


def _backoff_delay(attempt: int) -> float:
    return (2 ** attempt) + 0.2 * attempt


async def _read_error_payload(r: aiohttp.ClientResponse) -> Optional[Dict[str, Any]]:
    try:
        data = await r.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        return None
    return data if isinstance(data, dict) else None


async def _get_json_once(
    session: aiohttp.ClientSession,
    url: str,
    params: Dict[str, Any],
    *,
    endpoint: str,
    headers: Optional[Dict[str, str]],
    timeout_secs: float,
) -> Dict[str, Any]:
    timeout = aiohttp.ClientTimeout(total=timeout_secs)
    try:
        async with session.get(url, params=params, headers=headers, timeout=timeout) as r:
            if r.status >= 400:
                raise classify_http_error(endpoint, r.status, await _read_error_payload(r))
            try:
                data = await r.json(content_type=None)
            except ValueError as exc:
                raise UpstreamTransientError(endpoint, f"resposta não é JSON: {exc}", status=r.status) from exc
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise UpstreamTransientError(endpoint, f"falha de rede: {exc!r}") from exc

    if not isinstance(data, dict):
        raise UpstreamTransientError(endpoint, "resposta JSON malformada (esperado objeto)")
    return data


async def http_get_json(
    session: aiohttp.ClientSession,
    url: str,
    params: Dict[str, Any],
    *,
    endpoint: str,
    headers: Optional[Dict[str, str]] = None,
    max_attempts: int = MAX_ATTEMPTS,
    timeout_secs: float = TIMEOUT_SECS,
) -> Dict[str, Any]:
    """GET com backoff exponencial apenas para erros transitórios (429/5xx/rede)."""
    attempt = 0
    while True:
        try:
            return await _get_json_once(
                session, url, params,
                endpoint=endpoint, headers=headers, timeout_secs=timeout_secs,
            )
        except UpstreamTransientError as exc:
            attempt += 1
            if attempt >= max(1, max_attempts):
                raise
            delay = _backoff_delay(attempt - 1)
            logger.warning("retry %s tentativa=%d em %.1fs: %s", endpoint, attempt + 1, delay, exc)
            await asyncio.sleep(delay)
