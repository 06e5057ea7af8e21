# -*- coding: utf-8 -*-
"""Scatter/gather com limite explícito de concorrência."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    concurrency: int,
) -> List[R]:
    """
    Executa `worker(item)` para cada item com no máximo `concurrency` em voo.

    Cada resultado ocupa a posição do seu item (mesma ordem da entrada).
    Se algum worker levantar exceção, os demais são cancelados e a exceção
    é propagada.
    """
    if concurrency < 1:
        raise ValueError("concurrency deve ser >= 1")

    sem = asyncio.Semaphore(concurrency)
    results: List[Optional[R]] = [None] * len(items)

    async def _run(index: int, item: T) -> None:
        async with sem:
            results[index] = await worker(item)

    tasks = [asyncio.ensure_future(_run(i, item)) for i, item in enumerate(items)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results  # type: ignore[return-value]
