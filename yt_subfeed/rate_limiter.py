# -*- coding: utf-8 -*-
import asyncio
import time
from collections import deque
from typing import Deque


class RateLimiter:
    """Limite simples: até RPS chamadas em qualquer janela deslizante de 1s."""

    def __init__(self, rps: int):
        self.rps = max(1, rps)
        self._stamps: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self):
        async with self._lock:
            while True:
                now = time.monotonic()
                while self._stamps and now - self._stamps[0] >= 1.0:
                    self._stamps.popleft()
                if len(self._stamps) < self.rps:
                    self._stamps.append(now)
                    return
                await asyncio.sleep(1.0 - (now - self._stamps[0]))
