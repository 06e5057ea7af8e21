# -*- coding: utf-8 -*-
"""Contador de unidades de quota consumidas numa execução."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .config import DEFAULT_QUOTA_POLICY, ENDPOINT_COSTS, QUOTA_POLICIES
from .errors import QuotaBudgetExceeded

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Acumula o custo (em unidades) das chamadas feitas ao YouTube.

    Política `observe` (padrão): só conta e registra no log.
    Política `enforce`: com `limit` definido, recusa a chamada que
    ultrapassaria o limite levantando `QuotaBudgetExceeded`.
    """

    def __init__(self, *, limit: Optional[int] = None, policy: str = DEFAULT_QUOTA_POLICY):
        if policy not in QUOTA_POLICIES:
            raise ValueError(f"política de quota desconhecida: {policy!r}")
        if limit is not None and limit < 0:
            raise ValueError("limit deve ser >= 0")
        self.limit = limit
        self.policy = policy
        self.used = 0
        self.calls: Dict[str, int] = {}
        self.units: Dict[str, int] = {}
        self._warned = False

    @staticmethod
    def cost_of(endpoint: str) -> int:
        return ENDPOINT_COSTS.get(endpoint, 1)

    def ensure_available(self, endpoint: str) -> None:
        if self.policy != "enforce" or self.limit is None:
            return
        cost = self.cost_of(endpoint)
        if self.used + cost > self.limit:
            raise QuotaBudgetExceeded(endpoint, used=self.used, cost=cost, limit=self.limit)

    def charge(self, endpoint: str) -> int:
        cost = self.cost_of(endpoint)
        self.used += cost
        self.calls[endpoint] = self.calls.get(endpoint, 0) + 1
        self.units[endpoint] = self.units.get(endpoint, 0) + cost
        if self.limit is not None and self.used > self.limit and not self._warned:
            self._warned = True
            logger.warning("quota acima do limite: usado=%d limite=%d", self.used, self.limit)
        return cost

    def breakdown(self) -> Dict[str, int]:
        return dict(self.units)
