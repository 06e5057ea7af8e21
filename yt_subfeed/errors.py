"""Hierarquia de erros do agregador, com tipo explícito (`ErrorKind`)."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    QUOTA = "quota"
    TRANSIENT = "transient"
    UPSTREAM = "upstream"
    BUDGET = "budget"


class FeedError(Exception):
    kind: ErrorKind = ErrorKind.UPSTREAM


class ValidationError(FeedError):
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class QuotaBudgetExceeded(FeedError):
    """Chamada recusada antes de ser feita: ultrapassaria o limite configurado."""

    kind = ErrorKind.BUDGET

    def __init__(self, endpoint: str, *, used: int, cost: int, limit: int) -> None:
        super().__init__(
            f"orçamento de quota esgotado: {endpoint} custaria {cost} "
            f"(usado={used}, limite={limit})"
        )
        self.endpoint = endpoint
        self.used = used
        self.cost = cost
        self.limit = limit


class UpstreamError(FeedError):
    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        endpoint: str,
        message: str,
        *,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.status = status
        self.reason = reason


class UpstreamAuthError(UpstreamError):
    kind = ErrorKind.AUTH


class UpstreamQuotaError(UpstreamError):
    kind = ErrorKind.QUOTA


class UpstreamTransientError(UpstreamError):
    kind = ErrorKind.TRANSIENT


AUTH_REASONS: FrozenSet[str] = frozenset(
    {"authError", "invalidCredentials", "unauthorized", "expiredToken"}
)
QUOTA_REASONS: FrozenSet[str] = frozenset({"quotaExceeded", "dailyLimitExceeded"})
TRANSIENT_REASONS: FrozenSet[str] = frozenset(
    {"rateLimitExceeded", "userRateLimitExceeded", "backendError", "internalError"}
)


def _error_reasons(payload: Any) -> FrozenSet[str]:
    if not isinstance(payload, dict):
        return frozenset()
    error = payload.get("error")
    if not isinstance(error, dict):
        return frozenset()
    reasons = set()
    for item in error.get("errors") or []:
        if isinstance(item, dict) and item.get("reason"):
            reasons.add(str(item["reason"]))
    return frozenset(reasons)


def _error_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        message = payload["error"].get("message")
        if message:
            return str(message)
    return f"HTTP {status}"


def classify_http_error(endpoint: str, status: int, payload: Optional[Dict[str, Any]]) -> UpstreamError:
    """Mapeia status HTTP + `reason` do corpo de erro do Google para um erro tipado."""
    reasons = _error_reasons(payload)
    message = _error_message(payload, status)
    reason = next(iter(sorted(reasons)), None)

    if reasons & QUOTA_REASONS:
        hit = sorted(reasons & QUOTA_REASONS)[0]
        return UpstreamQuotaError(endpoint, message, status=status, reason=hit)
    if status == 401 or reasons & AUTH_REASONS:
        return UpstreamAuthError(endpoint, message, status=status, reason=reason)
    if status == 429 or status >= 500 or reasons & TRANSIENT_REASONS:
        return UpstreamTransientError(endpoint, message, status=status, reason=reason)
    return UpstreamError(endpoint, message, status=status, reason=reason)
