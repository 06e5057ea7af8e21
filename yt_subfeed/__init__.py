"""Agregador de vídeos recentes dos canais inscritos, com orçamento de quota."""

from .errors import (
    ErrorKind,
    FeedError,
    QuotaBudgetExceeded,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamTransientError,
    ValidationError,
)
from .models import AggregationRequest, AggregationResult, Credential, VideoDetail
from .pipeline import aggregate_subscription_feed

__all__ = [
    "AggregationRequest",
    "AggregationResult",
    "Credential",
    "ErrorKind",
    "FeedError",
    "QuotaBudgetExceeded",
    "UpstreamAuthError",
    "UpstreamError",
    "UpstreamQuotaError",
    "UpstreamTransientError",
    "ValidationError",
    "VideoDetail",
    "aggregate_subscription_feed",
]
