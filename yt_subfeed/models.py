# -*- coding: utf-8 -*-
"""Tipos de dados do agregador: requisição, eventos, detalhes e resultado."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from .config import (
    DEFAULT_MAX_CHANNELS,
    DEFAULT_MAX_RESULTS,
    MAX_MAX_CHANNELS,
    MAX_MAX_RESULTS,
    MIN_MAX_CHANNELS,
    MIN_MAX_RESULTS,
)
from .errors import ValidationError
from .utils import OLDEST, as_dict, parse_rfc3339, try_parse_rfc3339, utc_iso_now

THUMBNAIL_PREFERENCE = ("high", "medium", "default")


@dataclass(frozen=True)
class Credential:
    """Token bearer opaco; nunca é renovado nem persistido aqui."""

    token: str

    def __repr__(self) -> str:
        return "Credential(token='***')"

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}


def _check_int_range(name: str, value: Any, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(name, "deve ser inteiro")
    if not low <= value <= high:
        raise ValidationError(name, f"deve estar entre {low} e {high}")
    return value


def _check_timestamp(name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "deve ser timestamp RFC3339")
    try:
        parse_rfc3339(value)
    except ValueError:
        raise ValidationError(name, f"timestamp RFC3339 inválido: {value!r}") from None
    return value.strip()


@dataclass(frozen=True)
class AggregationRequest:
    credential: Credential
    max_results: int = DEFAULT_MAX_RESULTS
    max_channels: int = DEFAULT_MAX_CHANNELS
    published_before: Optional[str] = None
    published_after: Optional[str] = None
    exclude: FrozenSet[str] = frozenset()

    @classmethod
    def build(
        cls,
        access_token: str,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        max_channels: int = DEFAULT_MAX_CHANNELS,
        published_before: Optional[str] = None,
        published_after: Optional[str] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> "AggregationRequest":
        """Valida os campos e monta a requisição (nenhuma chamada de rede)."""
        if not isinstance(access_token, str) or not access_token.strip():
            raise ValidationError("access_token", "obrigatório")
        if isinstance(exclude, str):
            raise ValidationError("exclude", "deve ser uma coleção de IDs de vídeo")
        excluded = frozenset(exclude or ())
        if any(not isinstance(vid, str) for vid in excluded):
            raise ValidationError("exclude", "IDs de vídeo devem ser strings")

        before = _check_timestamp("published_before", published_before)
        after = _check_timestamp("published_after", published_after)
        if before and after and parse_rfc3339(after) >= parse_rfc3339(before):
            raise ValidationError("published_after", "deve ser anterior a published_before")

        return cls(
            credential=Credential(access_token.strip()),
            max_results=_check_int_range("max_results", max_results, MIN_MAX_RESULTS, MAX_MAX_RESULTS),
            max_channels=_check_int_range("max_channels", max_channels, MIN_MAX_CHANNELS, MAX_MAX_CHANNELS),
            published_before=before,
            published_after=after,
            exclude=excluded,
        )


def _pick_thumbnail(thumbnails: Any) -> Optional[str]:
    if not isinstance(thumbnails, dict):
        return None
    for size in THUMBNAIL_PREFERENCE:
        info = thumbnails.get(size)
        if isinstance(info, dict) and info.get("url"):
            return info["url"]
    return None


def _thumbnail_urls(thumbnails: Any) -> Dict[str, str]:
    if not isinstance(thumbnails, dict):
        return {}
    return {
        size: info["url"]
        for size, info in thumbnails.items()
        if isinstance(info, dict) and info.get("url")
    }


def _text(snippet: Dict[str, Any], key: str) -> str:
    value = snippet.get(key)
    return value if isinstance(value, str) else ""


def _optional_text(snippet: Dict[str, Any], key: str) -> Optional[str]:
    value = snippet.get(key)
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class ActivityEvent:
    video_id: str
    published_at: str
    title: str = ""
    channel_id: Optional[str] = None
    channel_name: Optional[str] = None
    thumbnails: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_activity(cls, item: Dict[str, Any]) -> Optional["ActivityEvent"]:
        """Item de `activities.list`; None se não for upload ou não tiver videoId."""
        snippet = as_dict(item.get("snippet"))
        if snippet.get("type") != "upload":
            return None
        vid = as_dict(as_dict(item.get("contentDetails")).get("upload")).get("videoId")
        if not vid or not isinstance(vid, str):
            return None
        return cls._from_snippet(vid, snippet)

    @classmethod
    def from_search_result(cls, item: Dict[str, Any]) -> Optional["ActivityEvent"]:
        """Item de `search.list` (type=video)."""
        ident = as_dict(item.get("id"))
        vid = ident.get("videoId")
        if ident.get("kind") != "youtube#video" or not vid or not isinstance(vid, str):
            return None
        return cls._from_snippet(vid, as_dict(item.get("snippet")))

    @classmethod
    def _from_snippet(cls, vid: str, snippet: Dict[str, Any]) -> "ActivityEvent":
        return cls(
            video_id=vid,
            published_at=_text(snippet, "publishedAt"),
            title=_text(snippet, "title"),
            channel_id=_optional_text(snippet, "channelId"),
            channel_name=_optional_text(snippet, "channelTitle"),
            thumbnails=_thumbnail_urls(snippet.get("thumbnails")),
        )


@dataclass(frozen=True)
class VideoDetail:
    video_id: str
    title: str
    description: str
    thumbnail_url: Optional[str]
    duration: Optional[str]
    channel_name: Optional[str]
    published_at: str
    language: str = "unknown"

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> Optional["VideoDetail"]:
        """Item de `videos.list` (part=snippet,contentDetails); None se o registro vier malformado."""
        vid = item.get("id")
        if not vid or not isinstance(vid, str):
            return None
        snippet = item.get("snippet")
        if not isinstance(snippet, dict):
            return None
        content = as_dict(item.get("contentDetails"))
        return cls(
            video_id=vid,
            title=_text(snippet, "title"),
            description=_text(snippet, "description"),
            thumbnail_url=_pick_thumbnail(snippet.get("thumbnails")),
            duration=_optional_text(content, "duration"),
            channel_name=_optional_text(snippet, "channelTitle"),
            published_at=_text(snippet, "publishedAt"),
            language=(
                _optional_text(snippet, "defaultLanguage")
                or _optional_text(snippet, "defaultAudioLanguage")
                or "unknown"
            ),
        )

    @property
    def published_dt(self) -> datetime:
        return try_parse_rfc3339(self.published_at) or OLDEST

    def to_dict(self) -> Dict[str, Any]:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "description": self.description,
            "thumbnailUrl": self.thumbnail_url,
            "duration": self.duration,
            "channelName": self.channel_name,
            "publishedAt": self.published_at,
            "language": self.language,
        }


@dataclass(frozen=True)
class AggregationResult:
    videos: Tuple[VideoDetail, ...]
    requested_count: int
    channels_processed: int
    quota_units: int
    quota_breakdown: Dict[str, int] = field(default_factory=dict)
    generated_at: str = field(default_factory=utc_iso_now)

    @property
    def count(self) -> int:
        return len(self.videos)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "videos": [v.to_dict() for v in self.videos],
            "count": self.count,
            "requestedCount": self.requested_count,
            "channelsProcessed": self.channels_processed,
            "quotaUnits": self.quota_units,
            "quotaBreakdown": dict(self.quota_breakdown),
            "generatedAt": self.generated_at,
        }
