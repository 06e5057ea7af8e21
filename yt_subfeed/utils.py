# -*- coding: utf-8 -*-
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_iso_now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def parse_rfc3339(value: str) -> datetime:
    """Converte timestamp RFC3339 (com `Z` ou offset) em datetime com fuso."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def try_parse_rfc3339(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None


def as_dict(value: Any) -> Dict[str, Any]:
    """`value` se for dict; senão dict vazio (payload malformado)."""
    return value if isinstance(value, dict) else {}


def ensure_dir(path: str):
    if path:
        os.makedirs(path, exist_ok=True)


def atomic_write_bytes(path_final: str, data: bytes):
    tmp = f"{path_final}.tmp"
    with open(tmp, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path_final)
