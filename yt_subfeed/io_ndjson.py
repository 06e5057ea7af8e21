# -*- coding: utf-8 -*-
import gzip
import json
import os
from typing import Any, Dict, Iterable

from .utils import atomic_write_bytes, ensure_dir


def write_ndjson(path: str, records: Iterable[Dict[str, Any]]) -> int:
    """Grava uma linha JSON por registro (gzip se o caminho terminar em .gz). Retorna o total."""
    buf = bytearray()
    count = 0
    for obj in records:
        buf += (json.dumps(obj, ensure_ascii=False) + "\n").encode("utf-8")
        count += 1
    data = gzip.compress(bytes(buf)) if path.endswith(".gz") else bytes(buf)
    ensure_dir(os.path.dirname(path))
    atomic_write_bytes(path, data)
    return count
