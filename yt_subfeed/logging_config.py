from __future__ import annotations

import logging
import sys
from typing import List, Optional, TextIO

import structlog
from structlog.typing import Processor

LOGGER_NAME = "yt_subfeed"


def configure_logging(level: str = "INFO", *, json_output: bool = False,
                      stream: Optional[TextIO] = None) -> logging.Logger:
    """Configura o logger `yt_subfeed` (stderr por padrão; stdout fica para o JSON do resultado)."""
    stream = stream if stream is not None else sys.stderr

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_log_level(level))
    logger.propagate = False
    _reset_handlers(logger)

    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(_build_formatter(json_output=json_output, enable_colors=_supports_color(stream)))
    logger.addHandler(handler)
    return logger


def _resolve_log_level(raw_level: str) -> int:
    resolved = getattr(logging, raw_level.strip().upper(), None)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _shared_pre_chain() -> List[Processor]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _build_formatter(*, json_output: bool, enable_colors: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=enable_colors)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _supports_color(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except ValueError:
            return False
    return False
