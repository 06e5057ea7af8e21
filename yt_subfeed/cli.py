"""Interface de linha de comando do agregador de inscrições."""

import os
import sys
import json
import asyncio
import argparse
import logging
from typing import List, Optional

from .config import (
    ACCESS_TOKEN_ENV, ACTIVITY_SOURCES, CHANNEL_CONCURRENCY, DEFAULT_ACTIVITY_SOURCE,
    DEFAULT_LOG_LEVEL, DEFAULT_MAX_CHANNELS, DEFAULT_MAX_RESULTS, DEFAULT_QUOTA_POLICY,
    DEFAULT_RPS, MAX_ATTEMPTS, QUOTA_POLICIES,
)
from .errors import ErrorKind, FeedError, ValidationError
from .io_ndjson import write_ndjson
from .logging_config import configure_logging
from .models import AggregationRequest
from .pipeline import aggregate_subscription_feed

logger = logging.getLogger(__name__)

EXIT_CODES = {
    ErrorKind.VALIDATION: 2,
    ErrorKind.AUTH: 3,
    ErrorKind.QUOTA: 4,
    ErrorKind.BUDGET: 5,
}


def _comma_or_space_list(value: str) -> List[str]:
    """Converte string separada por vírgula/espaço em lista de IDs."""
    value = value.strip()
    if not value:
        return []
    if "," in value:
        return [v.strip() for v in value.split(",") if v.strip()]
    return [v.strip() for v in value.split() if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Monta o parser de argumentos da CLI."""
    p = argparse.ArgumentParser(
        prog="yt-subfeed",
        description="Vídeos recentes dos canais inscritos, gastando o mínimo de quota")
    p.add_argument("--access-token", default=os.getenv(ACCESS_TOKEN_ENV),
                   help=f"Token OAuth (bearer) do usuário (ou env {ACCESS_TOKEN_ENV})")
    p.add_argument("--max-results", type=int, default=DEFAULT_MAX_RESULTS, help="1..100")
    p.add_argument("--max-channels", type=int, default=DEFAULT_MAX_CHANNELS, help="1..50")
    p.add_argument("--published-before", default=None, help="RFC3339, ex.: 2024-05-01T00:00:00Z")
    p.add_argument("--published-after", default=None, help="RFC3339")
    p.add_argument("--exclude", default="",
                   help="ID(s) de vídeo a excluir, separado(s) por vírgula ou espaço")
    p.add_argument("--source", choices=ACTIVITY_SOURCES, default=DEFAULT_ACTIVITY_SOURCE,
                   help="activities (1 unidade/canal) ou search (100 unidades/canal)")
    p.add_argument("--concurrency", type=int, default=CHANNEL_CONCURRENCY)
    p.add_argument("--rps", type=int, default=DEFAULT_RPS, help="0 desativa o limitador")
    p.add_argument("--channel-timeout", type=float, default=None,
                   help="timeout (s) por canal; canal lento conta como vazio")
    p.add_argument("--max-attempts", type=int, default=MAX_ATTEMPTS)
    p.add_argument("--quota-limit", type=int, default=None)
    p.add_argument("--quota-policy", choices=QUOTA_POLICIES, default=DEFAULT_QUOTA_POLICY)
    p.add_argument("--output", default=None,
                   help="grava os vídeos em NDJSON (.gz comprime); sem isso imprime JSON no stdout")
    p.add_argument("--log-level", default=DEFAULT_LOG_LEVEL)
    p.add_argument("--log-json", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Ponto de entrada da CLI e disparo da agregação assíncrona."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)

    if not args.access_token:
        parser.error(f"É necessário fornecer --access-token ou definir {ACCESS_TOKEN_ENV}.")
    if args.concurrency < 1:
        parser.error("--concurrency deve ser >= 1.")
    if args.max_attempts < 1:
        parser.error("--max-attempts deve ser >= 1.")
    if args.quota_limit is not None and args.quota_limit < 0:
        parser.error("--quota-limit deve ser >= 0.")

    try:
        request = AggregationRequest.build(
            args.access_token,
            max_results=args.max_results,
            max_channels=args.max_channels,
            published_before=args.published_before,
            published_after=args.published_after,
            exclude=_comma_or_space_list(args.exclude),
        )
    except ValidationError as exc:
        parser.error(str(exc))

    try:
        result = asyncio.run(
            aggregate_subscription_feed(
                request,
                rps=args.rps or None,
                concurrency=args.concurrency,
                channel_timeout_secs=args.channel_timeout,
                source=args.source,
                quota_limit=args.quota_limit,
                quota_policy=args.quota_policy,
                max_attempts=args.max_attempts,
            )
        )
    except FeedError as exc:
        logger.error("agregação falhou (%s): %s", exc.kind.value, exc)
        return EXIT_CODES.get(exc.kind, 1)

    if args.output:
        n = write_ndjson(args.output, (v.to_dict() for v in result.videos))
        logger.info("%d vídeos gravados em %s", n, args.output)
    else:
        json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
