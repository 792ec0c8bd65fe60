"""Command line helpers for exercising a metrics collector.

Example::

    python -m client_metrics emit --base-url http://localhost:8000 \\
        --name app.start --field platform=linux --count 5
"""

from __future__ import annotations

import argparse
import logging
from concurrent.futures import wait
from typing import Dict, Iterable, List, Optional

from .auth import StaticTokenAuthenticator
from .config import MetricsConfig
from .engine import MetricsEngine
from .transport import MetricsClient

_LOGGER = logging.getLogger("client_metrics.cli")


def _parse_fields(pairs: List[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        fields[key] = value
    return fields


def run_cli(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Client metrics tools")
    sub = parser.add_subparsers(dest="command", required=True)

    emit = sub.add_parser("emit", help="Track sample metrics and flush them to a collector")
    emit.add_argument("--base-url", help="Collector endpoint (defaults to CLIENT_METRICS_BASE_URL)")
    emit.add_argument("--token", help="Bearer token for the collector")
    emit.add_argument("--name", required=True, help="Metric name")
    emit.add_argument("--field", action="append", default=[], help="Metric tag as key=value (repeatable)")
    emit.add_argument("--count", type=int, default=1)
    emit.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for posts to finish")
    emit.set_defaults(handler=_run_emit)

    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        args.fields = _parse_fields(args.field)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    return args.handler(args)


def _run_emit(args: argparse.Namespace) -> int:
    config = MetricsConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.observability.log_level, logging.INFO),
        format="[%(asctime)s] %(levelname)s %(message)s",
    )
    if args.base_url:
        config.transport.base_url = args.base_url
    if args.token:
        config.auth.access_token = args.token

    authenticator = StaticTokenAuthenticator.from_config(config.auth)
    client = MetricsClient(authenticator, config.transport)
    engine = MetricsEngine(authenticator, transport=client, config=config)
    try:
        for _ in range(args.count):
            engine.track(args.name, args.fields)
        futures = engine.release()
        done, not_done = wait(futures, timeout=args.timeout)
    finally:
        client.close(wait=False)

    results = [future.result() for future in done]
    sent = sum(result.count for result in results if result.ok)
    failed = [result for result in results if not result.ok]
    print(f"posted {sent} metrics in {len(results)} batch(es); {len(failed)} failed, {len(not_done)} timed out")
    for result in failed:
        _LOGGER.error("Batch of %d %s metrics failed: %s", result.count, result.kind.value, result.error)
    return 1 if failed or not_done else 0
