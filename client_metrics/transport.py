"""HTTP transport that posts metric batches to the collector."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Protocol, Sequence

import requests

from .auth import Authenticator, auth_headers
from .config import TransportConfig
from .models import MetricKind, SendResult

_LOGGER = logging.getLogger(__name__)

_ENDPOINTS = {
    MetricKind.OPERATIONAL: "/metrics",
    MetricKind.DIAGNOSTIC: "/clientmetrics",
}


class Transport(Protocol):
    def send(self, batch: Sequence[Any], kind: MetricKind) -> "Future[SendResult]":
        ...


class MetricsClient:
    """Posts ``{"metrics": [...]}`` bodies on a small worker pool.

    ``send`` returns immediately; the future always resolves to a
    ``SendResult`` and never carries an exception from the HTTP layer.
    """

    def __init__(
        self,
        authenticator: Optional[Authenticator],
        config: Optional[TransportConfig] = None,
        *,
        http_client: Optional[object] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.config = config or TransportConfig()
        if not self.config.base_url or not self.config.base_url.strip():
            raise ValueError("Transport base_url must be set")
        self.authenticator = authenticator
        self.http_client = http_client if http_client is not None else requests.Session()
        if not callable(getattr(self.http_client, "post", None)):
            raise RuntimeError("HTTP client must provide a post() method")
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="metrics-send",
        )

    def url_for(self, kind: MetricKind) -> str:
        base = self.config.base_url.rstrip("/")
        return f"{base}{_ENDPOINTS[kind]}"

    def send(self, batch: Sequence[Any], kind: MetricKind) -> "Future[SendResult]":
        body = {"metrics": [self._serialize(item) for item in batch]}
        return self._executor.submit(self._post, body, kind)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _post(self, body: Dict[str, Any], kind: MetricKind) -> SendResult:
        count = len(body["metrics"])
        _LOGGER.debug("Posting %d %s metrics to %s", count, kind.value, self.url_for(kind))
        headers = {"Content-Type": "application/json", **auth_headers(self.authenticator)}
        try:
            response = self.http_client.post(
                self.url_for(kind),
                json=body,
                headers=headers,
                timeout=self.config.timeout,
            )
        except (requests.RequestException, OSError) as exc:
            return SendResult(kind=kind, count=count, ok=False, error=str(exc))
        status = getattr(response, "status_code", None)
        if status is None or status >= 400:
            return SendResult(kind=kind, count=count, ok=False, status_code=status, error=f"HTTP {status}")
        return SendResult(kind=kind, count=count, ok=True, status_code=status)

    @staticmethod
    def _serialize(item: Any) -> Dict[str, Any]:
        to_payload = getattr(item, "to_payload", None)
        if callable(to_payload):
            return to_payload()
        if isinstance(item, dict):
            return dict(item)
        raise TypeError(f"Cannot serialize metric item of type {type(item).__name__}")
