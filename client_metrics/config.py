"""Configuration primitives for the client metrics engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

ENV_PREFIX = "CLIENT_METRICS_"


@dataclass
class EngineConfig:
    buffer_limit: int = 50
    flush_interval_seconds: float = 30.0


@dataclass
class TransportConfig:
    base_url: str = "http://localhost:8000"
    timeout: float = 10.0
    max_workers: int = 2


@dataclass
class AuthConfig:
    access_token: Optional[str] = None


@dataclass
class ClientInfoConfig:
    client_type: str = "SDK_CLIENT"
    sub_client_type: str = "MOBILE_APP"
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    client_version: str = "0.1.0"
    user_agent: str = "client-metrics/0.1.0"
    media_engine_version: Optional[str] = None
    network_type: str = "unknown"


@dataclass
class ObservabilityConfig:
    log_level: str = "INFO"


@dataclass
class MetricsConfig:
    engine: EngineConfig
    transport: TransportConfig
    auth: AuthConfig
    client_info: ClientInfoConfig
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @staticmethod
    def default() -> "MetricsConfig":
        return MetricsConfig(
            engine=EngineConfig(),
            transport=TransportConfig(),
            auth=AuthConfig(),
            client_info=ClientInfoConfig(),
            observability=ObservabilityConfig(),
        )

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "MetricsConfig":
        """Overlay ``CLIENT_METRICS_*`` environment variables on the defaults."""
        env = os.environ if environ is None else environ
        cfg = MetricsConfig.default()

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        buffer_limit = _get("BUFFER_LIMIT")
        if buffer_limit is not None:
            cfg.engine.buffer_limit = _parse_number(int, ENV_PREFIX + "BUFFER_LIMIT", buffer_limit)
        interval = _get("FLUSH_INTERVAL_SECONDS")
        if interval is not None:
            cfg.engine.flush_interval_seconds = _parse_number(float, ENV_PREFIX + "FLUSH_INTERVAL_SECONDS", interval)
        base_url = _get("BASE_URL")
        if base_url is not None:
            cfg.transport.base_url = base_url
        timeout = _get("TIMEOUT")
        if timeout is not None:
            cfg.transport.timeout = _parse_number(float, ENV_PREFIX + "TIMEOUT", timeout)
        token = _get("ACCESS_TOKEN")
        if token is not None:
            cfg.auth.access_token = token
        client_version = _get("CLIENT_VERSION")
        if client_version is not None:
            cfg.client_info.client_version = client_version
        log_level = _get("LOG_LEVEL")
        if log_level is not None:
            cfg.observability.log_level = log_level.upper()
        return cfg


def _parse_number(kind, name: str, raw: str):
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
