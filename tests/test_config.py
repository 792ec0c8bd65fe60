from __future__ import annotations

import pytest

from client_metrics.config import MetricsConfig


def test_defaults_match_engine_constants():
    cfg = MetricsConfig.default()
    assert cfg.engine.buffer_limit == 50
    assert cfg.engine.flush_interval_seconds == 30.0
    assert cfg.auth.access_token is None
    assert cfg.observability.log_level == "INFO"


def test_environment_overrides():
    cfg = MetricsConfig.from_env(
        {
            "CLIENT_METRICS_BUFFER_LIMIT": "10",
            "CLIENT_METRICS_FLUSH_INTERVAL_SECONDS": "2.5",
            "CLIENT_METRICS_BASE_URL": "https://collector.local",
            "CLIENT_METRICS_ACCESS_TOKEN": "secret",
            "CLIENT_METRICS_LOG_LEVEL": "debug",
            "CLIENT_METRICS_TIMEOUT": " ",
        }
    )
    assert cfg.engine.buffer_limit == 10
    assert cfg.engine.flush_interval_seconds == 2.5
    assert cfg.transport.base_url == "https://collector.local"
    assert cfg.transport.timeout == 10.0
    assert cfg.auth.access_token == "secret"
    assert cfg.observability.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["fifty", "0", "-3"])
def test_invalid_numbers_are_reported(value):
    with pytest.raises(ValueError, match="CLIENT_METRICS_BUFFER_LIMIT"):
        MetricsConfig.from_env({"CLIENT_METRICS_BUFFER_LIMIT": value})
