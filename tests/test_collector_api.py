"""Collector API tests, including an end-to-end run of the engine over HTTP."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from client_metrics import cli
from client_metrics.api import create_app
from client_metrics.auth import StaticTokenAuthenticator
from client_metrics.clock import SimulatedClock
from client_metrics.config import TransportConfig
from client_metrics.engine import MetricsEngine
from client_metrics.models import SessionIdentifiers
from client_metrics.transport import MetricsClient


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(expected_token="secret"))


def _auth() -> dict:
    return {"Authorization": "Bearer secret"}


def test_rejects_missing_or_wrong_token(client: TestClient) -> None:
    body = {"metrics": [{"metricName": "a"}]}
    assert client.post("/metrics", json=body).status_code == 401
    assert client.post("/metrics", json=body, headers={"Authorization": "Bearer nope"}).status_code == 401


def test_rejects_empty_batch(client: TestClient) -> None:
    resp = client.post("/clientmetrics", json={"metrics": []}, headers=_auth())
    assert resp.status_code == 422


def test_accepts_and_lists_batches(client: TestClient) -> None:
    resp = client.post("/metrics", json={"metrics": [{"metricName": "a"}, {"metricName": "b"}]}, headers=_auth())
    assert resp.status_code == 200
    assert resp.json() == {"accepted": 2, "kind": "operational"}

    client.post("/clientmetrics", json={"metrics": [{"type": "diagnostic-event"}]}, headers=_auth())

    listed = client.get("/batches").json()
    assert [batch["kind"] for batch in listed] == ["operational", "diagnostic"]
    only_diag = client.get("/batches", params={"kind": "diagnostic"}).json()
    assert len(only_diag) == 1

    assert client.delete("/batches").json() == {"removed": 2}
    assert client.get("/batches").json() == []


def test_engine_delivers_both_kinds_to_collector(client: TestClient) -> None:
    transport = MetricsClient(
        StaticTokenAuthenticator("secret"),
        TransportConfig(base_url="http://testserver", max_workers=1),
        http_client=client,
    )
    engine = MetricsEngine(StaticTokenAuthenticator("secret"), transport=transport, clock=SimulatedClock())
    for i in range(3):
        engine.track(f"app.step{i}", {"step": str(i)})
    engine.report_diagnostic(SessionIdentifiers(correlation_id="call-1"), {"audio": {"mos": 4.1}})

    results = [future.result(timeout=10) for future in engine.release()]
    transport.close()

    assert all(result.ok for result in results)
    listed = client.get("/batches").json()
    assert [batch["kind"] for batch in listed] == ["diagnostic", "operational"]
    assert [metric["metricName"] for metric in listed[1]["metrics"]] == ["app.step0", "app.step1", "app.step2"]
    diagnostic = listed[0]["metrics"][0]
    assert diagnostic["type"] == "diagnostic-event"
    assert diagnostic["eventPayload"]["event"]["intervals"] == [{"audio": {"mos": 4.1}}]


def test_cli_emit_posts_metrics(client: TestClient, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "MetricsClient", lambda auth, cfg: MetricsClient(auth, cfg, http_client=client))

    code = cli.run_cli(
        [
            "emit",
            "--base-url",
            "http://testserver",
            "--token",
            "secret",
            "--name",
            "app.start",
            "--field",
            "os=linux",
            "--count",
            "3",
        ]
    )

    assert code == 0
    assert "posted 3 metrics" in capsys.readouterr().out
    listed = client.get("/batches", params={"kind": "operational"}).json()
    assert [metric["tags"] for metric in listed[0]["metrics"]] == [{"os": "linux"}] * 3


def test_cli_emit_reports_rejected_batches(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(cli, "MetricsClient", lambda auth, cfg: MetricsClient(auth, cfg, http_client=client))

    code = cli.run_cli(["emit", "--base-url", "http://testserver", "--name", "app.start", "--field", "a=b"])

    assert code == 1


def test_cli_rejects_malformed_fields() -> None:
    with pytest.raises(SystemExit):
        cli.run_cli(["emit", "--base-url", "http://testserver", "--name", "x", "--field", "novalue"])
