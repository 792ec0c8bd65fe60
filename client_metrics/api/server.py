"""FastAPI collector that accepts metric batches for local development and tests."""

from __future__ import annotations

import hmac
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from ..models import MetricKind

logger = logging.getLogger(__name__)


class MetricsBatch(BaseModel):
    metrics: List[Dict[str, Any]] = Field(..., min_length=1)


class BatchAck(BaseModel):
    accepted: int
    kind: str


class ReceivedBatch(BaseModel):
    kind: str
    metrics: List[Dict[str, Any]]
    received_at: datetime


class BatchStore:
    """Thread-safe in-memory record of every batch the collector accepted."""

    def __init__(self) -> None:
        self._batches: List[ReceivedBatch] = []
        self._lock = threading.Lock()

    def save(self, kind: MetricKind, metrics: List[Dict[str, Any]]) -> ReceivedBatch:
        batch = ReceivedBatch(kind=kind.value, metrics=metrics, received_at=datetime.now(timezone.utc))
        with self._lock:
            self._batches.append(batch)
        return batch

    def list(self, kind: Optional[str] = None) -> List[ReceivedBatch]:
        with self._lock:
            batches = list(self._batches)
        if kind:
            batches = [batch for batch in batches if batch.kind == kind]
        return batches

    def clear(self) -> int:
        with self._lock:
            removed = len(self._batches)
            self._batches.clear()
        return removed


def create_app(expected_token: Optional[str] = None, store: Optional[BatchStore] = None) -> FastAPI:
    batch_store = store or BatchStore()
    app = FastAPI(title="Client Metrics Collector", version="0.1.0")
    app.state.store = batch_store

    async def require_token(request: Request) -> None:
        if not expected_token:
            return
        header = request.headers.get("authorization", "")
        if not header.lower().startswith("bearer "):
            raise HTTPException(status_code=401, detail="Bearer token required")
        token = header.split(" ", 1)[1].strip()
        if not hmac.compare_digest(token, expected_token):
            raise HTTPException(status_code=401, detail="Invalid token")

    def _accept(kind: MetricKind, body: MetricsBatch) -> BatchAck:
        batch_store.save(kind, body.metrics)
        logger.info("Accepted %d %s metrics", len(body.metrics), kind.value)
        return BatchAck(accepted=len(body.metrics), kind=kind.value)

    @app.post("/metrics", response_model=BatchAck, dependencies=[Depends(require_token)])
    async def post_metrics(body: MetricsBatch) -> BatchAck:
        return _accept(MetricKind.OPERATIONAL, body)

    @app.post("/clientmetrics", response_model=BatchAck, dependencies=[Depends(require_token)])
    async def post_client_metrics(body: MetricsBatch) -> BatchAck:
        return _accept(MetricKind.DIAGNOSTIC, body)

    @app.get("/batches", response_model=List[ReceivedBatch])
    async def list_batches(kind: Optional[str] = None) -> List[ReceivedBatch]:
        return batch_store.list(kind)

    @app.delete("/batches")
    async def clear_batches() -> dict:
        return {"removed": batch_store.clear()}

    return app
