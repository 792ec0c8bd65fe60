"""Client-side telemetry batching engine."""

from .config import MetricsConfig  # noqa: F401
from .engine import EngineState, MetricsEngine  # noqa: F401
from .models import MetricKind, MetricRecord, SessionIdentifiers  # noqa: F401
