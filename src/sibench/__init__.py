"""sibench — probe snapshot-isolation anomalies and throughput under contention."""

from __future__ import annotations

from sibench._internal.config import BenchmarkSettings, load_config
from sibench.engine.runner import BenchmarkRunner
from sibench.metrics.models import Report
from sibench.store.protocol import IsolationMode, Session, SessionFactory

__version__ = "0.1.0"

__all__ = [
    "BenchmarkRunner",
    "BenchmarkSettings",
    "IsolationMode",
    "Report",
    "Session",
    "SessionFactory",
    "load_config",
]
