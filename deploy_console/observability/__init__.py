"""Observability layer: in-process metrics. No external SaaS."""

from deploy_console.observability.metrics import MetricsCollector

__all__ = [
    "MetricsCollector",
]
