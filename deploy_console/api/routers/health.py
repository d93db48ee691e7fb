# deploy_console/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from deploy_console.api.dependencies import get_endpoint_resolver, get_metrics
from deploy_console.application.endpoint_resolver import EndpointResolver
from deploy_console.config.settings import get_settings
from deploy_console.observability.metrics import MetricsCollector

router = APIRouter()


@router.get("/health")
async def health(
    request: Request,
    resolver: Annotated[EndpointResolver, Depends(get_endpoint_resolver)],
):
    """Health check with correlation ID from request state and the configured clusters."""
    settings = get_settings()
    return {
        "status": "ok",
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
        "clusters": resolver.known_codes(),
    }


@router.get("/metrics")
async def metrics(collector: Annotated[MetricsCollector, Depends(get_metrics)]):
    """In-process counters and latency histograms."""
    return collector.export_metrics()
