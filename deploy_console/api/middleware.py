"""API middleware: correlation ID, operator context, access log."""

import json
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from deploy_console.core.context import correlation_id_ctx, operator_ctx

logger = logging.getLogger(__name__)

OPERATOR_HEADER = "X-Operator"
CORRELATION_HEADER = "X-Correlation-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

# Routes reachable without an operator identity
PUBLIC_PATHS = frozenset({"/health", "/metrics"})


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class OperatorContextMiddleware(BaseHTTPMiddleware):
    """
    Extract the operator identity set by the upstream auth proxy (X-Operator);
    return 400 if missing on console routes; attach to request.state and logging context.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        operator = (request.headers.get(OPERATOR_HEADER) or "").strip()
        if not operator and request.url.path not in PUBLIC_PATHS:
            return JSONResponse(
                status_code=400,
                content={"detail": f"{OPERATOR_HEADER} header is required"},
            )
        request.state.operator = operator or None
        operator_ctx.set(request.state.operator)
        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """After response: log structured access event (correlation_id, operator, path, method, status_code)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        access_event = {
            "event": "request_access",
            "correlation_id": getattr(request.state, "correlation_id", None),
            "operator": getattr(request.state, "operator", None),
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
        }
        logger.info(json.dumps(access_event))
        return response
