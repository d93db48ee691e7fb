# deploy_console/infrastructure/remote/cluster_client.py

import logging
import time
from typing import Any, Dict, Optional

import httpx

from deploy_console.application.remote_caller import UploadPart
from deploy_console.domain.models.cluster import ClusterEndpoint
from deploy_console.domain.models.remote import (
    GENERIC_ERROR,
    SUCCESS,
    MalformedResponse,
    RemoteOutcome,
    RemoteRejected,
    RemoteSuccess,
    TransportFailure,
)
from deploy_console.observability.metrics import MetricsCollector

TIMEOUT_CODE = "ERROR_REMOTE_TIMEOUT"

logger = logging.getLogger(__name__)


class ClusterClient:
    """
    HTTP client for cluster management APIs. Implements RemoteCaller.
    One request per invoke(), no retries; every failure comes back as a RemoteOutcome.
    """

    def __init__(
        self,
        default_timeout_ms: int = 15000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._default_timeout_ms = default_timeout_ms
        self._transport = transport
        self._metrics = metrics
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def invoke(
        self,
        endpoint: ClusterEndpoint,
        path: str,
        *,
        method: str = "GET",
        timeout_ms: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        upload: Optional[UploadPart] = None,
    ) -> RemoteOutcome:
        url = f"{endpoint.base_address}{path}"
        timeout = httpx.Timeout((timeout_ms or self._default_timeout_ms) / 1000)
        request_headers: Dict[str, str] = {}
        if endpoint.auth_token:
            request_headers["Authorization"] = f"Bearer {endpoint.auth_token}"
        request_headers.update(headers or {})

        client = await self._get_client()
        started = time.monotonic()
        try:
            if upload is not None:
                with open(upload.path, "rb") as fh:
                    response = await client.request(
                        method,
                        url,
                        headers=request_headers,
                        data=body,
                        files={upload.field: (upload.filename, fh, upload.content_type)},
                        timeout=timeout,
                    )
            else:
                response = await client.request(
                    method,
                    url,
                    headers=request_headers,
                    json=body,
                    timeout=timeout,
                )
        except httpx.TimeoutException as e:
            logger.error("remote_call_timeout", extra={"url": url, "method": method, "error": str(e)})
            return TransportFailure(code=TIMEOUT_CODE, message=str(e) or f"request to {url} timed out")
        except httpx.HTTPError as e:
            logger.error("remote_call_failed", extra={"url": url, "method": method, "error": str(e)})
            return TransportFailure(code=GENERIC_ERROR, message=str(e) or type(e).__name__)
        except OSError as e:
            logger.error("remote_upload_unreadable", extra={"url": url, "error": str(e)})
            return TransportFailure(code=GENERIC_ERROR, message=f"cannot read package file: {e}")
        finally:
            if self._metrics is not None:
                self._metrics.observe_latency(
                    "remote_call_ms",
                    (time.monotonic() - started) * 1000,
                    cluster=endpoint.cluster_code,
                )

        return _parse_response(response)


def _parse_response(response: httpx.Response) -> RemoteOutcome:
    """Map a remote answer onto the outcome variants. The body's code decides, not the HTTP status."""
    status = response.status_code
    try:
        payload = response.json()
    except ValueError:
        return MalformedResponse(message=f"non-JSON response from remote (HTTP {status})", http_status=status)
    if not isinstance(payload, dict) or not isinstance(payload.get("code"), str):
        return MalformedResponse(message=f"unexpected response from remote (HTTP {status})", http_status=status)

    code = payload["code"]
    message = payload.get("message")
    if message is not None and not isinstance(message, str):
        message = str(message)
    if code == SUCCESS:
        return RemoteSuccess(data=payload.get("data"), message=message)
    return RemoteRejected(code=code, message=message, data=payload.get("data"))
