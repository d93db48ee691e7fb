"""Remote caller protocol. Application layer depends on this; infrastructure implements it."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from deploy_console.application.exceptions import (
    RemoteMalformedResponseError,
    RemoteRejectedError,
    RemoteTransportError,
)
from deploy_console.domain.models.cluster import ClusterEndpoint
from deploy_console.domain.models.remote import (
    MalformedResponse,
    RemoteOutcome,
    RemoteRejected,
    RemoteSuccess,
    TransportFailure,
    failure_code_and_message,
)


@dataclass(frozen=True)
class UploadPart:
    """A file streamed as one multipart field."""

    field: str
    filename: str
    path: str
    content_type: str = "application/gzip"


class RemoteCaller(Protocol):
    """One round trip to a cluster management API. Never raises for remote or transport failures."""

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
        ...


def raise_for_outcome(outcome: RemoteOutcome) -> RemoteSuccess:
    """
    Return the success variant or raise the matching ActionError with the normalized
    code. A failure the remote sent without a message keeps message None.
    """
    if isinstance(outcome, RemoteSuccess):
        return outcome
    code, message = failure_code_and_message(outcome)
    if isinstance(outcome, TransportFailure):
        raise RemoteTransportError(message, code=code)
    if isinstance(outcome, RemoteRejected):
        raise RemoteRejectedError(message, code=code)
    if isinstance(outcome, MalformedResponse):
        raise RemoteMalformedResponseError(message, code=code)
    raise TypeError(f"Unknown remote outcome: {type(outcome).__name__}")
