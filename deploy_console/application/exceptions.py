"""Application-layer exceptions. Do not reuse domain exceptions."""

from typing import Optional

from deploy_console.domain.models.action import ErrorKind
from deploy_console.domain.models.remote import GENERIC_ERROR


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ActionError(ApplicationError):
    """
    A pipeline step failed. Carries the result code handed back to the operator
    and the taxonomy kind used for logging and metrics.
    """

    kind: ErrorKind = ErrorKind.REMOTE_REJECTED
    default_code: str = GENERIC_ERROR

    def __init__(self, message: Optional[str], code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code


class EndpointNotFoundError(ActionError):
    """Raised when no cluster is configured under the requested code."""

    kind = ErrorKind.ENDPOINT_NOT_FOUND


class PackageEmptyError(ActionError):
    """Raised when a publish carries no package."""

    kind = ErrorKind.PACKAGE_EMPTY
    default_code = "ERROR_APP_PACKAGE_EMPTY"


class UploadFailedError(ActionError):
    """Raised when an uploaded package cannot be received onto local disk."""

    kind = ErrorKind.UPLOAD_FAILED
    default_code = "ERROR_UPLOAD_APP_PACKAGE_FAILED"


class RemoteTransportError(ActionError):
    """Raised when the remote call produced no answer (connect failure, timeout)."""

    kind = ErrorKind.REMOTE_TRANSPORT_ERROR


class RemoteRejectedError(ActionError):
    """Raised when the remote answered with a non-SUCCESS code; carries that code."""

    kind = ErrorKind.REMOTE_REJECTED


class RemoteMalformedResponseError(ActionError):
    """Raised when the remote answer is not a {code, message, data} object."""

    kind = ErrorKind.REMOTE_MALFORMED_RESPONSE


class PersistenceFailedError(ActionError):
    """Raised when a package record cannot be written. Aborts the pipeline."""

    kind = ErrorKind.PERSISTENCE_FAILED
    default_code = "ERROR_SAVE_APP_PACKAGE_FAILED"


class SnapshotFailedError(PersistenceFailedError):
    """Raised when the post-action snapshot fails. The remote action has already happened."""

    default_code = "ERROR_SNAPSHOT_FAILED"
