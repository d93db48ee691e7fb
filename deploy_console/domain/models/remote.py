"""Outcome of one remote management call. A closed set of variants, matched exhaustively."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

SUCCESS = "SUCCESS"
GENERIC_ERROR = "ERROR"


@dataclass(frozen=True)
class RemoteSuccess:
    data: Any = None
    message: Optional[str] = None

    @property
    def status_code(self) -> str:
        return SUCCESS


@dataclass(frozen=True)
class RemoteRejected:
    """The remote answered with its own non-SUCCESS code."""

    code: str
    message: Optional[str] = None
    data: Any = None

    @property
    def status_code(self) -> str:
        return self.code


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a remote answer (connect error, timeout, local I/O)."""

    code: str
    message: str

    @property
    def status_code(self) -> str:
        return self.code


@dataclass(frozen=True)
class MalformedResponse:
    """The remote answered, but not with a ``{code, message, data}`` object."""

    message: str
    http_status: Optional[int] = None

    @property
    def status_code(self) -> str:
        return GENERIC_ERROR


RemoteOutcome = Union[RemoteSuccess, RemoteRejected, TransportFailure, MalformedResponse]


def failure_code_and_message(outcome: RemoteOutcome) -> Tuple[str, Optional[str]]:
    """Normalize any non-success outcome to (code, message)."""
    if isinstance(outcome, TransportFailure):
        return outcome.code or GENERIC_ERROR, outcome.message
    if isinstance(outcome, RemoteRejected):
        return outcome.code, outcome.message
    if isinstance(outcome, MalformedResponse):
        return GENERIC_ERROR, outcome.message
    if isinstance(outcome, RemoteSuccess):
        raise ValueError("RemoteSuccess has no failure code")
    raise TypeError(f"Unknown remote outcome: {type(outcome).__name__}")
