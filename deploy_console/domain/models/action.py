"""Domain model for lifecycle actions. Pure business semantics: no HTTP or ORM."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from deploy_console.domain.exceptions import InvalidStateTransitionError


class ActionType(str, Enum):
    PUBLISH = "publish"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    RELOAD = "reload"
    DELETE = "delete"
    CLEAN_EXIT_RECORD = "clean_exit_record"


class RiskLevel(str, Enum):
    """Operator-facing severity tag attached to each audited operation."""

    NORMAL = "NORMAL"
    LIMIT = "LIMIT"
    RISKY = "RISKY"
    HIGH_RISK = "HIGH_RISK"


class ErrorKind(str, Enum):
    """Failure taxonomy of the action pipeline."""

    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    PACKAGE_EMPTY = "PACKAGE_EMPTY"
    REMOTE_TRANSPORT_ERROR = "REMOTE_TRANSPORT_ERROR"
    REMOTE_REJECTED = "REMOTE_REJECTED"
    REMOTE_MALFORMED_RESPONSE = "REMOTE_MALFORMED_RESPONSE"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    AUDIT_WRITE_FAILED = "AUDIT_WRITE_FAILED"


class ActionState(str, Enum):
    """Lifecycle of one action pipeline. Transitions are validated."""

    RECEIVED = "received"
    AUDITED = "audited"
    ENDPOINT_RESOLVED = "endpoint_resolved"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SNAPSHOTTED = "snapshotted"
    DONE = "done"


# Allowed transitions: from_state -> set of valid next states
_STATE_TRANSITIONS: Dict[ActionState, FrozenSet[ActionState]] = {
    ActionState.RECEIVED: frozenset({ActionState.AUDITED}),
    ActionState.AUDITED: frozenset({ActionState.ENDPOINT_RESOLVED, ActionState.FAILED}),
    # FAILED here covers publish pre-dispatch steps (package receipt, package record)
    ActionState.ENDPOINT_RESOLVED: frozenset({ActionState.DISPATCHED, ActionState.FAILED}),
    ActionState.DISPATCHED: frozenset({ActionState.SUCCEEDED, ActionState.FAILED}),
    ActionState.SUCCEEDED: frozenset({ActionState.SNAPSHOTTED, ActionState.FAILED, ActionState.DONE}),
    ActionState.SNAPSHOTTED: frozenset({ActionState.DONE}),
    ActionState.FAILED: frozenset({ActionState.DONE}),
    ActionState.DONE: frozenset(),
}


def _validate_transition(current: ActionState, new: ActionState) -> None:
    allowed = _STATE_TRANSITIONS.get(current, frozenset())
    if new not in allowed:
        raise InvalidStateTransitionError(
            f"Invalid action state transition from {current.value} to {new.value}"
        )


@dataclass(frozen=True)
class ActionDefinition:
    """Static description of how one action is addressed, timed and audited."""

    op_name: str
    risk_level: RiskLevel
    method: str
    path_template: str
    # None means inherit the remote adapter's default timeout
    default_timeout_ms: Optional[int]
    accepts_timeout_override: bool
    snapshot_after_success: bool


ACTION_CATALOG: Dict[ActionType, ActionDefinition] = {
    ActionType.PUBLISH: ActionDefinition(
        op_name="PUBLISH_APP",
        risk_level=RiskLevel.NORMAL,
        method="POST",
        path_template="/api/publish",
        default_timeout_ms=1_000_000,
        accepts_timeout_override=True,
        snapshot_after_success=True,
    ),
    ActionType.DELETE: ActionDefinition(
        op_name="DELETE_APP",
        risk_level=RiskLevel.RISKY,
        method="POST",
        path_template="/api/delete/{app_id}",
        default_timeout_ms=60_000,
        accepts_timeout_override=True,
        snapshot_after_success=True,
    ),
    ActionType.START: ActionDefinition(
        op_name="START_APP",
        risk_level=RiskLevel.LIMIT,
        method="POST",
        path_template="/api/start/{app_id}",
        default_timeout_ms=60_000,
        accepts_timeout_override=True,
        snapshot_after_success=True,
    ),
    ActionType.STOP: ActionDefinition(
        op_name="STOP_APP",
        risk_level=RiskLevel.RISKY,
        method="POST",
        path_template="/api/stop/{app_id}",
        default_timeout_ms=30_000,
        accepts_timeout_override=False,
        snapshot_after_success=True,
    ),
    ActionType.RESTART: ActionDefinition(
        op_name="RESTART_APP",
        risk_level=RiskLevel.LIMIT,
        method="POST",
        path_template="/api/restart/{app_id}",
        default_timeout_ms=30_000,
        accepts_timeout_override=False,
        snapshot_after_success=False,
    ),
    ActionType.RELOAD: ActionDefinition(
        op_name="RELOAD_APP",
        risk_level=RiskLevel.LIMIT,
        method="POST",
        path_template="/api/reload/{app_id}",
        default_timeout_ms=60_000,
        accepts_timeout_override=False,
        snapshot_after_success=False,
    ),
    ActionType.CLEAN_EXIT_RECORD: ActionDefinition(
        op_name="CLEAN_APP_EXIT_RECORD",
        risk_level=RiskLevel.NORMAL,
        method="DELETE",
        path_template="/api/clean_exit_record/{app_id}",
        default_timeout_ms=None,
        accepts_timeout_override=False,
        snapshot_after_success=False,
    ),
}

# Reserved pseudo-apps are addressed by the remote API without their "_0.0.0_0" suffix.
RESERVED_APP_PATH_IDS: Dict[str, str] = {
    "__PROXY___0.0.0_0": "__PROXY__",
    "__ADMIN___0.0.0_0": "__ADMIN__",
}


def remote_app_id(app_id: str) -> str:
    """App id as it must appear in a remote path."""
    return RESERVED_APP_PATH_IDS.get(app_id, app_id)


def remote_path(action: ActionType, app_id: Optional[str]) -> str:
    template = ACTION_CATALOG[action].path_template
    if "{app_id}" not in template:
        return template
    return template.format(app_id=remote_app_id(app_id or ""))


def effective_timeout_ms(action: ActionType, override_ms: Optional[int]) -> Optional[int]:
    """Caller override where the action accepts one, else the catalog default (None = inherit)."""
    definition = ACTION_CATALOG[action]
    if override_ms and definition.accepts_timeout_override:
        return override_ms
    return definition.default_timeout_ms


@dataclass(frozen=True)
class PackageUpload:
    """Uploaded package handle: original file name plus a readable binary file object."""

    filename: Optional[str]
    file: Any


@dataclass(frozen=True)
class ActionRequest:
    """One operator intent. Immutable; consumed once by the orchestrator."""

    action: ActionType
    cluster_code: str
    actor: str
    client_address: str
    app_id: Optional[str] = None
    timeout_ms: Optional[int] = None
    recover: bool = False
    package: Optional[PackageUpload] = None
    socket: Optional[Dict[str, Any]] = None

    @property
    def definition(self) -> ActionDefinition:
        return ACTION_CATALOG[self.action]


@dataclass
class ActionResult:
    """Normalized outcome. Only code, message and data leave the process."""

    code: str
    message: Optional[str] = None
    data: Any = None
    state: ActionState = ActionState.DONE
    error_kind: Optional[ErrorKind] = None
    remote_succeeded: bool = False

    @property
    def succeeded(self) -> bool:
        return self.code == "SUCCESS"

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code}
        if self.message is not None:
            payload["message"] = self.message
        if self.data is not None:
            payload["data"] = self.data
        return payload


@dataclass
class ActionRun:
    """
    Mutable pipeline tracker for one request.
    State must be changed only via transition_to() to enforce lifecycle rules.
    """

    request: ActionRequest
    state: ActionState = ActionState.RECEIVED
    history: list = field(default_factory=lambda: [ActionState.RECEIVED])

    def transition_to(self, new_state: ActionState) -> None:
        _validate_transition(self.state, new_state)
        self.state = new_state
        self.history.append(new_state)
