"""Domain-specific exceptions. Pure domain layer: no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError):
    """Raised when domain validation rules are violated."""


class InvalidStateTransitionError(DomainError):
    """Raised when an action pipeline state transition is not allowed."""


class InvalidAppIdError(DomainValidationError):
    """Raised when an app id cannot be placed in a remote path (empty, path separators)."""


class InvalidClusterCodeError(DomainValidationError):
    """Raised when cluster code is missing or blank."""
