"""Governance-layer exceptions. Typed, no HTTP."""


class GovernanceError(Exception):
    """Base for all governance-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTimeRangeError(GovernanceError):
    """Raised when an audit query's start date is after its end date."""


class UnknownTimezoneError(GovernanceError):
    """Raised when the configured audit time zone is not a valid IANA name."""
