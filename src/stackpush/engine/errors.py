"""Engine error types."""

from __future__ import annotations

INTERRUPTED_WHILE_POLLING = "Interrupted while polling"


class EngineError(Exception):
    """Base exception for engine errors."""


class UnknownResourceTypeError(EngineError):
    """Raised when a resource type has no registration/handler."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type


class BrokerParseError(EngineError):
    """Raised when the variable broker response is not a flat string mapping."""

    def __init__(self, function_name: str, payload: str, reason: str) -> None:
        super().__init__(f"Unable to parse variables from {function_name}: {reason}")
        self.function_name = function_name
        self.payload = payload


class ProviderRejectedError(EngineError):
    """Raised when AWS rejects a create or update call.

    Not retried: a malformed template or parameter set needs an operator.
    """

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name} was rejected: {message}")
        self.name = name
        self.message = message


class ConvergenceFailedError(EngineError):
    """Raised when a tracked resource reaches a failed or rolled back status."""

    def __init__(self, name: str, status: str, reason: str | None = None) -> None:
        super().__init__(f"Push of {name} failed - {status}")
        self.name = name
        self.status = status
        self.reason = reason


class PollInterrupted(EngineError):
    """Raised when waiting for completion is interrupted (timeout, Ctrl-C)."""

    def __init__(self, message: str = INTERRUPTED_WHILE_POLLING) -> None:
        super().__init__(message)
