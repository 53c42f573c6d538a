"""Convergence engine for pushed resources."""

from stackpush.engine.engine import ConvergenceEngine
from stackpush.engine.errors import (
    BrokerParseError,
    ConvergenceFailedError,
    EngineError,
    PollInterrupted,
    ProviderRejectedError,
    UnknownResourceTypeError,
)
from stackpush.engine.handlers import EngineContext, ResourceHandler
from stackpush.engine.poller import CancelToken, CompletionPoller, PollPolicy
from stackpush.engine.registry import ResourceTypeRegistration, ResourceTypeRegistry
from stackpush.engine.types import (
    ConvergenceOutcome,
    ConvergenceResult,
    ErrorClass,
    OutputRecord,
    PollState,
    PushResult,
    ResourceStatus,
    SubResource,
)

__all__ = [
    "BrokerParseError",
    "CancelToken",
    "CompletionPoller",
    "ConvergenceEngine",
    "ConvergenceFailedError",
    "ConvergenceOutcome",
    "ConvergenceResult",
    "EngineContext",
    "EngineError",
    "ErrorClass",
    "OutputRecord",
    "PollInterrupted",
    "PollPolicy",
    "PollState",
    "ProviderRejectedError",
    "PushResult",
    "ResourceHandler",
    "ResourceStatus",
    "ResourceTypeRegistration",
    "ResourceTypeRegistry",
    "SubResource",
    "UnknownResourceTypeError",
]
