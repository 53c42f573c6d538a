"""Engine-facing handler interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from botocore.exceptions import ClientError

from stackpush.engine.types import ErrorClass
from stackpush.resources.base import ResourceDescriptor

if TYPE_CHECKING:
    from stackpush.core import AwsProvider
    from stackpush.engine.types import ResourceStatus, SubResource

D = TypeVar("D", bound=ResourceDescriptor)

_TRANSIENT_CODES = frozenset(
    {"Throttling", "ThrottlingException", "TooManyRequestsException", "RequestLimitExceeded"}
)


@dataclass(frozen=True)
class EngineContext:
    """Context passed to handlers."""

    provider: AwsProvider


def error_code(exc: BaseException) -> str:
    """Return the AWS error code of a botocore ``ClientError`` ("" otherwise)."""
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def error_message(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Message", "")) or str(exc)
    return str(exc)


class ResourceHandler(Generic[D]):
    """Base class for resource handlers.

    Handlers translate descriptors into AWS API calls. The engine only knows
    the create -> already exists -> update contract; everything provider
    specific, including what an error *means*, lives here.
    """

    def create(self, ctx: EngineContext, desired: D) -> None:
        """Submit a create request."""
        raise NotImplementedError

    def update(self, ctx: EngineContext, desired: D) -> None:
        """Submit an update request for an existing resource."""
        raise NotImplementedError

    def status(self, ctx: EngineContext, desired: D) -> list[ResourceStatus]:
        """Current status of every resource tracked for *desired*."""
        raise NotImplementedError

    def describe_resources(self, ctx: EngineContext, desired: D) -> list[SubResource]:
        """Provisioned sub-resources, read once after a successful push."""
        _ = ctx, desired
        return []

    def classify_error(self, exc: Exception) -> ErrorClass:
        """Classify an error raised by :meth:`create` or :meth:`update`.

        The default only recognizes throttling; subclasses add the
        provider's already-exists and nothing-to-do signatures.
        """
        if error_code(exc) in _TRANSIENT_CODES:
            return ErrorClass.TRANSIENT
        return ErrorClass.FATAL
