"""Create-or-update convergence engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from stackpush.engine.errors import ProviderRejectedError
from stackpush.engine.handlers import EngineContext
from stackpush.engine.outputs import build_output_record
from stackpush.engine.poller import CancelToken, CompletionPoller, PollPolicy
from stackpush.engine.types import (
    ConvergenceOutcome,
    ConvergenceResult,
    ErrorClass,
    PollState,
    PushResult,
)

if TYPE_CHECKING:
    from stackpush.core import AwsProvider
    from stackpush.engine.handlers import ResourceHandler
    from stackpush.engine.poller import BuildLog
    from stackpush.engine.registry import ResourceTypeRegistry
    from stackpush.engine.types import OutputRecord
    from stackpush.resources.base import ResourceDescriptor

logger = logging.getLogger(__name__)


class ConvergenceEngine:
    """Push one resource: create it, or update it if it exists, then wait.

    The engine never decides what a provider error means; it asks the
    resource handler to classify it.
    """

    def __init__(
        self,
        *,
        provider: AwsProvider,
        registry: ResourceTypeRegistry,
        policy: PollPolicy | None = None,
        token: CancelToken | None = None,
        log: BuildLog | None = None,
    ) -> None:
        self._provider = provider
        self._registry = registry
        self._policy = policy or PollPolicy()
        self._token = token or CancelToken()
        self._log = log

    @property
    def token(self) -> CancelToken:
        return self._token

    def _ctx(self) -> EngineContext:
        return EngineContext(provider=self._provider)

    def _handler(self, desired: ResourceDescriptor) -> ResourceHandler[ResourceDescriptor]:
        return self._registry.get(desired.resource_type).handler

    def _emit(self, message: str) -> None:
        logger.info("%s", message)
        if self._log is not None:
            self._log(message)

    def _failed(
        self, desired: ResourceDescriptor, exc: ClientError | BotoCoreError
    ) -> ConvergenceResult:
        logger.error("Push of %s rejected: %s", desired.address, exc)
        if self._log is not None:
            self._log(str(exc))
        return ConvergenceResult(
            name=desired.name, outcome=ConvergenceOutcome.FAILED, error=str(exc)
        )

    def converge(self, desired: ResourceDescriptor) -> ConvergenceResult:
        """Submit *desired* and classify the immediate response."""
        handler = self._handler(desired)
        ctx = self._ctx()

        try:
            handler.create(ctx, desired)
        except (ClientError, BotoCoreError) as exc:
            if handler.classify_error(exc) is not ErrorClass.ALREADY_EXISTS:
                return self._failed(desired, exc)
            logger.debug("%s already exists, updating", desired.address)
        else:
            logger.debug("Classified %s as created", desired.address)
            return ConvergenceResult(name=desired.name, outcome=ConvergenceOutcome.CREATED)

        try:
            handler.update(ctx, desired)
        except (ClientError, BotoCoreError) as exc:
            if handler.classify_error(exc) is ErrorClass.NO_CHANGES:
                self._emit(f"No updates to apply to {desired.name}, skipping wait")
                return ConvergenceResult(name=desired.name, outcome=ConvergenceOutcome.NOOP)
            return self._failed(desired, exc)

        logger.debug("Classified %s as updated", desired.address)
        return ConvergenceResult(name=desired.name, outcome=ConvergenceOutcome.UPDATED)

    def wait(self, desired: ResourceDescriptor) -> PollState:
        """Block until *desired* reaches a terminal status."""
        handler = self._handler(desired)
        ctx = self._ctx()
        poller = CompletionPoller(policy=self._policy, token=self._token, log=self._log)
        return poller.wait(lambda: handler.status(ctx, desired))

    def collect(self, desired: ResourceDescriptor) -> OutputRecord:
        """Read back the provisioned sub-resources of *desired*."""
        resources = self._handler(desired).describe_resources(self._ctx(), desired)
        return build_output_record(resources)

    def push(self, desired: ResourceDescriptor) -> PushResult:
        """Converge, wait for completion and collect outputs.

        Raises:
            ProviderRejectedError: create/update was rejected.
            ConvergenceFailedError: the resource ended in a failed status.
            PollInterrupted: the wait was canceled.
        """
        logger.info("Pushing %s", desired.address)
        result = self.converge(desired)

        match result.outcome:
            case ConvergenceOutcome.FAILED:
                raise ProviderRejectedError(desired.name, result.error or "")
            case ConvergenceOutcome.NOOP:
                state = PollState.SUCCESS
            case _:
                self._emit(f"{desired.name} {result.outcome.value}, waiting for completion")
                state = self.wait(desired)

        outputs = self.collect(desired)
        return PushResult(name=desired.name, outcome=result.outcome, state=state, outputs=outputs)
