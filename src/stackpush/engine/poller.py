"""Waiting for asynchronous provisioning to reach a terminal status."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stackpush.engine.errors import (
    INTERRUPTED_WHILE_POLLING,
    ConvergenceFailedError,
    PollInterrupted,
)
from stackpush.engine.types import PollState, StatusClass

if TYPE_CHECKING:
    from stackpush.engine.types import ResourceStatus

logger = logging.getLogger(__name__)

POLLING_INTERVAL = 10.0

Backoff = Callable[[int], float]
BuildLog = Callable[[str], None]
StatusCheck = Callable[[], "list[ResourceStatus]"]


def fixed_interval(seconds: float) -> Backoff:
    """Wait the same *seconds* before every re-check."""

    def _delay(attempt: int) -> float:
        _ = attempt
        return seconds

    return _delay


def exponential_backoff(base: float, *, factor: float = 2.0, cap: float = 60.0) -> Backoff:
    """Wait ``base * factor**(attempt - 1)`` seconds, never more than *cap*."""

    def _delay(attempt: int) -> float:
        return min(cap, base * factor ** max(attempt - 1, 0))

    return _delay


@dataclass(frozen=True)
class PollPolicy:
    """When to check. ``initial_delay`` runs before the first check so the
    provider has left its pre-update state; ``backoff(n)`` runs before
    re-check ``n``."""

    initial_delay: float = POLLING_INTERVAL
    backoff: Backoff = field(default_factory=lambda: fixed_interval(POLLING_INTERVAL))

    @classmethod
    def fixed(cls, seconds: float) -> PollPolicy:
        return cls(initial_delay=seconds, backoff=fixed_interval(seconds))


class CancelToken:
    """Cancellable timer shared by the poller and whoever may abort it."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if canceled."""
        return self._event.wait(seconds)


class CompletionPoller:
    """Poll status checks until every tracked resource is terminal.

    One failed resource fails the whole wait immediately; the statuses of
    all resources in that check are still reported first.
    """

    def __init__(
        self,
        *,
        policy: PollPolicy | None = None,
        token: CancelToken | None = None,
        log: BuildLog | None = None,
    ) -> None:
        self._policy = policy or PollPolicy()
        self._token = token or CancelToken()
        self._log = log
        self._state = PollState.PENDING

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def token(self) -> CancelToken:
        return self._token

    def _emit(self, message: str) -> None:
        logger.info("%s", message)
        if self._log is not None:
            self._log(message)

    def _interrupted(self) -> PollInterrupted:
        self._state = PollState.FAILURE
        logger.error(INTERRUPTED_WHILE_POLLING)
        if self._log is not None:
            self._log(INTERRUPTED_WHILE_POLLING)
        return PollInterrupted(INTERRUPTED_WHILE_POLLING)

    def _suspend(self, seconds: float) -> None:
        try:
            canceled = self._token.wait(seconds)
        except KeyboardInterrupt as e:
            # Leave the token set so any later wait also stops.
            self._token.cancel()
            raise self._interrupted() from e
        if canceled:
            raise self._interrupted()

    def _evaluate(self, statuses: list[ResourceStatus]) -> PollState:
        failed: ResourceStatus | None = None
        in_progress = False
        for s in statuses:
            self._emit(s.describe())
            match s.status_class:
                case StatusClass.FAILURE:
                    failed = failed or s
                case StatusClass.IN_PROGRESS:
                    in_progress = True
                case StatusClass.SUCCESS:
                    pass

        if failed is not None:
            self._state = PollState.FAILURE
            raise ConvergenceFailedError(failed.name, failed.status, failed.reason)
        return PollState.IN_PROGRESS if in_progress else PollState.SUCCESS

    def wait(self, check: StatusCheck) -> PollState:
        """Block until *check* reports only terminal, non-failed statuses."""
        self._state = PollState.PENDING
        self._emit("Waiting...")
        self._suspend(self._policy.initial_delay)

        attempt = 0
        while True:
            self._state = self._evaluate(check())
            if self._state is PollState.SUCCESS:
                self._emit("done")
                return self._state
            attempt += 1
            self._suspend(self._policy.backoff(attempt))
