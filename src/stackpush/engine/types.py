"""Engine types (outcomes, statuses, results)."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ConvergenceOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    NOOP = "no-op"
    FAILED = "failed"


class ErrorClass(str, Enum):
    """How a provider error on create/update should be treated."""

    ALREADY_EXISTS = "already-exists"
    NO_CHANGES = "no-changes"
    TRANSIENT = "transient"
    FATAL = "fatal"


class StatusClass(str, Enum):
    IN_PROGRESS = "in-progress"
    FAILURE = "failure"
    SUCCESS = "success"


class PollState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SUCCESS = "success"
    FAILURE = "failure"


def classify_status(status: str) -> StatusClass:
    """Classify a provider status string by substring.

    ``UPDATE_ROLLBACK_IN_PROGRESS`` is still in progress; it only becomes a
    failure once it settles (``UPDATE_ROLLBACK_COMPLETE``).
    """
    if "IN_PROGRESS" in status:
        return StatusClass.IN_PROGRESS
    if "FAILED" in status or "ROLLBACK" in status:
        return StatusClass.FAILURE
    return StatusClass.SUCCESS


class ResourceStatus(BaseModel):
    """One observed status of a tracked resource."""

    name: str
    status: str
    reason: str | None = None

    @property
    def status_class(self) -> StatusClass:
        return classify_status(self.status)

    def describe(self) -> str:
        if self.reason:
            return f"{self.status} : {self.reason}"
        return self.status


class SubResource(BaseModel):
    """A provisioned resource inside a top-level resource (e.g. a stack)."""

    logical_id: str
    physical_id: str
    resource_type: str


class ConvergenceResult(BaseModel):
    name: str
    outcome: ConvergenceOutcome
    error: str | None = None


class OutputRecord(BaseModel):
    values: dict[str, str] = Field(default_factory=dict)
    task_definitions: list[str] = Field(default_factory=list)


class PushResult(BaseModel):
    name: str
    outcome: ConvergenceOutcome
    state: PollState
    outputs: OutputRecord = Field(default_factory=OutputRecord)
