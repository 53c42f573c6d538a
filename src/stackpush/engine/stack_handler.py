"""CloudFormation stack handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from stackpush.engine.handlers import ResourceHandler, error_code, error_message
from stackpush.engine.types import ErrorClass, ResourceStatus, SubResource

if TYPE_CHECKING:
    from stackpush.engine.handlers import EngineContext
    from stackpush.resources.stack import StackDescriptor

NO_UPDATES_MESSAGE = "No updates are to be performed"


def is_no_updates_error(exc: Exception) -> bool:
    """True for CloudFormation's "nothing changed" rejection of an update."""
    return NO_UPDATES_MESSAGE in error_message(exc)


class StackHandler(ResourceHandler["StackDescriptor"]):
    """Create/update/describe CloudFormation stacks."""

    @staticmethod
    def _request(desired: StackDescriptor) -> dict[str, Any]:
        return {
            "StackName": desired.name,
            "TemplateBody": desired.body,
            "Parameters": [
                {"ParameterKey": k, "ParameterValue": v} for k, v in desired.parameters.items()
            ],
            "Tags": [{"Key": k, "Value": v} for k, v in desired.tags.items()],
            "Capabilities": list(desired.capabilities),
        }

    def create(self, ctx: EngineContext, desired: StackDescriptor) -> None:
        ctx.provider.cloudformation.create_stack(**self._request(desired))

    def update(self, ctx: EngineContext, desired: StackDescriptor) -> None:
        ctx.provider.cloudformation.update_stack(**self._request(desired))

    def status(self, ctx: EngineContext, desired: StackDescriptor) -> list[ResourceStatus]:
        response = ctx.provider.cloudformation.describe_stacks(StackName=desired.name)
        return [
            ResourceStatus(
                name=stack["StackName"],
                status=stack["StackStatus"],
                reason=stack.get("StackStatusReason"),
            )
            for stack in response.get("Stacks", [])
        ]

    def describe_resources(self, ctx: EngineContext, desired: StackDescriptor) -> list[SubResource]:
        response = ctx.provider.cloudformation.describe_stack_resources(StackName=desired.name)
        return [
            SubResource(
                logical_id=r["LogicalResourceId"],
                physical_id=r.get("PhysicalResourceId", ""),
                resource_type=r["ResourceType"],
            )
            for r in response.get("StackResources", [])
        ]

    def classify_error(self, exc: Exception) -> ErrorClass:
        if error_code(exc) == "AlreadyExistsException":
            return ErrorClass.ALREADY_EXISTS
        if is_no_updates_error(exc):
            return ErrorClass.NO_CHANGES
        return super().classify_error(exc)
