"""Lambda function handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from stackpush.engine.handlers import ResourceHandler, error_code
from stackpush.engine.types import ErrorClass, ResourceStatus, SubResource

if TYPE_CHECKING:
    from stackpush.engine.handlers import EngineContext
    from stackpush.resources.function import FunctionDescriptor

logger = logging.getLogger(__name__)


def _vpc_config(desired: FunctionDescriptor) -> dict[str, list[str]]:
    vpc = desired.definition.vpc_config
    if vpc is None:
        return {"SubnetIds": [], "SecurityGroupIds": []}
    return {"SubnetIds": list(vpc.subnet_ids), "SecurityGroupIds": list(vpc.security_group_ids)}


def _configuration(desired: FunctionDescriptor) -> dict[str, Any]:
    definition = desired.definition
    return {
        "FunctionName": desired.name,
        "Handler": definition.handler,
        "Role": desired.role_arn,
        "Runtime": definition.runtime,
        "Timeout": definition.timeout,
        "MemorySize": definition.memory_size,
        "Environment": {"Variables": definition.environment_map()},
        "VpcConfig": _vpc_config(desired),
    }


class FunctionHandler(ResourceHandler["FunctionDescriptor"]):
    """Create/update/describe Lambda functions and their invoke permission."""

    def create(self, ctx: EngineContext, desired: FunctionDescriptor) -> None:
        request = _configuration(desired)
        request["Code"] = {"ZipFile": desired.code}
        request["Tags"] = dict(desired.tags)
        if desired.kms_key_arn:
            request["KMSKeyArn"] = desired.kms_key_arn

        logger.info("Pushing new Lambda %s", desired.name)
        response = ctx.provider.lambda_.create_function(**request)
        logger.info("Lambda created: %s", response.get("FunctionName", desired.name))
        self._apply_permission(ctx, desired)

    def update(self, ctx: EngineContext, desired: FunctionDescriptor) -> None:
        client = ctx.provider.lambda_
        logger.info("Lambda %s exists, attempting update", desired.name)

        client.update_function_code(FunctionName=desired.name, ZipFile=desired.code)
        # Configuration updates are rejected while the code update is still in flight.
        client.get_waiter("function_updated").wait(FunctionName=desired.name)

        request = _configuration(desired)
        # An empty key ARN puts the function back on the AWS managed key.
        request["KMSKeyArn"] = desired.kms_key_arn
        response = client.update_function_configuration(**request)
        client.tag_resource(Resource=response["FunctionArn"], Tags=dict(desired.tags))
        logger.info("Lambda updated: %s", response.get("FunctionName", desired.name))
        self._apply_permission(ctx, desired)

    def _apply_permission(self, ctx: EngineContext, desired: FunctionDescriptor) -> None:
        permission = desired.permission
        if permission is None:
            return

        client = ctx.provider.lambda_
        logger.info("Resetting execution permissions for %s", desired.name)
        try:
            client.remove_permission(FunctionName=desired.name, StatementId=desired.statement_id)
        except ClientError as e:
            if error_code(e) != "ResourceNotFoundException":
                raise
            logger.info("No existing execution permission on %s, skipping reset", desired.name)

        request: dict[str, Any] = {
            "FunctionName": desired.name,
            "StatementId": desired.statement_id,
            "Action": permission.action,
            "Principal": permission.principal,
        }
        if permission.source_arn:
            request["SourceArn"] = permission.source_arn
        if permission.event_source_token:
            request["EventSourceToken"] = permission.event_source_token
        if permission.qualifier:
            request["Qualifier"] = permission.qualifier
        client.add_permission(**request)

    def status(self, ctx: EngineContext, desired: FunctionDescriptor) -> list[ResourceStatus]:
        config = ctx.provider.lambda_.get_function_configuration(FunctionName=desired.name)
        state = config.get("State", "Active")
        last_update = config.get("LastUpdateStatus", "Successful")

        if state == "Pending":
            status, reason = "CREATE_IN_PROGRESS", config.get("StateReason")
        elif state == "Failed":
            status, reason = "CREATE_FAILED", config.get("StateReason")
        elif last_update == "InProgress":
            status, reason = "UPDATE_IN_PROGRESS", config.get("LastUpdateStatusReason")
        elif last_update == "Failed":
            status, reason = "UPDATE_FAILED", config.get("LastUpdateStatusReason")
        else:
            status, reason = state.upper(), None
        return [ResourceStatus(name=desired.name, status=status, reason=reason)]

    def describe_resources(
        self, ctx: EngineContext, desired: FunctionDescriptor
    ) -> list[SubResource]:
        config = ctx.provider.lambda_.get_function(FunctionName=desired.name)["Configuration"]
        resources = [
            SubResource(
                logical_id="Function",
                physical_id=config["FunctionArn"],
                resource_type="AWS::Lambda::Function",
            ),
            SubResource(
                logical_id="ExecutionRole",
                physical_id=config["Role"],
                resource_type="AWS::IAM::Role",
            ),
        ]
        if config.get("KMSKeyArn"):
            resources.append(
                SubResource(
                    logical_id="KmsKey",
                    physical_id=config["KMSKeyArn"],
                    resource_type="AWS::KMS::Key",
                )
            )
        return resources

    def classify_error(self, exc: Exception) -> ErrorClass:
        if error_code(exc) == "ResourceConflictException":
            return ErrorClass.ALREADY_EXISTS
        return super().classify_error(exc)
