"""Tests for the Lambda FunctionHandler."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from stackpush.core import AwsProvider
from stackpush.engine.function_handler import FunctionHandler
from stackpush.engine.handlers import EngineContext
from stackpush.engine.types import ErrorClass, StatusClass
from stackpush.resources.function import (
    ExecutionPermission,
    FunctionDefinition,
    FunctionDescriptor,
)

if TYPE_CHECKING:
    from collections.abc import Callable

_ARN = "arn:aws:lambda:us-east-1:123456789012:function:orders-handler"
_ROLE = "arn:aws:iam::123456789012:role/orders-handler"


@pytest.fixture
def lam() -> MagicMock:
    client = MagicMock()
    client.create_function.return_value = {"FunctionName": "orders-handler"}
    client.update_function_configuration.return_value = {
        "FunctionName": "orders-handler",
        "FunctionArn": _ARN,
    }
    return client


@pytest.fixture
def ctx(lam: MagicMock) -> EngineContext:
    return EngineContext(provider=AwsProvider.from_clients(region="us-east-1", lambda_=lam))


@pytest.fixture
def handler() -> FunctionHandler:
    return FunctionHandler()


def _function(**overrides: object) -> FunctionDescriptor:
    definition = FunctionDefinition(
        function_name="orders-handler",
        app_name="orders",
        handler="app.handler",
        runtime="python3.12",
        zip_file_name="orders.zip",
        environment=[{"name": "TABLE", "value": "orders"}],
    )
    fields: dict[str, object] = {
        "name": "orders-handler",
        "region": "us-east-1",
        "tags": {"app": "orders"},
        "definition": definition,
        "role_arn": _ROLE,
        "code": b"zip-bytes",
    }
    fields.update(overrides)
    return FunctionDescriptor(**fields)


class TestCreate:
    def test_create_request(
        self, handler: FunctionHandler, ctx: EngineContext, lam: MagicMock
    ) -> None:
        handler.create(ctx, _function())

        _, kwargs = lam.create_function.call_args
        assert kwargs["FunctionName"] == "orders-handler"
        assert kwargs["Role"] == _ROLE
        assert kwargs["Code"] == {"ZipFile": b"zip-bytes"}
        assert kwargs["Environment"] == {"Variables": {"TABLE": "orders"}}
        assert kwargs["VpcConfig"] == {"SubnetIds": [], "SecurityGroupIds": []}
        assert kwargs["Tags"] == {"app": "orders"}
        assert "KMSKeyArn" not in kwargs
        lam.add_permission.assert_not_called()

    def test_create_with_key(
        self, handler: FunctionHandler, ctx: EngineContext, lam: MagicMock
    ) -> None:
        handler.create(ctx, _function(kms_key_arn="arn:aws:kms:us-east-1:1:key/k"))

        _, kwargs = lam.create_function.call_args
        assert kwargs["KMSKeyArn"] == "arn:aws:kms:us-east-1:1:key/k"


class TestUpdate:
    def test_code_then_configuration_then_tags(
        self, handler: FunctionHandler, ctx: EngineContext, lam: MagicMock
    ) -> None:
        handler.update(ctx, _function())

        lam.update_function_code.assert_called_once_with(
            FunctionName="orders-handler", ZipFile=b"zip-bytes"
        )
        lam.get_waiter.assert_called_once_with("function_updated")
        _, kwargs = lam.update_function_configuration.call_args
        assert kwargs["KMSKeyArn"] == ""
        lam.tag_resource.assert_called_once_with(Resource=_ARN, Tags={"app": "orders"})


class TestPermission:
    def test_reset_and_add(
        self, handler: FunctionHandler, ctx: EngineContext, lam: MagicMock
    ) -> None:
        permission = ExecutionPermission(
            principal="events.amazonaws.com",
            source_arn="arn:aws:events:us-east-1:1:rule/nightly",
        )
        handler.create(ctx, _function(permission=permission))

        lam.remove_permission.assert_called_once_with(
            FunctionName="orders-handler", StatementId="orders-handler-InvokePermission"
        )
        lam.add_permission.assert_called_once_with(
            FunctionName="orders-handler",
            StatementId="orders-handler-InvokePermission",
            Action="lambda:InvokeFunction",
            Principal="events.amazonaws.com",
            SourceArn="arn:aws:events:us-east-1:1:rule/nightly",
        )

    def test_missing_statement_is_ignored(
        self,
        handler: FunctionHandler,
        ctx: EngineContext,
        lam: MagicMock,
        client_error: Callable[..., ClientError],
    ) -> None:
        lam.remove_permission.side_effect = client_error(
            "ResourceNotFoundException", "No policy", "RemovePermission"
        )
        permission = ExecutionPermission(principal="s3.amazonaws.com")
        handler.update(ctx, _function(permission=permission))

        lam.add_permission.assert_called_once()

    def test_other_remove_errors_propagate(
        self,
        handler: FunctionHandler,
        ctx: EngineContext,
        lam: MagicMock,
        client_error: Callable[..., ClientError],
    ) -> None:
        lam.remove_permission.side_effect = client_error(
            "AccessDeniedException", "denied", "RemovePermission"
        )
        with pytest.raises(ClientError, match="denied"):
            handler.create(ctx, _function(permission=ExecutionPermission(principal="x")))


class TestStatus:
    @pytest.mark.parametrize(
        ("config", "expected", "status_class"),
        [
            ({"State": "Pending"}, "CREATE_IN_PROGRESS", StatusClass.IN_PROGRESS),
            ({"State": "Failed", "StateReason": "bad"}, "CREATE_FAILED", StatusClass.FAILURE),
            (
                {"State": "Active", "LastUpdateStatus": "InProgress"},
                "UPDATE_IN_PROGRESS",
                StatusClass.IN_PROGRESS,
            ),
            (
                {"State": "Active", "LastUpdateStatus": "Failed"},
                "UPDATE_FAILED",
                StatusClass.FAILURE,
            ),
            (
                {"State": "Active", "LastUpdateStatus": "Successful"},
                "ACTIVE",
                StatusClass.SUCCESS,
            ),
        ],
    )
    def test_state_mapping(
        self,
        handler: FunctionHandler,
        ctx: EngineContext,
        lam: MagicMock,
        config: dict[str, str],
        expected: str,
        status_class: StatusClass,
    ) -> None:
        lam.get_function_configuration.return_value = config

        [status] = handler.status(ctx, _function())

        assert status.status == expected
        assert status.status_class is status_class


class TestDescribeResources:
    def test_function_role_and_key(
        self, handler: FunctionHandler, ctx: EngineContext, lam: MagicMock
    ) -> None:
        lam.get_function.return_value = {
            "Configuration": {
                "FunctionArn": _ARN,
                "Role": _ROLE,
                "KMSKeyArn": "arn:aws:kms:us-east-1:1:key/k",
            }
        }

        resources = handler.describe_resources(ctx, _function())

        assert [r.logical_id for r in resources] == ["Function", "ExecutionRole", "KmsKey"]
        assert resources[0].physical_id == _ARN


class TestClassifyError:
    def test_conflict_means_exists(
        self, handler: FunctionHandler, client_error: Callable[..., ClientError]
    ) -> None:
        exc = client_error("ResourceConflictException", "Function already exist", "CreateFunction")
        assert handler.classify_error(exc) is ErrorClass.ALREADY_EXISTS

    def test_invalid_parameter_is_fatal(
        self, handler: FunctionHandler, client_error: Callable[..., ClientError]
    ) -> None:
        exc = client_error("InvalidParameterValueException", "bad role", "CreateFunction")
        assert handler.classify_error(exc) is ErrorClass.FATAL
