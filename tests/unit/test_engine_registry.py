from typing import ClassVar

import pytest

from stackpush.config.registry import default_registry
from stackpush.engine.errors import UnknownResourceTypeError
from stackpush.engine.function_handler import FunctionHandler
from stackpush.engine.handlers import ResourceHandler
from stackpush.engine.registry import ResourceTypeRegistry
from stackpush.engine.stack_handler import StackHandler
from stackpush.resources.base import ResourceDescriptor


class DummyDescriptor(ResourceDescriptor):
    resource_type: ClassVar[str] = "dummy"


class DummyHandler(ResourceHandler["DummyDescriptor"]):
    pass


def test_registry_register_and_get() -> None:
    registry = ResourceTypeRegistry()
    handler = DummyHandler()

    registry.register(DummyDescriptor, handler)
    reg = registry.get("dummy")

    assert reg.resource_type == "dummy"
    assert reg.model is DummyDescriptor
    assert reg.handler is handler


def test_registry_duplicate_registration() -> None:
    registry = ResourceTypeRegistry()
    handler = DummyHandler()

    registry.register(DummyDescriptor, handler)
    with pytest.raises(ValueError):
        registry.register(DummyDescriptor, handler)


def test_registry_unknown_type() -> None:
    registry = ResourceTypeRegistry()
    with pytest.raises(UnknownResourceTypeError):
        registry.get("missing")


def test_default_registry_handlers() -> None:
    registry = default_registry()
    assert isinstance(registry.get("aws_cloudformation_stack").handler, StackHandler)
    assert isinstance(registry.get("aws_lambda_function").handler, FunctionHandler)


def test_base_handler_has_no_sub_resources() -> None:
    assert DummyHandler().describe_resources(None, None) == []  # type: ignore[arg-type]
