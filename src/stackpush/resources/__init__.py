"""Descriptors for resources stackpush can push."""

from stackpush.resources.base import ResourceDescriptor
from stackpush.resources.function import (
    EnvironmentVariable,
    ExecutionPermission,
    FunctionDefinition,
    FunctionDescriptor,
    VpcConfig,
    function_tags,
)
from stackpush.resources.stack import (
    STACK_CAPABILITIES,
    StackDescriptor,
    derive_stack_name,
    stack_tags,
)

__all__ = [
    "STACK_CAPABILITIES",
    "EnvironmentVariable",
    "ExecutionPermission",
    "FunctionDefinition",
    "FunctionDescriptor",
    "ResourceDescriptor",
    "StackDescriptor",
    "VpcConfig",
    "derive_stack_name",
    "function_tags",
    "stack_tags",
]
