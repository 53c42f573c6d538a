"""Default resource type registry factory."""

from __future__ import annotations

from stackpush.engine.function_handler import FunctionHandler
from stackpush.engine.registry import ResourceTypeRegistry
from stackpush.engine.stack_handler import StackHandler
from stackpush.resources.function import FunctionDescriptor
from stackpush.resources.stack import StackDescriptor


def default_registry() -> ResourceTypeRegistry:
    """Create a fresh registry with all built-in resource types and handlers."""
    registry = ResourceTypeRegistry()

    registry.register(StackDescriptor, StackHandler())
    registry.register(FunctionDescriptor, FunctionHandler())

    return registry
