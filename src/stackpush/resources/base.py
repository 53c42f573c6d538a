"""Base descriptor class for pushed resources."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class ResourceDescriptor(BaseModel):
    """Base class for everything the engine can converge.

    Descriptors are pure data - a fully rendered request.
    Handlers know how to create, update and watch them.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str]

    name: str = Field(min_length=1)
    region: str
    tags: dict[str, str] = Field(default_factory=dict)
    parameters: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'aws_cloudformation_stack.app-dev')."""
        return f"{self.resource_type}.{self.name}"
