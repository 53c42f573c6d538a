"""Lambda function deployment descriptor models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from stackpush.resources.base import ResourceDescriptor


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EnvironmentVariable(_CamelModel):
    name: str
    value: str = ""


class VpcConfig(_CamelModel):
    subnet_ids: list[str] = Field(default_factory=list)
    security_group_ids: list[str] = Field(default_factory=list)


class FunctionDefinition(_CamelModel):
    """Contents of ``lambda_template.json`` / ``lambda_template.yml``."""

    function_name: str = Field(min_length=1)
    app_name: str
    handler: str
    runtime: str
    zip_file_name: str
    timeout: int = 3
    memory_size: int = 128
    environment: list[EnvironmentVariable] = Field(default_factory=list)
    iam_policy: str | None = None
    use_kms: bool = False
    vpc_config: VpcConfig | None = None

    def environment_map(self) -> dict[str, str]:
        return {v.name: v.value for v in self.environment}


class ExecutionPermission(_CamelModel):
    """Contents of ``lambda-execution-permission.json``."""

    action: str = "lambda:InvokeFunction"
    principal: str
    source_arn: str | None = None
    event_source_token: str | None = None
    qualifier: str | None = None


class FunctionDescriptor(ResourceDescriptor):
    """A Lambda function push with its brokered role, key and code."""

    resource_type: ClassVar[str] = "aws_lambda_function"

    definition: FunctionDefinition
    role_arn: str
    code: bytes = Field(repr=False)
    kms_key_arn: str = ""
    permission: ExecutionPermission | None = None

    @property
    def statement_id(self) -> str:
        return f"{self.name}-InvokePermission"


def function_tags(
    definition: FunctionDefinition,
    *,
    app_tag_key: str,
    sbu_tag_key: str,
    sbu: str,
    org_tag_key: str,
    org: str,
) -> dict[str, str]:
    return {
        sbu_tag_key: sbu,
        org_tag_key: org,
        app_tag_key: definition.app_name,
    }
