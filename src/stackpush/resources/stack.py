"""CloudFormation stack descriptor and naming."""

from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar

from stackpush.resources.base import ResourceDescriptor

# Templates may declare IAM resources; CloudFormation rejects them without both.
STACK_CAPABILITIES: tuple[str, ...] = ("CAPABILITY_IAM", "CAPABILITY_NAMED_IAM")


class StackDescriptor(ResourceDescriptor):
    """A CloudFormation stack push."""

    resource_type: ClassVar[str] = "aws_cloudformation_stack"
    capabilities: ClassVar[tuple[str, ...]] = STACK_CAPABILITIES


def derive_stack_name(project: str, environment: str, region: str) -> str:
    """Build the stack name for a project/environment pair in *region*.

    >>> derive_stack_name("My Project", "Prod", "us-east-1")
    'my-project-prod-us-east-1'
    """
    name = f"{project.replace(' ', '-')}-{environment.replace(' ', '-')}".lower()
    if region.lower() not in name:
        name = f"{name}-{region.lower()}"
    return name


def stack_tags(
    name: str,
    *,
    environment: str,
    app_tag_key: str,
    sbu_tag_key: str,
    sbu: str,
    company: str,
    build: Mapping[str, str | None],
) -> dict[str, str]:
    """Tags attached to every stack.

    The ``<company>_gav`` coordinate tag is only added when an artifact id is
    known; stacks without build metadata still converge.
    """
    tags = {
        "Name": name,
        app_tag_key: name,
        f"{app_tag_key}_env": environment,
        sbu_tag_key: sbu,
    }
    artifact_id = build.get("artifact_id")
    if artifact_id:
        tags[f"{company}_gav"] = ":".join(
            [build.get("group_id") or "", artifact_id, build.get("version") or ""]
        )
    return tags
