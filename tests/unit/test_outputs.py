"""Tests for output collection and the output properties file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stackpush.core import properties_file
from stackpush.engine.outputs import (
    build_output_record,
    normalize_task_definition,
    output_key,
    write_output_file,
)
from stackpush.engine.types import OutputRecord, SubResource

if TYPE_CHECKING:
    from pathlib import Path


def test_output_key() -> None:
    assert output_key("Queue") == "aws.stack.Queue"


def test_normalize_task_definition_arn() -> None:
    arn = "arn:aws:ecs:us-east-1:123456789012:task-definition/family:7"
    assert normalize_task_definition(arn) == "family-7"


def test_normalize_short_task_definition() -> None:
    assert normalize_task_definition("family:12") == "family-12"


def test_build_output_record() -> None:
    record = build_output_record(
        [
            SubResource(
                logical_id="Queue",
                physical_id="https://sqs/q",
                resource_type="AWS::SQS::Queue",
            ),
            SubResource(
                logical_id="Web",
                physical_id="arn:aws:ecs:us-east-1:1:task-definition/web:3",
                resource_type="AWS::ECS::TaskDefinition",
            ),
        ]
    )

    assert record.values["aws.stack.Queue"] == "https://sqs/q"
    assert record.values["aws.stack.Web"] == "arn:aws:ecs:us-east-1:1:task-definition/web:3"
    assert record.task_definitions == ["web-3"]


def test_empty_stack_has_no_outputs() -> None:
    assert build_output_record([]) == OutputRecord()


def test_write_output_file_replaces_previous(tmp_path: Path) -> None:
    path = tmp_path / "stackoutput.properties"
    path.write_text("stale=1\n")
    record = OutputRecord(values={"aws.stack.Queue": "https://sqs/q"})

    write_output_file(record, path)

    assert properties_file.load(path) == {"aws.stack.Queue": "https://sqs/q"}
