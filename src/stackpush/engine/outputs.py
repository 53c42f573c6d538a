"""Collecting provisioned resource ids for later pipeline stages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stackpush.core import properties_file
from stackpush.engine.types import OutputRecord

if TYPE_CHECKING:
    from pathlib import Path

    from stackpush.engine.types import SubResource

logger = logging.getLogger(__name__)

OUTPUT_KEY_PREFIX = "aws.stack."
TASK_DEFINITION_TYPE = "AWS::ECS::TaskDefinition"


def output_key(logical_id: str) -> str:
    return OUTPUT_KEY_PREFIX + logical_id


def normalize_task_definition(physical_id: str) -> str:
    """Turn a task definition ARN into ``family-revision``.

    >>> normalize_task_definition("arn:aws:ecs:us-east-1:1:task-definition/web:7")
    'web-7'
    """
    return physical_id.rsplit("/", 1)[-1].replace(":", "-")


def build_output_record(resources: list[SubResource]) -> OutputRecord:
    """Key every sub-resource by logical id and extract task definitions."""
    record = OutputRecord()
    for r in resources:
        logger.debug("%s %s", r.resource_type, r.physical_id)
        record.values[output_key(r.logical_id)] = r.physical_id
        if r.resource_type == TASK_DEFINITION_TYPE:
            record.task_definitions.append(normalize_task_definition(r.physical_id))
    return record


def write_output_file(record: OutputRecord, path: Path) -> None:
    """Overwrite *path* with the record's values in properties syntax."""
    properties_file.dump(record.values, path)
    logger.info("Wrote %d outputs to %s", len(record.values), path)
