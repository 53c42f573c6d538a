"""IAM execution role and KMS key brokering for function pushes.

Both brokers follow the same contract: create the resource if it is
missing, bring it up to date if it exists, and skip (or retire) it when the
push does not ask for it. Each returns the ARN callers should use.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from botocore.exceptions import ClientError

from stackpush.engine.handlers import error_code

if TYPE_CHECKING:
    from stackpush.core import AwsProvider

logger = logging.getLogger(__name__)

LAMBDA_ASSUME_ROLE_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {"Service": "lambda.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}

DEFAULT_EXECUTION_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Action": ["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"],
            "Resource": "*",
        },
        {
            "Effect": "Allow",
            "Action": [
                "ec2:CreateNetworkInterface",
                "ec2:DescribeNetworkInterfaces",
                "ec2:DeleteNetworkInterface",
            ],
            "Resource": "*",
        },
    ],
}

KEY_DELETION_WINDOW_DAYS = 7


def account_from_arn(arn: str) -> str:
    """``arn:aws:iam::123456789012:role/x`` -> ``123456789012``."""
    parts = arn.split(":")
    if len(parts) < 6:
        raise ValueError(f"Not an ARN: {arn}")
    return parts[4]


class RoleBroker:
    """Create or update the execution role of a function."""

    def __init__(self, provider: AwsProvider) -> None:
        self._provider = provider

    def broker(self, role_name: str, policy_document: str, tags: dict[str, str]) -> str:
        iam = self._provider.iam
        logger.info("Brokering execution role with name: %s", role_name)
        assume = json.dumps(LAMBDA_ASSUME_ROLE_POLICY)

        try:
            role = iam.get_role(RoleName=role_name)["Role"]
        except ClientError as e:
            if error_code(e) != "NoSuchEntity":
                raise
            role = iam.create_role(
                RoleName=role_name,
                AssumeRolePolicyDocument=assume,
                Tags=[{"Key": k, "Value": v} for k, v in tags.items()],
            )["Role"]
            logger.info("Created role %s", role["Arn"])
        else:
            iam.update_assume_role_policy(RoleName=role_name, PolicyDocument=assume)
            logger.info("Updated role %s", role["Arn"])

        iam.put_role_policy(
            RoleName=role_name, PolicyName=role_name, PolicyDocument=policy_document
        )
        return role["Arn"]


class KeyBroker:
    """Create, reuse or retire the customer managed key of a function."""

    def __init__(self, provider: AwsProvider) -> None:
        self._provider = provider

    @staticmethod
    def alias_for(name: str) -> str:
        return f"alias/{name}"

    def _existing_key_arn(self, alias: str) -> str | None:
        try:
            return self._provider.kms.describe_key(KeyId=alias)["KeyMetadata"]["Arn"]
        except ClientError as e:
            if error_code(e) != "NotFoundException":
                raise
            return None

    def broker(self, name: str, tags: dict[str, str]) -> str:
        alias = self.alias_for(name)
        existing = self._existing_key_arn(alias)
        if existing is not None:
            logger.info("Using existing key %s for %s", existing, alias)
            return existing

        kms = self._provider.kms
        metadata = kms.create_key(
            Description=f"Key for {name}",
            Tags=[{"TagKey": k, "TagValue": v} for k, v in tags.items()],
        )["KeyMetadata"]
        kms.create_alias(AliasName=alias, TargetKeyId=metadata["KeyId"])
        logger.info("Created key %s with %s", metadata["Arn"], alias)
        return metadata["Arn"]

    def retire(self, name: str) -> None:
        """Schedule deletion of the key behind *name*'s alias, if there is one."""
        alias = self.alias_for(name)
        existing = self._existing_key_arn(alias)
        if existing is None:
            logger.debug("No key behind %s, nothing to retire", alias)
            return

        kms = self._provider.kms
        kms.delete_alias(AliasName=alias)
        kms.schedule_key_deletion(KeyId=existing, PendingWindowInDays=KEY_DELETION_WINDOW_DAYS)
        logger.info("Scheduled deletion of key %s", existing)
