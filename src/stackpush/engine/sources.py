"""Named property sources merged into the template namespace.

A push resolves an ordered list of sources; each yields one flat layer and
later layers override earlier ones::

    previous-output -> environment file -> CI metadata -> variable broker

Local file layers are optional. The variable broker is not: if it is
configured, its answer must parse or the push is aborted.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import string
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from stackpush.core import properties_file
from stackpush.engine.errors import BrokerParseError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stackpush.core.provider import AwsProvider

logger = logging.getLogger(__name__)

RANDOM_PASSWORD_LENGTH = 20

_ALPHANUMERIC = string.ascii_letters + string.digits
_FLAT_MAPPING = TypeAdapter(dict[str, str])

# CI variable name -> BuildMetadata field.
_BUILD_VARIABLES: dict[str, str] = {
    "buildNumber": "build_number",
    "maven.groupId": "group_id",
    "maven.artifactId": "artifact_id",
    "maven.version": "version",
    "maven.versionId": "version_id",
}


@runtime_checkable
class PropertySource(Protocol):
    """Anything that provides a property layer."""

    name: str

    def load(self) -> dict[str, str]: ...


class PropertyFileSource:
    """A ``.properties`` file layer. A missing file is an empty layer."""

    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        if not self.path.is_file():
            logger.info("No %s", self.path.name)
            return {}
        try:
            layer = properties_file.load(self.path)
        except (OSError, properties_file.PropertiesSyntaxError) as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return {}
        logger.info("Loaded %s", self.path.name)
        return layer


@dataclass(frozen=True)
class BuildMetadata:
    """Build coordinates supplied by the CI server."""

    build_number: str | None = None
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    version_id: str | None = None

    @classmethod
    def from_variables(
        cls, variables: Mapping[str, str], environ: Mapping[str, str] | None = None
    ) -> BuildMetadata:
        """Look up build variables, falling back to ``bamboo_*`` env vars."""
        environ = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for var, field in _BUILD_VARIABLES.items():
            val = variables.get(var)
            if val is None:
                val = environ.get("bamboo_" + var.replace(".", "_"))
            if val:
                values[field] = val
        return cls(**values)

    def as_tags_input(self) -> dict[str, str | None]:
        return {
            "group_id": self.group_id,
            "artifact_id": self.artifact_id,
            "version": self.version,
        }


def random_password(length: int = RANDOM_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


class CiMetadataSource:
    """Custom build variables plus derived keys for the deploy.

    Derived keys: ``RandomPassword`` (fresh on every push), ``BuildId``,
    ``ArtifactId``, ``Version`` and ``DeployEnvironment``.
    """

    name = "ci-metadata"

    def __init__(
        self,
        *,
        environment: str,
        variables: Mapping[str, str] | None = None,
        build: BuildMetadata | None = None,
    ) -> None:
        self.environment = environment
        self.variables = dict(variables or {})
        self.build = build if build is not None else BuildMetadata.from_variables(self.variables)

    def load(self) -> dict[str, str]:
        layer = dict(self.variables)
        layer["RandomPassword"] = random_password()
        if self.build.build_number:
            layer["BuildId"] = f"BUILD{self.build.build_number}"
        if self.build.artifact_id:
            layer["ArtifactId"] = self.build.artifact_id
        if self.build.version_id:
            layer["Version"] = self.build.version_id
        if self.environment:
            layer["DeployEnvironment"] = self.environment
        return layer


class VariableBrokerSource:
    """Region-scoped variables returned by a broker Lambda function."""

    name = "variable-broker"

    def __init__(self, provider: AwsProvider, function_name: str) -> None:
        self.provider = provider
        self.function_name = function_name

    def load(self) -> dict[str, str]:
        response = self.provider.lambda_.invoke(
            FunctionName=self.function_name,
            InvocationType="RequestResponse",
            Payload=json.dumps(self.provider.region.lower()).encode("utf-8"),
        )
        payload = response["Payload"].read().decode("utf-8")
        if response.get("FunctionError"):
            raise BrokerParseError(
                self.function_name, payload, f"function error {response['FunctionError']}"
            )
        try:
            variables = _FLAT_MAPPING.validate_json(payload)
        except ValidationError as e:
            logger.error("Unable to parse variables from %s", payload)
            raise BrokerParseError(self.function_name, payload, str(e)) from e

        for key, value in variables.items():
            logger.info("Injecting %s", key)
            logger.debug("Injecting %s = %s", key, value)
        return variables
