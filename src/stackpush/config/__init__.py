"""YAML configuration loading and convenience push API."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from ruamel.yaml import YAML

from stackpush.config.loader import ConfigError, load_config
from stackpush.config.registry import default_registry
from stackpush.config.schema import Config, ProviderConfig, TagConfig
from stackpush.core.provider import AwsProvider
from stackpush.engine.brokers import DEFAULT_EXECUTION_POLICY, KeyBroker, RoleBroker, account_from_arn
from stackpush.engine.engine import ConvergenceEngine
from stackpush.engine.outputs import write_output_file
from stackpush.engine.poller import PollPolicy
from stackpush.engine.properties import resolve_sources, substitute, template_parameters
from stackpush.engine.sources import (
    BuildMetadata,
    CiMetadataSource,
    PropertyFileSource,
    VariableBrokerSource,
)
from stackpush.resources.function import (
    ExecutionPermission,
    FunctionDefinition,
    FunctionDescriptor,
    function_tags,
)
from stackpush.resources.stack import StackDescriptor, derive_stack_name, stack_tags

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from stackpush.engine.poller import BuildLog, CancelToken
    from stackpush.engine.sources import PropertySource
    from stackpush.engine.types import PushResult

__all__ = [
    "Config",
    "ConfigError",
    "ProviderConfig",
    "TagConfig",
    "build_function",
    "build_stack",
    "load",
    "load_config",
    "property_sources",
    "push_function",
    "push_stack",
    "resolve_properties",
]

logger = logging.getLogger(__name__)

LAMBDA_TEMPLATE_JSON = "lambda_template.json"
LAMBDA_TEMPLATE_YML = "lambda_template.yml"
LAMBDA_EXECUTION_PERMISSION = "lambda-execution-permission.json"
DEFAULT_IAM_POLICY = "iam-policy.json"


def load(path: Path | str) -> Config:
    """Load a YAML configuration file (or ``stackpush.yaml`` in a directory)."""
    return load_config(path)


def _provider_from_config(config: Config) -> AwsProvider:
    return AwsProvider(region=config.provider.region, profile=config.provider.profile)


def _emit(log: BuildLog | None, message: str) -> None:
    logger.info("%s", message)
    if log is not None:
        log(message)


def property_sources(
    config: Config,
    *,
    environment: str,
    variables: Mapping[str, str] | None = None,
    provider: AwsProvider | None = None,
) -> list[PropertySource]:
    """The property layers of a push, lowest precedence first."""
    sources: list[PropertySource] = [
        PropertyFileSource("previous-output", config.output_file),
        PropertyFileSource("environment", config.environment_file(environment)),
        CiMetadataSource(environment=environment, variables=variables),
    ]
    if config.variable_broker:
        sources.append(
            VariableBrokerSource(provider or _provider_from_config(config), config.variable_broker)
        )
    return sources


def resolve_properties(
    config: Config,
    *,
    environment: str,
    variables: Mapping[str, str] | None = None,
    provider: AwsProvider | None = None,
) -> dict[str, str]:
    return resolve_sources(
        property_sources(config, environment=environment, variables=variables, provider=provider)
    )


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"No {what} found at {path}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {what} {path}: {exc}") from exc


def _engine(
    config: Config,
    provider: AwsProvider,
    *,
    token: CancelToken | None,
    log: BuildLog | None,
) -> ConvergenceEngine:
    return ConvergenceEngine(
        provider=provider,
        registry=default_registry(),
        policy=PollPolicy.fixed(config.poll_interval),
        token=token,
        log=log,
    )


# ---------------------------------------------------------------------------
# CloudFormation stacks
# ---------------------------------------------------------------------------


def build_stack(
    config: Config,
    *,
    environment: str,
    properties: Mapping[str, str],
    build: BuildMetadata | None = None,
) -> StackDescriptor:
    """Render the stack template and derive name, tags and parameters."""
    template = _read_text(config.template_path, "template")
    region = config.provider.region
    name = derive_stack_name(config.project, environment, region)
    tags = stack_tags(
        name,
        environment=environment,
        app_tag_key=config.tags.app_tag_key,
        sbu_tag_key=config.tags.sbu_tag_key,
        sbu=config.tags.sbu,
        company=config.tags.company,
        build=(build or BuildMetadata()).as_tags_input(),
    )
    return StackDescriptor(
        name=name,
        region=region,
        tags=tags,
        parameters=template_parameters(template, properties),
        body=substitute(template, properties),
    )


def push_stack(
    config: Config,
    *,
    environment: str,
    variables: Mapping[str, str] | None = None,
    provider: AwsProvider | None = None,
    token: CancelToken | None = None,
    log: BuildLog | None = None,
) -> PushResult:
    """Converge the configured CloudFormation stack and persist its outputs."""
    provider = provider or _provider_from_config(config)
    variables = dict(variables or {})
    properties = resolve_properties(
        config, environment=environment, variables=variables, provider=provider
    )
    stack = build_stack(
        config,
        environment=environment,
        properties=properties,
        build=BuildMetadata.from_variables(variables),
    )

    result = _engine(config, provider, token=token, log=log).push(stack)

    for task in result.outputs.task_definitions:
        _emit(log, f"Task definition: {task}")
    write_output_file(result.outputs, config.output_file)
    _emit(log, f"Stack {stack.name} {result.outcome.value}, outputs in {config.output_file.name}")
    return result


# ---------------------------------------------------------------------------
# Lambda functions
# ---------------------------------------------------------------------------


def _parse_document(text: str, *, is_json: bool, what: str) -> Any:
    try:
        return json.loads(text) if is_json else YAML(typ="safe").load(text)
    except Exception as exc:
        raise ConfigError(f"Failed to parse {what}: {exc}") from exc


def load_function_definition(
    config: Config, properties: Mapping[str, str], *, log: BuildLog | None = None
) -> FunctionDefinition:
    """Read, render and validate the function deployment descriptor."""
    json_path = config.config_dir / LAMBDA_TEMPLATE_JSON
    yml_path = config.config_dir / LAMBDA_TEMPLATE_YML
    if json_path.is_file():
        path, is_json = json_path, True
    elif yml_path.is_file():
        path, is_json = yml_path, False
    else:
        raise ConfigError("No Lambda template provided!")

    _emit(log, f"Using {path.name}")
    rendered = substitute(_read_text(path, "Lambda template"), properties)
    try:
        return FunctionDefinition.model_validate(
            _parse_document(rendered, is_json=is_json, what=path.name)
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid {path.name}: {exc}") from exc


def load_execution_permission(
    config: Config, properties: Mapping[str, str], *, log: BuildLog | None = None
) -> ExecutionPermission | None:
    path = config.config_dir / LAMBDA_EXECUTION_PERMISSION
    if not path.is_file():
        return None

    _emit(log, f"Using {path.name} for execution permissions")
    rendered = substitute(_read_text(path, "execution permission"), properties)
    try:
        return ExecutionPermission.model_validate(
            _parse_document(rendered, is_json=True, what=path.name)
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid {path.name}: {exc}") from exc


def build_function(
    config: Config,
    *,
    properties: dict[str, str],
    provider: AwsProvider,
    log: BuildLog | None = None,
) -> FunctionDescriptor:
    """Broker role and key, read the code and assemble the function push.

    Adds ``app.iam`` and ``account.id`` to *properties* once the execution
    role is known, so the permission file can reference them.
    """
    definition = load_function_definition(config, properties, log=log)
    tags = function_tags(
        definition,
        app_tag_key=config.tags.app_tag_key,
        sbu_tag_key=config.tags.sbu_tag_key,
        sbu=config.tags.sbu,
        org_tag_key=config.tags.org_tag_key,
        org=config.tags.org,
    )

    policy_path = config.config_dir / (definition.iam_policy or DEFAULT_IAM_POLICY)
    if policy_path.is_file():
        policy = substitute(_read_text(policy_path, "IAM policy"), properties)
    else:
        logger.info("No %s, using the default execution policy", policy_path.name)
        policy = json.dumps(DEFAULT_EXECUTION_POLICY)

    role_arn = RoleBroker(provider).broker(definition.function_name, policy, tags)
    properties["app.iam"] = role_arn
    properties["account.id"] = account_from_arn(role_arn)

    zip_path = config.config_dir / definition.zip_file_name
    try:
        code = zip_path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Failed to read zip file: {definition.zip_file_name}") from exc

    key_broker = KeyBroker(provider)
    if definition.use_kms:
        kms_key_arn = key_broker.broker(definition.function_name, tags)
    else:
        key_broker.retire(definition.function_name)
        kms_key_arn = ""

    return FunctionDescriptor(
        name=definition.function_name,
        region=provider.region,
        tags=tags,
        body=definition.model_dump_json(by_alias=True),
        definition=definition,
        role_arn=role_arn,
        code=code,
        kms_key_arn=kms_key_arn,
        permission=load_execution_permission(config, properties, log=log),
    )


def push_function(
    config: Config,
    *,
    environment: str,
    variables: Mapping[str, str] | None = None,
    provider: AwsProvider | None = None,
    token: CancelToken | None = None,
    log: BuildLog | None = None,
) -> PushResult:
    """Converge the Lambda function described in the working directory."""
    provider = provider or _provider_from_config(config)
    properties = resolve_properties(
        config, environment=environment, variables=variables, provider=provider
    )
    function = build_function(config, properties=properties, provider=provider, log=log)

    result = _engine(config, provider, token=token, log=log).push(function)

    if function.kms_key_arn:
        _emit(log, f"Pushed lambda with kms key {function.kms_key_arn}")
    _emit(log, f"Lambda {function.name} {result.outcome.value}")
    return result
