"""CLI command implementations."""

from __future__ import annotations

import os
import threading
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from stackpush.cli import app
from stackpush.cli.errors import handle_error

if TYPE_CHECKING:
    from stackpush.config.schema import Config
    from stackpush.engine.poller import CancelToken
    from stackpush.engine.types import PushResult

DEFAULT_TIMEOUT_MINUTES = 5.0


class Task(str, Enum):
    CFT_PUSH = "cft-push"
    LAMBDA_PUSH = "lambda-push"
    ECS_PUSH = "ecs-push"
    ECR_REPO_CREATE = "ecr-repo-create"
    S3_CREATE = "s3-create"
    NEWRELIC_DEPLOYMENT = "newrelic-deployment"


_IMPLEMENTED = frozenset({Task.CFT_PUSH, Task.LAMBDA_PUSH})

ConfigPath = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to the configuration file (default: stackpush.yaml in --directory).",
    ),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def parse_variables(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``--var KEY=VALUE`` options; later keys win."""
    from stackpush.config.loader import ConfigError

    variables: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Invalid --var '{item}', expected KEY=VALUE")
        variables[key.strip()] = value
    return variables


def _arm_timeout(token: CancelToken, minutes: float) -> threading.Timer | None:
    """Cancel *token* after *minutes*; 0 disables the deadline."""
    if minutes <= 0:
        return None
    timer = threading.Timer(minutes * 60, token.cancel)
    timer.daemon = True
    timer.start()
    return timer


def _push_with_status(
    task: Task,
    cfg: Config,
    *,
    environment: str,
    variables: dict[str, str],
    timeout: float,
    color: bool,
) -> PushResult:
    """Run a push under a Rich status spinner, echoing build-log lines."""
    from rich.console import Console

    from stackpush.config import push_function, push_stack
    from stackpush.engine.poller import CancelToken

    push_fn = push_stack if task is Task.CFT_PUSH else push_function
    console = Console(no_color=not color)
    token = CancelToken()
    timer = _arm_timeout(token, timeout)

    try:
        with console.status(f"{task.value} ({environment})") as status:

            def on_log(line: str) -> None:
                status.update(f"{task.value} ({environment}): {line}")
                console.print(f"  {line}", markup=False, highlight=False)

            return push_fn(
                cfg, environment=environment, variables=variables, token=token, log=on_log
            )
    finally:
        if timer is not None:
            timer.cancel()


@app.command()
def push(
    task: Annotated[Task, typer.Argument(help="What to push.", case_sensitive=False)],
    environment: Annotated[
        str,
        typer.Option("--environment", "-e", help="Deployment environment (e.g. dev, prod)."),
    ],
    directory: Annotated[
        Path,
        typer.Option("--directory", "-d", help="Build directory holding templates and code."),
    ] = Path(),
    timeout: Annotated[
        float,
        typer.Option("--timeout", "-t", min=0, help="Minutes to wait for completion (0: none)."),
    ] = DEFAULT_TIMEOUT_MINUTES,
    var: Annotated[
        list[str] | None,
        typer.Option("--var", help="Custom build variable KEY=VALUE (repeatable)."),
    ] = None,
    config: ConfigPath = None,
    no_color: NoColor = False,
) -> None:
    """Push a CloudFormation stack or Lambda function and wait for it."""
    from stackpush.cli.formatting import format_outputs, format_push_summary
    from stackpush.config import load

    color = _use_color(no_color)

    if task not in _IMPLEMENTED:
        exc = NotImplementedError(f"{task.value} is not yet implemented in CLI")
        raise typer.Exit(handle_error(exc, color=color))

    try:
        variables = parse_variables(var)
        cfg = load(config if config is not None else directory)
        result = _push_with_status(
            task,
            cfg,
            environment=environment,
            variables=variables,
            timeout=timeout,
            color=color,
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo()
    typer.echo(format_push_summary(result, color=color))
    if task is Task.CFT_PUSH:
        typer.echo(format_outputs(result.outputs))


@app.command()
def validate(
    directory: Annotated[
        Path,
        typer.Option("--directory", "-d", help="Build directory holding the configuration."),
    ] = Path(),
    config: ConfigPath = None,
    no_color: NoColor = False,
) -> None:
    """Validate the configuration file."""
    from stackpush.cli.formatting import styler
    from stackpush.config import load

    color = _use_color(no_color)
    try:
        load(config if config is not None else directory)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)("Configuration is valid.", fg="green"))
