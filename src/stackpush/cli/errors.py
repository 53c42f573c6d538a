"""Map exceptions to clean stderr messages and exit codes."""

from __future__ import annotations

import typer


def _err(msg: str, *, fg: str | None) -> None:
    """Print a styled message to stderr."""
    typer.echo(typer.style(msg, fg=fg), err=True)


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Print a clean error message to stderr and return an exit code.

    All errors map to exit code 1.  No tracebacks are printed.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    from stackpush.config.loader import ConfigError
    from stackpush.engine.errors import (
        BrokerParseError,
        ConvergenceFailedError,
        PollInterrupted,
        ProviderRejectedError,
    )

    fg = typer.colors.RED if color else None

    if isinstance(exc, ConfigError):
        _err(f"Configuration error: {exc}", fg=fg)
    elif isinstance(exc, BrokerParseError):
        _err(f"Variable broker error: {exc}", fg=fg)
    elif isinstance(exc, ProviderRejectedError):
        _err(f"Push rejected: {exc}", fg=fg)
    elif isinstance(exc, ConvergenceFailedError):
        _err(str(exc), fg=fg)
        if exc.reason:
            _err(f"  Reason: {exc.reason}", fg=fg)
    elif isinstance(exc, PollInterrupted):
        _err(f"{exc}. The push may still be running in AWS.", fg=fg)
    elif isinstance(exc, (ClientError, BotoCoreError)):
        _err(f"AWS error: {exc}", fg=fg)
    else:
        _err(f"Error: {exc}", fg=fg)

    return 1
