"""Shared fixtures for unit tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from botocore.exceptions import ClientError

from stackpush.config import load

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from stackpush.config.schema import Config

_STACKPUSH_ENV_VARS = (
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_PROFILE",
    "STACKPUSH_PROJECT",
    "STACKPUSH_VARIABLE_BROKER",
    "STACKPUSH_LOG",
)


@pytest.fixture(autouse=True)
def _clean_stackpush_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove AWS_*, STACKPUSH_* and bamboo_* env vars so tests don't leak CI config."""
    for var in _STACKPUSH_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.startswith("bamboo_"):
            monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write stackpush.yaml + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "stackpush.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path)

    return _make


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    """Factory fixture: build a botocore ClientError with a code and message."""

    def _make(code: str, message: str = "", operation: str = "Operation") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _make
