"""YAML configuration file loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML

from stackpush.config.schema import Config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "stackpush.yaml"


class ConfigError(Exception):
    """Raised for configuration loading / validation errors."""


# Field name → environment variables, first match wins.
_PROVIDER_ENV_MAP: dict[str, tuple[str, ...]] = {
    "region": ("AWS_REGION", "AWS_DEFAULT_REGION"),
    "profile": ("AWS_PROFILE",),
}

_TOP_LEVEL_ENV_MAP: dict[str, str] = {
    "project": "STACKPUSH_PROJECT",
    "variable_broker": "STACKPUSH_VARIABLE_BROKER",
}


def _lookup(env_keys: tuple[str, ...], dotenv_vals: dict[str, str | None]) -> str | None:
    for env_key in env_keys:
        val = os.environ.get(env_key)
        if val is None:
            val = dotenv_vals.get(env_key)
        if val is not None:
            return val
    return None


def _resolve_env(raw: dict[str, Any], config_dir: Path) -> dict[str, Any]:
    """Fill unset provider/top-level fields from env vars and ``.env``.

    Priority (highest wins): YAML value > env var > ``.env`` file.
    """
    env_file = config_dir / ".env"
    dotenv_vals = dotenv_values(env_file, encoding="utf-8-sig") if env_file.is_file() else {}

    raw_provider = raw.get("provider") or {}
    provider: dict[str, Any] = {}
    for field, env_keys in _PROVIDER_ENV_MAP.items():
        val = raw_provider.get(field)
        if val is None:
            val = _lookup(env_keys, dotenv_vals)
        if val is not None:
            provider[field] = val
    raw["provider"] = provider

    for field, env_key in _TOP_LEVEL_ENV_MAP.items():
        if raw.get(field) is None:
            val = _lookup((env_key,), dotenv_vals)
            if val is not None:
                raw[field] = val
    return raw


def load_config(path: Path | str) -> Config:
    """Load a YAML configuration file and return a ``Config`` object.

    Raises:
        ConfigError: On YAML parse errors, missing sections, or validation failures.
    """
    path = Path(path)
    if path.is_dir():
        path = path / DEFAULT_CONFIG_NAME

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    try:
        config = Config.model_validate(_resolve_env(raw, path.parent))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    config.config_dir = path.parent
    logger.info("Loaded config from %s (project %s)", path, config.project)
    return config
