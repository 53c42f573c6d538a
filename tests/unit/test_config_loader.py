"""Tests for the YAML configuration loader."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from stackpush.config.loader import DEFAULT_CONFIG_NAME, ConfigError, load_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from stackpush.config.schema import Config

_MINIMAL_YAML = """\
provider:
  region: us-east-1
project: orders
"""


class TestLoadConfig:
    def test_minimal_defaults(self, make_config: Callable[..., Config], tmp_path: Path) -> None:
        cfg = make_config(_MINIMAL_YAML)

        assert cfg.provider.region == "us-east-1"
        assert cfg.provider.profile is None
        assert cfg.project == "orders"
        assert cfg.variable_broker is None
        assert cfg.poll_interval == 10.0
        assert cfg.config_dir == tmp_path
        assert cfg.template_path == tmp_path / "cft.template"
        assert cfg.output_file == tmp_path / "stackoutput.properties"
        assert cfg.environment_file("dev") == tmp_path / "dev.properties"
        assert cfg.tags.app_tag_key == "app"

    def test_full_config(self, make_config: Callable[..., Config], tmp_path: Path) -> None:
        cfg = make_config(
            """\
provider:
  region: eu-west-1
  profile: deploy
project: orders
variable_broker: variable-broker
template: infra/stack.json
output_path: /tmp/outputs/stack.properties
poll_interval: 2.5
tags:
  company: acme
  sbu: retail
  org: platform
"""
        )

        assert cfg.provider.profile == "deploy"
        assert cfg.variable_broker == "variable-broker"
        assert cfg.template_path == tmp_path / "infra" / "stack.json"
        assert cfg.output_file == Path("/tmp/outputs/stack.properties")
        assert cfg.poll_interval == 2.5
        assert cfg.tags.company == "acme"
        assert cfg.tags.sbu == "retail"
        assert cfg.tags.org == "platform"

    def test_explicit_file_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text(_MINIMAL_YAML)

        assert load_config(path).project == "orders"

    def test_directory_uses_default_name(self, tmp_path: Path) -> None:
        (tmp_path / DEFAULT_CONFIG_NAME).write_text(_MINIMAL_YAML)

        assert load_config(tmp_path).config_dir == tmp_path

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            make_config("project: [unclosed\n")

    def test_top_level_must_be_mapping(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            make_config("- a\n- b\n")

    def test_missing_region(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(ConfigError, match="region"):
            make_config("project: orders\n")

    def test_missing_project(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(ConfigError, match="project"):
            make_config("provider:\n  region: us-east-1\n")

    def test_non_positive_poll_interval(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(ConfigError, match="poll_interval"):
            make_config(_MINIMAL_YAML + "poll_interval: 0\n")


class TestEnvResolution:
    def test_region_from_env(
        self, make_config: Callable[..., Config], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_REGION", "ap-southeast-2")
        monkeypatch.setenv("AWS_PROFILE", "ci")

        cfg = make_config("project: orders\n")

        assert cfg.provider.region == "ap-southeast-2"
        assert cfg.provider.profile == "ci"

    def test_default_region_fallback(
        self, make_config: Callable[..., Config], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_DEFAULT_REGION", "us-west-2")

        assert make_config("project: orders\n").provider.region == "us-west-2"

    def test_yaml_wins_over_env(
        self, make_config: Callable[..., Config], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_REGION", "us-west-2")

        assert make_config(_MINIMAL_YAML).provider.region == "us-east-1"

    def test_dotenv_fallback(self, make_config: Callable[..., Config]) -> None:
        cfg = make_config(
            "provider: {}\n",
            dotenv="AWS_REGION=eu-central-1\nSTACKPUSH_PROJECT=billing\n",
        )

        assert cfg.provider.region == "eu-central-1"
        assert cfg.project == "billing"

    def test_env_wins_over_dotenv(
        self, make_config: Callable[..., Config], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AWS_REGION", "us-west-1")

        cfg = make_config("project: orders\n", dotenv="AWS_REGION=eu-central-1\n")

        assert cfg.provider.region == "us-west-1"

    def test_variable_broker_from_env(
        self, make_config: Callable[..., Config], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STACKPUSH_VARIABLE_BROKER", "broker-fn")

        assert make_config(_MINIMAL_YAML).variable_broker == "broker-fn"
