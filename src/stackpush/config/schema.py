"""Configuration models for YAML-based pushes."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseSettings):
    """AWS connection settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``AWS_`` prefix. Constructor kwargs take precedence.

    Credentials are never part of the configuration; boto3's default
    credential chain (or ``profile``) supplies them.
    """

    model_config = SettingsConfigDict(env_prefix="AWS_")

    region: str
    profile: str | None = None


class TagConfig(BaseModel):
    """Organization-wide tag keys and values applied to pushed resources."""

    company: str = "company"
    app_tag_key: str = "app"
    sbu_tag_key: str = "sbu"
    sbu: str = ""
    org_tag_key: str = "org"
    org: str = ""


class Config(BaseModel):
    """Push configuration, validated straight from the YAML structure."""

    provider: ProviderConfig
    project: str = Field(min_length=1)
    tags: TagConfig = Field(default_factory=TagConfig)
    variable_broker: str | None = None
    template: Path = Path("cft.template")
    output_path: Path = Path("stackoutput.properties")
    poll_interval: float = Field(default=10.0, gt=0)
    config_dir: Path = Path()

    def resolve_path(self, path: Path) -> Path:
        """Resolve *path* relative to the directory holding the config file."""
        return path if path.is_absolute() else self.config_dir / path

    @property
    def template_path(self) -> Path:
        return self.resolve_path(self.template)

    @property
    def output_file(self) -> Path:
        return self.resolve_path(self.output_path)

    def environment_file(self, environment: str) -> Path:
        return self.config_dir / f"{environment}.properties"
