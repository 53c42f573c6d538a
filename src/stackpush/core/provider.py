"""AWS Provider - Connection configuration for an AWS account and region."""

from functools import cached_property
from typing import Any, Self

import boto3
from botocore.config import Config as BotocoreConfig
from pydantic import BaseModel, ConfigDict

# Retries belong to the transport, not to the convergence engine.
_CLIENT_CONFIG = BotocoreConfig(retries={"max_attempts": 5, "mode": "standard"})


class AwsProvider(BaseModel):
    """Connection configuration for an AWS region.

    For normal use, provide a region (and optionally a named profile). For
    testing, use `from_clients` to inject pre-built or mocked clients.

    Examples:
        # Default credential chain
        provider = AwsProvider(region="us-east-1")

        # Injected clients
        provider = AwsProvider.from_clients(
            region="us-east-1",
            cloudformation=MagicMock(),
        )
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    region: str
    profile: str | None = None

    # Injected clients (for testing)
    _injected_clients: dict[str, Any] | None = None

    @classmethod
    def from_clients(cls, *, region: str, **clients: Any) -> Self:
        """Create a provider whose service clients are supplied by the caller.

        Keyword names are boto3 service names (``cloudformation``, ``iam``,
        ``kms``) with ``lambda_`` standing in for ``lambda``.
        """
        provider = cls.model_construct(region=region, profile=None)
        provider._injected_clients = {k.rstrip("_"): v for k, v in clients.items()}
        return provider

    @cached_property
    def session(self) -> boto3.session.Session:
        """Get the boto3 session for this provider."""
        return boto3.session.Session(profile_name=self.profile, region_name=self.region)

    def _client(self, service: str) -> Any:
        if self._injected_clients is not None:
            try:
                return self._injected_clients[service]
            except KeyError:
                raise ValueError(f"No {service} client was injected into the provider") from None
        return self.session.client(service, region_name=self.region, config=_CLIENT_CONFIG)

    @cached_property
    def cloudformation(self) -> Any:
        return self._client("cloudformation")

    @cached_property
    def lambda_(self) -> Any:
        return self._client("lambda")

    @cached_property
    def iam(self) -> Any:
        return self._client("iam")

    @cached_property
    def kms(self) -> Any:
        return self._client("kms")
