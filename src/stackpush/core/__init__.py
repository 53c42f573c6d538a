"""Core infrastructure components for stackpush."""

from stackpush.core.provider import AwsProvider

__all__ = ["AwsProvider"]
