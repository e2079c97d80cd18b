"""Control plane client exports."""

from .arm import ArmClientConfig, HttpResourceClient

__all__ = ["ArmClientConfig", "HttpResourceClient"]
