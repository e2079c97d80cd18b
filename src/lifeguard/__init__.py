"""Lifecycle confirmation for asynchronously provisioned cloud resources."""

__version__ = "0.1.0"
