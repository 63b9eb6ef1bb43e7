"""Backend Client - HTTP access to the garden bed backend."""

from .client import HTTPBackendClient

__all__ = ["HTTPBackendClient"]
