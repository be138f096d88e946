"""HTTP access to the Kubernetes API."""

from .client import APIError, Client, UnauthorizedError

__all__ = ["APIError", "Client", "UnauthorizedError"]
