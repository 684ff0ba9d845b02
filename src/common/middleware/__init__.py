"""Common middleware for the campus events backend."""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
