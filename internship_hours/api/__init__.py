"""API package exports."""

from internship_hours.api.middleware import BearerAuthMiddleware, CorrelationIdMiddleware

__all__ = ["BearerAuthMiddleware", "CorrelationIdMiddleware"]
