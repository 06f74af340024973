"""HTTP middleware for the address service API."""

from address_service.api.middleware.correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
