"""API routers for the address service."""

from address_service.api.routers import addresses, health, metrics

__all__ = ["addresses", "health", "metrics"]
