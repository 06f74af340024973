"""Core domain types for the address service."""

from address_service.core.errors import AddressNotFound, StoreFailure
from address_service.core.model import Address, AddressInput, AddressType

__all__ = [
    "Address",
    "AddressInput",
    "AddressType",
    "AddressNotFound",
    "StoreFailure",
]
