"""Domain errors raised by the address store and cache facade."""

from __future__ import annotations


class AddressNotFound(Exception):
    """Raised when no address with the given id exists in the store."""

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f"Address not found with id: {address_id}")


class StoreFailure(Exception):
    """Raised when the persistence layer fails. Always propagated to the caller."""
