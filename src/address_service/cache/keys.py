"""Cache key schema for the address service.

Key format: {namespace}::{key}

Where:
- namespace: one of the logical cache namespaces below
- key: address id, user id, or the constant ALL_KEY for the full listing

Inspect with redis-cli:
    KEYS address::*
    GET "address::<id>"
    TTL "userAddresses::<userId>"
"""

from __future__ import annotations

from typing import Final

# Single-entity namespace, keyed by address id
ADDRESS: Final = "address"
# All-entities namespace, holds the full ordered listing under ALL_KEY
ADDRESSES: Final = "addresses"
# By-owner namespace, keyed by user id
USER_ADDRESSES: Final = "userAddresses"

NAMESPACES: Final = (ADDRESS, ADDRESSES, USER_ADDRESSES)

# Derived views that are discarded on every mutation
LIST_NAMESPACES: Final = (ADDRESSES, USER_ADDRESSES)

ALL_KEY: Final = "all"

SEPARATOR: Final = "::"


class CacheKeys:
    """Cache key generator following the namespace::key convention."""

    @staticmethod
    def key(namespace: str, key: str) -> str:
        """Fully qualified key for an entry in a namespace."""
        return f"{namespace}{SEPARATOR}{key}"

    @staticmethod
    def namespace_pattern(namespace: str) -> str:
        """Pattern matching every key of a namespace.

        Use with Redis SCAN + DEL for namespace-wide invalidation.
        """
        return f"{namespace}{SEPARATOR}*"
