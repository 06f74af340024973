"""Read-through / write-through cache facade over the address store.

All address reads and mutations flow through AddressCacheFacade, which
keeps three cache namespaces consistent with the store:

    Operation     address::<id>     addresses::all    userAddresses::<user>
    ---------     -------------     --------------    ---------------------
    create        put               clear namespace   clear namespace
    update        put               clear namespace   clear namespace
    delete        evict             clear namespace   clear namespace
    get_all       -                 read-through      -
    get_by_id     read-through      -                 -
    get_by_user   -                 -                 read-through

The list-shaped namespaces are derived views and are always discarded in
full on a mutation, never patched. An update may move an address to a
different user, so clearing only the old or new owner's entry would
leave stale lists behind.

Cache failures never fail a request: reads degrade to the store and
failed writes or invalidations are logged.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from address_service.cache import keys
from address_service.cache.errors import CacheUnavailable
from address_service.core.errors import AddressNotFound
from address_service.core.model import Address, AddressInput
from address_service.observability.metrics import record_cache_hit, record_cache_miss

logger = logging.getLogger(__name__)


class AddressStore(Protocol):
    """The persistence operations the facade relies on."""

    async def save(self, address: AddressInput) -> Address: ...

    async def find_by_id(self, address_id: str) -> Address | None: ...

    async def exists_by_id(self, address_id: str) -> bool: ...

    async def delete_by_id(self, address_id: str) -> bool: ...

    async def find_all(self) -> list[Address]: ...

    async def find_by_user_id(self, user_id: str) -> list[Address]: ...


class Cache(Protocol):
    name: str

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def evict(self, key: str) -> None: ...

    async def clear(self) -> int: ...


class CacheManager(Protocol):
    @property
    def cache_names(self) -> list[str]: ...

    def get_cache(self, name: str) -> Cache: ...


class AddressCacheFacade:
    """Address CRUD with cache population and invalidation."""

    def __init__(self, store: AddressStore, caches: CacheManager):
        self.store = store
        self.caches = caches

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create(self, data: AddressInput) -> Address:
        """Persist a new address and cache it under its generated id."""
        # Drop any id on the input; the store assigns it
        address = await self.store.save(AddressInput.model_validate(data.model_dump()))
        await self._put(keys.ADDRESS, address.id, address.to_json_dict())
        await self._invalidate_lists()
        logger.info(f"Created address {address.id} for user {address.user_id}")
        return address

    async def update(self, address_id: str, data: AddressInput) -> Address:
        """Overwrite the mutable fields of an existing address.

        Raises:
            AddressNotFound: If no address with address_id exists
        """
        existing = await self.store.find_by_id(address_id)
        if existing is None:
            raise AddressNotFound(address_id)

        merged = existing.model_copy(
            update={
                "user_id": data.user_id,
                "type": data.type,
                "line1": data.line1,
                "line2": data.line2,
                "city": data.city,
                "state": data.state,
                "country": data.country,
                "postal_code": data.postal_code,
            }
        )
        address = await self.store.save(merged)
        await self._put(keys.ADDRESS, address_id, address.to_json_dict())
        await self._invalidate_lists()
        logger.info(f"Updated address {address_id}")
        return address

    async def delete(self, address_id: str) -> None:
        """Delete an address and drop it from every cache view.

        Raises:
            AddressNotFound: If no address with address_id exists
        """
        if not await self.store.exists_by_id(address_id):
            raise AddressNotFound(address_id)

        await self.store.delete_by_id(address_id)
        await self._evict(keys.ADDRESS, address_id)
        await self._invalidate_lists()
        logger.info(f"Deleted address {address_id}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_all(self) -> list[Address]:
        """All addresses, from cache when available."""
        cached = await self._get_list(keys.ADDRESSES, keys.ALL_KEY)
        if cached is not None:
            return cached

        addresses = await self.store.find_all()
        await self._put(keys.ADDRESSES, keys.ALL_KEY, [a.to_json_dict() for a in addresses])
        return addresses

    async def get_by_id(self, address_id: str) -> Address:
        """One address, from cache when available.

        Raises:
            AddressNotFound: If no address with address_id exists
        """
        cached = await self._get(keys.ADDRESS, address_id)
        if cached is not None:
            try:
                return Address.model_validate(cached)
            except ValidationError:
                logger.warning(f"Ignoring invalid cache entry address::{address_id}")

        address = await self.store.find_by_id(address_id)
        if address is None:
            raise AddressNotFound(address_id)

        await self._put(keys.ADDRESS, address_id, address.to_json_dict())
        return address

    async def get_by_user(self, user_id: str) -> list[Address]:
        """Addresses owned by user_id, from cache when available.

        An empty result is cached like any other.
        """
        cached = await self._get_list(keys.USER_ADDRESSES, user_id)
        if cached is not None:
            return cached

        addresses = await self.store.find_by_user_id(user_id)
        await self._put(keys.USER_ADDRESSES, user_id, [a.to_json_dict() for a in addresses])
        return addresses

    # -------------------------------------------------------------------------
    # Cache access with failure isolation
    # -------------------------------------------------------------------------

    async def _get(self, namespace: str, key: str) -> Any | None:
        try:
            value = await self.caches.get_cache(namespace).get(key)
        except CacheUnavailable as e:
            logger.warning(f"Cache read {namespace}::{key} failed, using store: {e}")
            value = None

        if value is None:
            record_cache_miss(namespace)
        else:
            record_cache_hit(namespace)
        return value

    async def _get_list(self, namespace: str, key: str) -> list[Address] | None:
        cached = await self._get(namespace, key)
        if cached is None:
            return None
        try:
            return [Address.model_validate(item) for item in cached]
        except (ValidationError, TypeError):
            logger.warning(f"Ignoring invalid cache entry {namespace}::{key}")
            return None

    async def _put(self, namespace: str, key: str, value: Any) -> None:
        try:
            await self.caches.get_cache(namespace).put(key, value)
        except CacheUnavailable as e:
            logger.warning(f"Cache write {namespace}::{key} failed: {e}")

    async def _evict(self, namespace: str, key: str) -> None:
        try:
            await self.caches.get_cache(namespace).evict(key)
        except CacheUnavailable as e:
            logger.warning(f"Cache evict {namespace}::{key} failed: {e}")

    async def _invalidate_lists(self) -> None:
        """Discard every derived list view. Each namespace is attempted."""
        for namespace in keys.LIST_NAMESPACES:
            try:
                await self.caches.get_cache(namespace).clear()
            except CacheUnavailable as e:
                logger.warning(f"Cache invalidation of {namespace} failed: {e}")
