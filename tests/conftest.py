"""Global pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import patch

import pytest

from address_service.cache.facade import AddressCacheFacade
from address_service.cache.lifecycle import CacheLifecycleManager
from tests.fakes import InMemoryAddressStore, InMemoryCacheManager, InMemoryCacheStore


@pytest.fixture
def address_store() -> InMemoryAddressStore:
    return InMemoryAddressStore()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def cache_manager(cache_store: InMemoryCacheStore) -> InMemoryCacheManager:
    return InMemoryCacheManager(cache_store)


@pytest.fixture
def facade(
    address_store: InMemoryAddressStore, cache_manager: InMemoryCacheManager
) -> AddressCacheFacade:
    return AddressCacheFacade(address_store, cache_manager)


@pytest.fixture
def no_exit_hooks() -> Iterator[None]:
    """Keep lifecycle managers from registering real atexit callbacks."""
    with patch("address_service.cache.lifecycle.atexit"):
        yield


@pytest.fixture
def lifecycle(
    cache_manager: InMemoryCacheManager,
    cache_store: InMemoryCacheStore,
    no_exit_hooks: None,
) -> CacheLifecycleManager:
    return CacheLifecycleManager(cache_manager, cache_store, max_attempts=3, retry_delay=0)
