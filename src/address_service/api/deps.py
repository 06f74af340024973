"""Shared FastAPI dependencies for the address service routers.

The cache store, cache manager and lifecycle manager are process-wide and
live on ``app.state`` (created in the application lifespan). Repositories
and the cache facade are built per request around the request's session.
"""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from address_service.cache.facade import AddressCacheFacade
from address_service.cache.lifecycle import CacheLifecycleManager
from address_service.cache.redis import RedisCacheManager, RedisCacheStore
from address_service.persistence.db import get_session
from address_service.persistence.repositories import AddressRepository


async def get_address_repo(
    session: AsyncSession = Depends(get_session),
) -> AddressRepository:
    """Get address repository instance."""
    return AddressRepository(session)


def get_cache_store(request: Request) -> RedisCacheStore:
    """Get the shared Redis cache store."""
    return request.app.state.cache_store


def get_cache_manager(request: Request) -> RedisCacheManager:
    """Get the named cache namespaces."""
    return request.app.state.cache_manager


def get_cache_lifecycle(request: Request) -> CacheLifecycleManager:
    """Get the process-wide cache lifecycle manager."""
    return request.app.state.cache_lifecycle


async def get_address_facade(
    repo: AddressRepository = Depends(get_address_repo),
    caches: RedisCacheManager = Depends(get_cache_manager),
) -> AddressCacheFacade:
    """Get the cache facade over the request's repository."""
    return AddressCacheFacade(repo, caches)
