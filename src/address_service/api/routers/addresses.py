"""Address API router.

Endpoints:
- POST   /api/addresses                  - Create address
- GET    /api/addresses                  - List all addresses
- GET    /api/addresses/user/{user_id}   - List a user's addresses
- GET    /api/addresses/{address_id}     - Get address
- PUT    /api/addresses/{address_id}     - Update address
- DELETE /api/addresses/{address_id}     - Delete address
- POST   /api/addresses/clear-cache      - Flush every cache layer

All reads and writes go through AddressCacheFacade. AddressNotFound and
StoreFailure propagate to the exception handlers in api.errors.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from address_service.api.deps import get_address_facade, get_cache_lifecycle
from address_service.api.errors import InternalServerError
from address_service.cache.errors import CacheUnavailable
from address_service.cache.facade import AddressCacheFacade
from address_service.cache.lifecycle import CacheLifecycleManager
from address_service.core.model import Address, AddressInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/addresses", tags=["Addresses"])


@router.post("", status_code=201, response_model=Address)
async def create_address(
    data: AddressInput,
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> Address:
    """Create a new address. The id is generated by the store."""
    return await facade.create(data)


@router.get("", response_model=list[Address])
async def get_all_addresses(
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> list[Address]:
    """Get all addresses."""
    return await facade.get_all()


@router.post("/clear-cache")
async def clear_cache(
    lifecycle: CacheLifecycleManager = Depends(get_cache_lifecycle),
) -> dict[str, str]:
    """Flush every cache namespace and the Redis database.

    During shutdown this is a no-op reported as "skipped".
    """
    logger.info("Administrative cache flush requested")
    try:
        cleared = await lifecycle.clear_all_caches()
    except CacheUnavailable as e:
        raise InternalServerError(text=f"Failed to clear caches: {e}", code="CacheFlushFailed")
    return {"status": "cleared" if cleared else "skipped"}


@router.get("/user/{user_id}", response_model=list[Address])
async def get_addresses_by_user(
    user_id: str,
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> list[Address]:
    """Get the addresses owned by a user. Unknown users get an empty list."""
    return await facade.get_by_user(user_id)


@router.get("/{address_id}", response_model=Address)
async def get_address_by_id(
    address_id: str,
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> Address:
    """Get a specific address."""
    return await facade.get_by_id(address_id)


@router.put("/{address_id}", response_model=Address)
async def put_address(
    address_id: str,
    data: AddressInput,
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> Address:
    """Replace every mutable field of an existing address."""
    return await facade.update(address_id, data)


@router.delete("/{address_id}", status_code=204, response_class=Response)
async def delete_address(
    address_id: str,
    facade: AddressCacheFacade = Depends(get_address_facade),
) -> Response:
    """Delete an address."""
    await facade.delete(address_id)
    return Response(status_code=204)
