"""Repository for address persistence.

The repository is the document store behind the cache facade. Every write
commits before returning, so a caller that updates the cache afterwards
never publishes data the store has not accepted.

Any SQLAlchemy error is re-raised as StoreFailure.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from address_service.core.errors import StoreFailure
from address_service.core.model import Address, AddressInput
from address_service.persistence.tables import AddressTable

logger = logging.getLogger(__name__)


def _normalize_id(address_id: str) -> str | None:
    """Return the canonical UUID string, or None if address_id is not a UUID.

    Ids that are not UUIDs can never have been assigned by the store, so
    lookups with them are answered without a query.
    """
    try:
        return str(UUID(address_id))
    except (ValueError, TypeError, AttributeError):
        return None


def _to_model(row: AddressTable) -> Address:
    return Address(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        line1=row.line1,
        line2=row.line2,
        city=row.city,
        state=row.state,
        country=row.country,
        postal_code=row.postal_code,
    )


def _apply(row: AddressTable, data: AddressInput) -> None:
    row.user_id = data.user_id
    row.type = data.type.value
    row.line1 = data.line1
    row.line2 = data.line2
    row.city = data.city
    row.state = data.state
    row.country = data.country
    row.postal_code = data.postal_code


class AddressRepository:
    """Async CRUD operations for address records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate SQLAlchemy errors into StoreFailure, rolling back the session."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Address store {operation} failed: {e}")
            await self.session.rollback()
            raise StoreFailure(f"Address store {operation} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Write operations
    # -------------------------------------------------------------------------

    async def save(self, address: AddressInput) -> Address:
        """Insert or update an address.

        An Address with an id that exists is updated in place; anything
        else is inserted and receives a freshly generated id.
        """
        async with self._guard("save"):
            row = None
            address_id = getattr(address, "id", None)
            if address_id is not None:
                normalized = _normalize_id(address_id)
                if normalized is not None:
                    row = await self.session.get(AddressTable, normalized)

            if row is None:
                row = AddressTable()
                _apply(row, address)
                self.session.add(row)
            else:
                _apply(row, address)

            await self.session.commit()
            return _to_model(row)

    async def delete_by_id(self, address_id: str) -> bool:
        """Delete an address.

        Returns:
            True if a row was deleted, False if not found.
        """
        normalized = _normalize_id(address_id)
        if normalized is None:
            return False

        async with self._guard("delete"):
            stmt = delete(AddressTable).where(AddressTable.id == normalized)
            result = await self.session.execute(stmt)
            await self.session.commit()
            return bool(result.rowcount)

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def find_by_id(self, address_id: str) -> Address | None:
        """Get an address by id, or None if absent."""
        normalized = _normalize_id(address_id)
        if normalized is None:
            return None

        async with self._guard("find_by_id"):
            row = await self.session.get(AddressTable, normalized)
            return _to_model(row) if row is not None else None

    async def exists_by_id(self, address_id: str) -> bool:
        """Check if an address exists."""
        normalized = _normalize_id(address_id)
        if normalized is None:
            return False

        async with self._guard("exists_by_id"):
            stmt = select(AddressTable.id).where(AddressTable.id == normalized)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def find_all(self) -> list[Address]:
        """List all addresses in insertion order."""
        async with self._guard("find_all"):
            stmt = select(AddressTable).order_by(AddressTable.created_at, AddressTable.id)
            result = await self.session.execute(stmt)
            return [_to_model(row) for row in result.scalars().all()]

    async def find_by_user_id(self, user_id: str) -> list[Address]:
        """List the addresses owned by a user."""
        async with self._guard("find_by_user_id"):
            stmt = (
                select(AddressTable)
                .where(AddressTable.user_id == user_id)
                .order_by(AddressTable.created_at, AddressTable.id)
            )
            result = await self.session.execute(stmt)
            return [_to_model(row) for row in result.scalars().all()]
