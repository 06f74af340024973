"""Tests for the address repository with a mocked session."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from address_service.core.errors import StoreFailure
from address_service.core.model import AddressType
from address_service.persistence.repositories import AddressRepository
from address_service.persistence.tables import AddressTable
from tests.fakes import make_input

ADDRESS_ID = "3f2a9c1e-0000-4000-8000-000000000000"


def _row(**overrides: object) -> AddressTable:
    row = AddressTable(
        id=ADDRESS_ID,
        user_id="u1",
        type="billing",
        line1="1 Main St",
        line2=None,
        city="Springfield",
        state="IL",
        country="US",
        postal_code="62701",
    )
    for key, value in overrides.items():
        setattr(row, key, value)
    return row


@pytest.fixture
def session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


class TestAddressRepository:
    """Test repository behaviour without a database."""

    @pytest.mark.asyncio
    async def test_non_uuid_ids_skip_the_query(self, session: AsyncMock) -> None:
        """Ids the store could never have assigned are answered locally."""
        repo = AddressRepository(session)

        assert await repo.find_by_id("missing") is None
        assert await repo.exists_by_id("missing") is False
        assert await repo.delete_by_id("missing") is False
        session.get.assert_not_awaited()
        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_by_id_maps_row(self, session: AsyncMock) -> None:
        """Rows are returned as Address models."""
        session.get.return_value = _row()

        address = await AddressRepository(session).find_by_id(ADDRESS_ID)

        assert address is not None
        assert address.id == ADDRESS_ID
        assert address.type is AddressType.BILLING

    @pytest.mark.asyncio
    async def test_save_new_address_inserts_and_commits(self, session: AsyncMock) -> None:
        """Input without an id is inserted."""
        repo = AddressRepository(session)

        def add(row: AddressTable) -> None:
            row.id = ADDRESS_ID

        session.add.side_effect = add

        address = await repo.save(make_input(type=AddressType.SHIPPING))

        assert address.id == ADDRESS_ID
        assert address.type is AddressType.SHIPPING
        session.get.assert_not_awaited()
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_save_existing_updates_in_place(self, session: AsyncMock) -> None:
        """An Address with a known id updates the existing row."""
        row = _row()
        session.get.return_value = row
        repo = AddressRepository(session)
        existing = await repo.find_by_id(ADDRESS_ID)
        assert existing is not None

        saved = await repo.save(existing.model_copy(update={"city": "Chicago"}))

        assert saved.id == ADDRESS_ID
        assert row.city == "Chicago"
        session.add.assert_not_called()
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_error_becomes_store_failure(self, session: AsyncMock) -> None:
        """SQLAlchemy errors roll back and raise StoreFailure."""
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("refused"))

        with pytest.raises(StoreFailure):
            await AddressRepository(session).find_all()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_reports_rowcount(self, session: AsyncMock) -> None:
        """delete_by_id returns whether a row was removed."""
        result = MagicMock()
        result.rowcount = 1
        session.execute.return_value = result

        assert await AddressRepository(session).delete_by_id(ADDRESS_ID) is True
        session.commit.assert_awaited_once()
