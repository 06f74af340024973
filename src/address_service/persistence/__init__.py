"""Persistence layer: async SQLAlchemy engine, tables and the address repository."""

from address_service.persistence.db import close_db, get_session, init_db
from address_service.persistence.repositories import AddressRepository

__all__ = ["AddressRepository", "close_db", "get_session", "init_db"]
