"""Integration test fixtures using Docker.

Provides containerized PostgreSQL and Redis for realistic testing.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests.integration.docker_utils import (
    POSTGRES_IMAGE,
    REDIS_IMAGE,
    ContainerHandle,
    get_docker_client,
    start_container,
    wait_until_ready,
)


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres_container(docker_client) -> Iterator[ContainerHandle]:
    """Start PostgreSQL container for the test session."""
    env = {
        "POSTGRES_USER": "address",
        "POSTGRES_PASSWORD": "address",
        "POSTGRES_DB": "addresses",
    }
    with start_container(
        docker_client, POSTGRES_IMAGE, env=env, container_ports=(5432,)
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[ContainerHandle]:
    """Start Redis container for the test session."""
    with start_container(docker_client, REDIS_IMAGE, container_ports=(6379,)) as redis:
        yield redis


@pytest.fixture(scope="session")
def database_url(postgres_container: ContainerHandle) -> str:
    return postgres_container.postgres_url("address", "address", "addresses")


@pytest.fixture(scope="session")
def redis_url(redis_container: ContainerHandle) -> str:
    return redis_container.redis_url()


@pytest_asyncio.fixture
async def db_engine(database_url: str):
    """Create async database engine with a fresh schema."""
    from address_service.persistence.tables import Base

    engine = create_async_engine(database_url, echo=False)

    async def connect() -> None:
        async with engine.connect():
            pass

    await wait_until_ready(connect)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncIterator[AsyncSession]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def redis_client(redis_url: str):
    """Create a Redis client on an empty database."""
    import redis.asyncio as redis

    client = redis.from_url(redis_url)
    await wait_until_ready(client.ping)
    await client.flushdb()
    yield client
    await client.flushdb()
    await client.aclose()


@pytest_asyncio.fixture
async def cache_store(redis_client):
    """RedisCacheStore over the test Redis."""
    from address_service.cache.redis import RedisCacheStore

    return RedisCacheStore(redis_client)


@pytest_asyncio.fixture
async def test_client(db_engine, cache_store) -> AsyncIterator[AsyncClient]:
    """Create a test client with real database and Redis.

    The application lifespan is not run; its collaborators are wired here.
    """
    from address_service.api.app import create_app
    from address_service.cache.lifecycle import CacheLifecycleManager
    from address_service.cache.redis import RedisCacheManager
    from address_service.persistence import db as db_module

    app = create_app()

    test_session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def get_test_session():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[db_module.get_session] = get_test_session

    caches = RedisCacheManager(cache_store)
    app.state.cache_store = cache_store
    app.state.cache_manager = caches
    app.state.cache_lifecycle = CacheLifecycleManager(caches, cache_store, retry_delay=0)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
