"""Docker helpers for integration tests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

if TYPE_CHECKING:
    from docker.client import DockerClient
    from docker.models.containers import Container
else:
    DockerClient = Any  # type: ignore[misc,assignment]
    Container = Any  # type: ignore[misc,assignment]

POSTGRES_IMAGE = "postgres:16-alpine"
REDIS_IMAGE = "redis:7-alpine"


def get_docker_client() -> DockerClient:
    """Create a Docker client from environment settings."""
    import docker

    return docker.from_env()


@dataclass
class ContainerHandle:
    """A running container and the host its published ports are reachable on."""

    container: Container
    host: str

    @classmethod
    def for_client(cls, client: DockerClient, container: Container) -> ContainerHandle:
        base_url = client.api.base_url
        if base_url.startswith(("unix://", "npipe://", "http+docker://")):
            host = "localhost"
        else:
            host = urlparse(base_url).hostname or "localhost"
        return cls(container=container, host=host)

    def published_port(self, container_port: int) -> int:
        """Host port bound to a container TCP port."""
        self.container.reload()
        key = f"{container_port}/tcp"
        bindings = self.container.attrs["NetworkSettings"]["Ports"].get(key)
        if not bindings:
            raise RuntimeError(f"Port {key} not published by {self.container.short_id}")
        return int(bindings[0]["HostPort"])

    def postgres_url(self, user: str, password: str, database: str) -> str:
        return (
            f"postgresql+asyncpg://{user}:{password}@{self.host}:"
            f"{self.published_port(5432)}/{database}"
        )

    def redis_url(self, db: int = 0) -> str:
        return f"redis://{self.host}:{self.published_port(6379)}/{db}"


@contextmanager
def start_container(
    client: DockerClient,
    image: str,
    *,
    env: Mapping[str, str] | None = None,
    container_ports: tuple[int, ...] = (),
) -> Iterator[ContainerHandle]:
    """Run a detached container with random host ports; remove it on exit."""
    container = client.containers.run(
        image,
        detach=True,
        environment=dict(env or {}),
        ports={f"{port}/tcp": None for port in container_ports},
    )
    try:
        yield ContainerHandle.for_client(client, container)
    finally:
        container.remove(force=True, v=True)


async def wait_until_ready(probe: Callable[[], Awaitable[Any]], timeout: float = 30.0) -> None:
    """Call probe until it stops raising or the timeout expires."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            await probe()
            return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)
