"""CLI command for flushing the caches outside a running server.

Usage:
    address-service clear-cache
    address-service clear-cache --redis-url redis://cache:6379/0
"""

from __future__ import annotations

import asyncio

import typer

from address_service.config import settings

app = typer.Typer(help="Flush every cache namespace and the Redis database")


@app.callback(invoke_without_command=True)
def clear_cache(
    redis_url: str = typer.Option(
        settings.redis_url,
        "--redis-url",
        "-u",
        help="Redis URL to flush",
    ),
) -> None:
    """Clear every cache namespace and flush the Redis database once.

    Exits with status 1 if Redis cannot be flushed.
    """
    asyncio.run(_clear_cache(redis_url))


async def _clear_cache(redis_url: str) -> None:
    """Async implementation of clear-cache command."""
    import redis.asyncio as redis
    from rich.console import Console

    from address_service.cache import (
        CacheLifecycleManager,
        CacheUnavailable,
        RedisCacheManager,
        RedisCacheStore,
    )
    from address_service.observability import LogContext, configure_logging

    configure_logging(json_format=False, level=settings.log_level)
    console = Console()
    console.print(f"[blue]Clearing caches at:[/blue] {redis_url}")

    store = RedisCacheStore(redis.from_url(redis_url))
    lifecycle = CacheLifecycleManager(
        RedisCacheManager(store, ttl=settings.cache_ttl_seconds),
        store,
    )
    try:
        with LogContext(request_id="cli-clear-cache"):
            await lifecycle.clear_all_caches()
    except CacheUnavailable as e:
        console.print(f"[red]Failed to clear caches:[/red] {e}")
        raise typer.Exit(code=1) from e
    finally:
        await store.close()

    console.print("[green]All caches cleared[/green]")
