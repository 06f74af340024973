"""Process-wide cache lifecycle.

CacheLifecycleManager owns full cache resets:

- on startup every namespace is cleared and the Redis database flushed,
  so nothing survives from a previous process instance
- on shutdown the same clear runs with bounded retry and never raises
- on demand (administrative flush) the clear runs once and reports failure

Phases:

    RUNNING --on_shutdown_requested()--> SHUTTING_DOWN --retry clear done--> STOPPED

Once shutdown is requested the shutdown path owns the cache exclusively:
on-demand clears become no-ops so an administrative flush cannot race it.

If the process exits without an orderly shutdown (the retrying clear never
ran), an atexit hook runs it on a fresh event loop as a best effort.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
from enum import Enum
from typing import Protocol

from address_service.cache.errors import CacheStoreStopped, CacheUnavailable
from address_service.cache.facade import CacheManager
from address_service.observability.metrics import record_cache_clear

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 0.1  # seconds


class CacheStore(Protocol):
    async def flush_db(self) -> None: ...


class LifecyclePhase(str, Enum):
    """Lifecycle phase of the cache layer."""

    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class CacheLifecycleManager:
    """Startup, shutdown and on-demand full cache clearing."""

    def __init__(
        self,
        caches: CacheManager,
        store: CacheStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.caches = caches
        self.store = store
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._phase = LifecyclePhase.RUNNING
        self._exit_hook_registered = False

    @property
    def phase(self) -> LifecyclePhase:
        return self._phase

    # -------------------------------------------------------------------------
    # Lifecycle events
    # -------------------------------------------------------------------------

    async def on_start(self) -> None:
        """Clear every cache layer and register the exit-time cleanup hook.

        A failed startup clear is logged; it does not prevent startup.
        """
        logger.info("Initializing caches...")
        try:
            await self.clear_all_caches()
        except CacheUnavailable as e:
            logger.error(f"Startup cache clear failed: {e}")

        if not self._exit_hook_registered:
            atexit.register(self._run_exit_cleanup)
            self._exit_hook_registered = True

    def on_shutdown_requested(self) -> None:
        """Enter SHUTTING_DOWN. Safe to call more than once."""
        if self._phase is LifecyclePhase.RUNNING:
            self._phase = LifecyclePhase.SHUTTING_DOWN
            logger.info("Application shutdown detected, clearing caches...")

    # -------------------------------------------------------------------------
    # Clearing
    # -------------------------------------------------------------------------

    async def clear_all_caches(self) -> bool:
        """Clear every namespace and flush the cache store once.

        Returns immediately with False while shutting down or stopped,
        without touching the cache store. A flush failure after shutdown
        was requested mid-clear is logged and reported as False.

        Returns:
            True when the clear ran.

        Raises:
            CacheUnavailable: If flushing the cache store failed while running
        """
        if self._phase is not LifecyclePhase.RUNNING:
            logger.warning("Skipping cache clear - application is shutting down")
            record_cache_clear("skipped")
            return False

        try:
            await self._clear_everything()
        except CacheUnavailable as e:
            record_cache_clear("failure")
            if self._phase is LifecyclePhase.RUNNING:
                raise
            # shutdown began mid-clear; the retrying clear owns the cache now
            logger.warning(f"Cache clear failed during shutdown, ignoring: {e}")
            return False

        record_cache_clear("success")
        return True

    async def clear_all_caches_with_retry(self) -> bool:
        """Shutdown clear: bounded retries, never raises a cache error.

        Makes up to max_attempts attempts, waiting retry_delay between
        failed attempts. Cancellation while waiting abandons the remaining
        attempts and is re-raised. Always ends in STOPPED.

        Returns:
            True if an attempt succeeded.
        """
        self.on_shutdown_requested()
        try:
            for attempt in range(1, self.max_attempts + 1):
                logger.info(f"Attempt {attempt} to clear caches...")
                try:
                    await self._clear_everything()
                except Exception as e:
                    logger.warning(f"Cache clear attempt {attempt} failed: {e}")
                else:
                    logger.info(f"Successfully cleared all caches (attempt {attempt})")
                    record_cache_clear("success")
                    return True

                if attempt < self.max_attempts:
                    try:
                        await asyncio.sleep(self.retry_delay)
                    except asyncio.CancelledError:
                        logger.warning("Cache clear operation was interrupted")
                        record_cache_clear("failure")
                        raise

            logger.error(f"Failed to clear caches after {self.max_attempts} attempts")
            record_cache_clear("failure")
            return False
        finally:
            self._stop()

    async def _clear_everything(self) -> None:
        logger.info("Starting cache clearing process...")
        await self._clear_namespaces()
        await self._flush_store()
        logger.info("Successfully cleared all caches")

    async def _clear_namespaces(self) -> list[str]:
        """Clear each namespace, continuing past failures.

        Returns:
            Names of the namespaces that could not be cleared.
        """
        failed: list[str] = []
        for name in self.caches.cache_names:
            try:
                deleted = await self.caches.get_cache(name).clear()
                logger.info(f"Cleared cache namespace {name} ({deleted} keys)")
            except CacheStoreStopped:
                logger.info(f"Cache store already stopped, skipping namespace {name}")
            except CacheUnavailable as e:
                logger.error(f"Failed to clear cache namespace {name}: {e}")
                failed.append(name)
        return failed

    async def _flush_store(self) -> None:
        try:
            await self.store.flush_db()
        except CacheStoreStopped:
            logger.info("Redis connection already closed - skipping Redis cache clearing")
            return
        except CacheUnavailable as e:
            logger.error(f"Failed to clear Redis caches: {e}")
            raise
        logger.info("Successfully cleared all Redis caches")

    # -------------------------------------------------------------------------
    # Exit hook
    # -------------------------------------------------------------------------

    def _stop(self) -> None:
        self._phase = LifecyclePhase.STOPPED
        if self._exit_hook_registered:
            atexit.unregister(self._run_exit_cleanup)
            self._exit_hook_registered = False

    def _run_exit_cleanup(self) -> None:
        """atexit callback for processes that exit without an orderly shutdown."""
        if self._phase is LifecyclePhase.STOPPED:
            return
        logger.info("Exit hook triggered - cleaning up caches...")
        try:
            asyncio.run(self.clear_all_caches_with_retry())
        except Exception as e:
            logger.error(f"Exit-time cache cleanup failed: {e}")
