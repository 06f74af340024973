"""Cache layer errors.

Cache errors never decide the outcome of a CRUD request. The facade logs
them and degrades to store-only behaviour; the lifecycle manager retries
them on shutdown.
"""

from __future__ import annotations


class CacheUnavailable(Exception):
    """A cache read, write or clear failed (connection refused, timeout, ...)."""


class CacheStoreStopped(CacheUnavailable):
    """The cache store connection was already closed when an operation ran."""
