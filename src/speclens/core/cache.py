"""
Async single-flight cache owned by a Spec Resolver instance.

Parsed templates, table indexes and business function names are fetched
through an async collaborator. Concurrent renders frequently ask for the same
name at the same moment, so the cache must guarantee that one name is loaded
(and parsed) at most once, and that a cancelled or failed load leaves the
name unresolved instead of caching the failure.

Manifesto:
    - **Single flight:** concurrent callers for one key share one load
    - **Reference stable:** a cached value is returned as the same object
    - **No poisoning:** cancelled and failed loads are never stored
    - **Instance scoped:** lifetime is the owner's lifetime, never the process

Architecture:
    ::

        get_or_load(key, loader)
            │
            ├── key in _values ───────────────► cached value
            │
            ├── key in _inflight ─┐
            │                     ├─► await shield(task) ─► value / error
            └── start task ───────┘
                    │
                    └── success: _values[key] = value
                        done:    _inflight.pop(key)

        The last waiter to be cancelled cancels the shared load; a load
        still awaited by someone else keeps running.

Examples:
    >>> cache = AsyncSingleFlightCache(name="templates", key_fn=str.upper)
    >>> template = await cache.get_or_load("d0001", lambda: fetch_and_parse("D0001"))
    >>> cache.peek("D0001") is template
    True

Performance:
    - Cache hits are a dict lookup, no await
    - No TTL, no eviction: entries live as long as the owning resolver

Tags:
    cache, asyncio, single-flight, deduplication, speclens

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from speclens.core.logging import get_logger

logger = get_logger(__name__)

V = TypeVar("V")


@dataclass
class _InFlight:
    """A load shared by every caller currently waiting on one key."""

    task: asyncio.Future
    waiters: int = 0


class AsyncSingleFlightCache(Generic[V]):
    """Per-key cache where concurrent misses share one in-flight load.

    Attributes:
        name: Label used in log events.

    Example:
        cache = AsyncSingleFlightCache(name="bsfn-names", key_fn=str.upper)
        name = await cache.get_or_load(template_name, resolve)
    """

    def __init__(self, *, name: str = "cache", key_fn: Callable[[Any], Hashable] | None = None):
        self.name = name
        self._key_fn = key_fn
        self._values: dict[Hashable, V] = {}
        self._inflight: dict[Hashable, _InFlight] = {}
        self.loads = 0

    def _key(self, key: Any) -> Hashable:
        return self._key_fn(key) if self._key_fn is not None else key

    async def get_or_load(self, key: Any, loader: Callable[[], Awaitable[V]]) -> V:
        """Return the cached value for ``key`` or run ``loader`` once for all waiters.

        Errors raised by ``loader`` propagate to every waiter and nothing is
        cached. Cancelling one waiter does not cancel the load while other
        waiters remain.
        """
        cache_key = self._key(key)
        if cache_key in self._values:
            return self._values[cache_key]

        entry = self._inflight.get(cache_key)
        if entry is None or entry.task.done():
            self.loads += 1
            task = asyncio.ensure_future(self._load(cache_key, loader))
            entry = _InFlight(task=task)
            self._inflight[cache_key] = entry
            task.add_done_callback(lambda done, k=cache_key, e=entry: self._finish(k, e, done))
            logger.debug("cache_load_started", cache=self.name, key=str(cache_key))

        entry.waiters += 1
        try:
            return await asyncio.shield(entry.task)
        except asyncio.CancelledError:
            if entry.waiters == 1 and not entry.task.done():
                # a cancelled load is never handed to a later caller
                self._forget(cache_key, entry)
                entry.task.cancel()
            raise
        finally:
            entry.waiters -= 1

    async def _load(self, cache_key: Hashable, loader: Callable[[], Awaitable[V]]) -> V:
        value = await loader()
        self._values[cache_key] = value
        return value

    def _forget(self, cache_key: Hashable, entry: _InFlight) -> None:
        if self._inflight.get(cache_key) is entry:
            del self._inflight[cache_key]

    def _finish(self, cache_key: Hashable, entry: _InFlight, task: asyncio.Future) -> None:
        self._forget(cache_key, entry)
        if task.cancelled():
            logger.debug("cache_load_cancelled", cache=self.name, key=str(cache_key))
            return
        error = task.exception()
        if error is not None:
            logger.debug("cache_load_failed", cache=self.name, key=str(cache_key), error=str(error))

    def peek(self, key: Any) -> V | None:
        """Return the cached value without loading, or ``None``."""
        return self._values.get(self._key(key))

    def exists(self, key: Any) -> bool:
        """Check whether a value is cached for ``key``."""
        return self._key(key) in self._values

    def is_loading(self, key: Any) -> bool:
        """Check whether a load for ``key`` is in flight."""
        return self._key(key) in self._inflight

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: Any) -> bool:
        return self.exists(key)


__all__ = ["AsyncSingleFlightCache"]
