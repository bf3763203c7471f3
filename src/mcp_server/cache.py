"""Bounded cache of Smartsheet API clients keyed by credential.

Lookups and inserts are plain synchronous code. Under the single asyncio
event loop they run without interleaving, so the mapping needs no lock.
Evicted clients are closed in background tasks; a caller still holding an
evicted client gets a fresh HTTP connection on its next request.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, TypeVar

import httpx

from shared.logging import get_logger
from shared.models import CredentialKey
from smartsheet_api import SmartsheetAPI

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = 100


class EvictionPolicy(ABC, Generic[K]):
    """Decides which key leaves a full cache."""

    @abstractmethod
    def record_insert(self, key: K) -> None:
        """A key was added."""

    @abstractmethod
    def record_access(self, key: K) -> None:
        """An existing key was looked up."""

    @abstractmethod
    def forget(self, key: K) -> None:
        """A key was removed."""

    @abstractmethod
    def choose_victim(self) -> Optional[K]:
        """The key to evict next, or None if nothing is tracked."""


class InsertionOrderPolicy(EvictionPolicy[K]):
    """Evicts the oldest inserted key. Lookups do not refresh a key."""

    def __init__(self) -> None:
        self._order: OrderedDict[K, None] = OrderedDict()

    def record_insert(self, key: K) -> None:
        self._order[key] = None

    def record_access(self, key: K) -> None:
        pass

    def forget(self, key: K) -> None:
        self._order.pop(key, None)

    def choose_victim(self) -> Optional[K]:
        return next(iter(self._order), None)


class LeastRecentlyUsedPolicy(InsertionOrderPolicy[K]):
    """Evicts the key that was inserted or looked up least recently."""

    def record_access(self, key: K) -> None:
        if key in self._order:
            self._order.move_to_end(key)


class ClientCache(Generic[K, V]):
    """
    Get-or-create cache with a fixed capacity.

    Values are built by ``factory`` on the first lookup of a key. When an
    insert pushes the size above ``capacity``, one entry chosen by the
    eviction policy is dropped and handed to ``on_evict``. There is no TTL
    or explicit invalidation.
    """

    def __init__(
        self,
        factory: Callable[[K], V],
        capacity: int = DEFAULT_CAPACITY,
        policy: Optional[EvictionPolicy[K]] = None,
        on_evict: Optional[Callable[[V], None]] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._factory = factory
        self._capacity = capacity
        self._policy: EvictionPolicy[K] = policy or InsertionOrderPolicy()
        self._entries: dict[K, V] = {}
        self.on_evict = on_evict

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get_or_create(self, key: K) -> V:
        """Return the cached value for ``key``, creating it if needed."""
        value = self._entries.get(key)
        if value is not None:
            self._policy.record_access(key)
            return value

        value = self._factory(key)
        self._entries[key] = value
        self._policy.record_insert(key)

        if len(self._entries) > self._capacity:
            self.evict()

        return value

    def evict(self, key: Optional[K] = None) -> Optional[V]:
        """
        Remove an entry.

        Args:
            key: Entry to remove; the policy's victim when omitted

        Returns:
            The removed value, or None if nothing was removed
        """
        if key is None:
            key = self._policy.choose_victim()
            if key is None:
                return None

        value = self._entries.pop(key, None)
        self._policy.forget(key)
        if value is not None:
            logger.debug("Client evicted", size=len(self._entries))
            if self.on_evict is not None:
                self.on_evict(value)
        return value

    def values(self) -> list[V]:
        return list(self._entries.values())

    def clear(self) -> None:
        """Drop every entry without calling ``on_evict``."""
        for key in list(self._entries):
            self._policy.forget(key)
        self._entries.clear()


class EvictedClientCloser:
    """Closes evicted Smartsheet clients in background tasks."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    def __call__(self, api: SmartsheetAPI) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # HTTP clients are only opened inside a running loop
            return

        task = loop.create_task(api.aclose())
        self._pending.add(task)
        task.add_done_callback(self._collect)

    def _collect(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Failed to close evicted client", error=str(task.exception()))

    async def wait(self) -> None:
        """Wait for every scheduled close to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


def create_client_cache(
    timeout: float = 30.0,
    capacity: int = DEFAULT_CAPACITY,
    policy: Optional[EvictionPolicy[CredentialKey]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ClientCache[CredentialKey, SmartsheetAPI]:
    """Build the cache of Smartsheet clients keyed by credential."""

    def factory(key: CredentialKey) -> SmartsheetAPI:
        logger.info("Creating Smartsheet client", credential=key.fingerprint, endpoint=key.endpoint)
        return SmartsheetAPI(key.api_key, base_url=key.endpoint, timeout=timeout, transport=transport)

    return ClientCache(factory, capacity=capacity, policy=policy, on_evict=EvictedClientCloser())


async def close_clients(cache: ClientCache[CredentialKey, SmartsheetAPI]) -> None:
    """Close every cached client's HTTP connections and empty the cache."""
    for client in cache.values():
        await client.aclose()
    cache.clear()

    if isinstance(cache.on_evict, EvictedClientCloser):
        await cache.on_evict.wait()
