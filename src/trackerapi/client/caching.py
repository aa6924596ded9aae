"""Caching layer in front of a :class:`~trackerapi.client.transport.Fetcher`.

:class:`CachingTransport` holds a reference to an inner fetcher and a
:class:`~trackerapi.cache.ResponseCache`, and is itself a fetcher. A live
cache entry short-circuits the network; otherwise the inner fetcher is
called and its body is written to the cache before being returned, so a
repeat call within the TTL never leaves the machine.

A failed cache write is raised even though the fetch succeeded. Returning
fresh data that silently failed to persist would leave the cache and the
caller disagreeing about what was fetched.
"""

from __future__ import annotations

from trackerapi.cache import ResponseCache
from trackerapi.client.transport import Fetcher
from trackerapi.output import debug


class CachingTransport:
    """Read-through, write-through cache around *inner*.

    Args:
        inner: The fetcher that reaches the network.
        cache: Response cache; a disabled cache makes this a pass-through.
    """

    def __init__(self, inner: Fetcher, cache: ResponseCache) -> None:
        self._inner = inner
        self._cache = cache

    @property
    def inner(self) -> Fetcher:
        return self._inner

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def fetch(self, request_url: str) -> bytes:
        """Return the body for *request_url*, from cache when live.

        Raises:
            NetworkError: If the inner fetch fails.
            CacheError: If the cache cannot be read or the fresh body
                cannot be written.
        """
        body = self._cache.get(request_url)
        if body is not None:
            debug(f"Cache hit: {request_url}")
            return body

        if self._cache.enabled:
            debug(f"Cache miss: {request_url}")
        body = self._inner.fetch(request_url)
        self._cache.put(request_url, body)
        return body
