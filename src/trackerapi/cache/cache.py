"""Disk-based cache of tracker response bodies.

Uses :mod:`diskcache` to persist the raw body of every successful
``ajax.php`` GET, keyed by the full request URL. An entry remembers when it
was fetched; once it is older than the configured TTL it is reported as a
miss, exactly as if it had never been stored. Callers cannot tell the two
apart and do not need to: both mean "go to the network".

Caching is purely additive. With caching disabled every lookup misses and
every write is dropped, which changes nothing except that each call reaches
the network.

Cache keys are SHA-256 hashes of the request URL. The URL itself travels
inside the stored :class:`~trackerapi.models.CacheEntry`.
"""

from __future__ import annotations

import hashlib
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Optional

import diskcache
from pydantic import ValidationError

from trackerapi.exceptions import CacheError
from trackerapi.models import CacheConfig, CacheEntry
from trackerapi.output import debug

_STORE_ERRORS = (sqlite3.Error, OSError, diskcache.Timeout)


class ResponseCache:
    """Disk-backed cache mapping request URLs to response bodies.

    Args:
        store_dir: Root directory of the backing store. A ``responses/``
            subdirectory is created inside it. ``None`` disables caching.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).
        clock: Source of the current Unix time; injectable for tests.

    Example::

        cache = ResponseCache("/tmp/tracker", CacheConfig(ttl_seconds=300))
        cache.put("https://tracker.example/ajax.php?action=index", b'{"status":"success"}')
        body = cache.get("https://tracker.example/ajax.php?action=index")
    """

    def __init__(
        self,
        store_dir: str | Path | None,
        config: CacheConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock
        self._cache: Optional[diskcache.Cache] = None
        self._directory: Optional[Path] = None
        if store_dir is not None and config.enabled:
            self._directory = Path(store_dir) / "responses"
            try:
                self._cache = diskcache.Cache(str(self._directory))
            except _STORE_ERRORS as exc:
                raise CacheError(f"Cannot open response cache at {self._directory}: {exc}") from exc

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, request_url: str) -> Optional[bytes]:
        """Return the cached body for *request_url*, or ``None`` on a miss.

        A miss is any of: caching disabled, no entry, an empty body, or an
        entry older than ``ttl_seconds``.

        Raises:
            CacheError: If the backing store cannot be read.
        """
        if self._cache is None:
            return None

        key = self._make_key(request_url)
        try:
            raw = self._cache.get(key)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cache read failed for {request_url}: {exc}") from exc
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate(raw)
        except ValidationError:
            debug(f"Discarding unreadable cache entry for {request_url}")
            return None

        if not entry.body:
            return None
        if self._clock() - entry.fetched_at > self._config.ttl_seconds:
            return None
        return entry.body

    def put(self, request_url: str, body: bytes) -> None:
        """Store *body* as the current response for *request_url*.

        Replaces any earlier entry for the same URL, resetting its fetch
        time. No-op when caching is disabled.

        Raises:
            CacheError: If the write fails or does not store exactly one entry.
        """
        if self._cache is None:
            return

        entry = CacheEntry(request_url=request_url, body=body, fetched_at=self._clock())
        key = self._make_key(request_url)
        try:
            stored = self._cache.set(key, entry.model_dump())
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cache write failed for {request_url}: {exc}") from exc
        if not stored:
            raise CacheError(f"Cache write for {request_url} did not store exactly one entry")

    def invalidate(self, request_url: str) -> None:
        """Remove the entry for *request_url*, if any."""
        if self._cache is None:
            return
        try:
            self._cache.delete(self._make_key(request_url))
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cache delete failed for {request_url}: {exc}") from exc

    def clear(self) -> None:
        """Remove all entries from the cache."""
        if self._cache is None:
            return
        try:
            self._cache.clear()
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cache clear failed in {self._directory}: {exc}") from exc

    def stats(self) -> dict[str, Any]:
        """Return ``enabled`` and, when enabled, ``size``, ``directory`` and ``ttl_seconds``."""
        if self._cache is None:
            return {"enabled": False}
        try:
            size = len(self._cache)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cache stats failed in {self._directory}: {exc}") from exc
        return {
            "enabled": True,
            "size": size,
            "directory": str(self._directory),
            "ttl_seconds": self._config.ttl_seconds,
        }

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, request_url: str) -> str:
        return hashlib.sha256(request_url.encode()).hexdigest()
