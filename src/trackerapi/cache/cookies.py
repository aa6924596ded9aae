"""Persistence of the session cookie jar between client runs.

A logged-in tracker session is nothing more than a cookie. Remembering it
lets the next process resume the session with one account probe instead of
posting the password again (see :class:`~trackerapi.session.SessionManager`).

Records live in a :mod:`diskcache` directory next to the response cache,
one JSON-serialised :class:`~trackerapi.models.CookieRecord` per base URL.
A save always replaces the previous record.

:func:`dump_jar` and :func:`restore_jar` convert between the live
:class:`httpx.Cookies` jar and the stored records.
"""

from __future__ import annotations

import sqlite3
from http.cookiejar import Cookie
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import diskcache
import httpx
from pydantic import ValidationError

from trackerapi.exceptions import CacheError
from trackerapi.models import CookieRecord, StoredCookie
from trackerapi.output import warning

_STORE_ERRORS = (sqlite3.Error, OSError, diskcache.Timeout)


class CookieStore:
    """Saved cookie records keyed by base URL.

    Args:
        store_dir: Root directory of the backing store. A ``cookies/``
            subdirectory is created inside it.
    """

    def __init__(self, store_dir: str | Path) -> None:
        self._directory = Path(store_dir) / "cookies"
        try:
            self._cache = diskcache.Cache(str(self._directory))
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cannot open cookie store at {self._directory}: {exc}") from exc

    def load(self, base_url: str) -> list[StoredCookie]:
        """Return the cookies saved for *base_url*.

        Returns an empty list when nothing was saved. An unreadable record
        is reported as a warning and also yields an empty list, so the
        caller falls back to a full login.

        Raises:
            CacheError: If the backing store itself cannot be read.
        """
        try:
            raw = self._cache.get(base_url)
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cookie read failed for {base_url}: {exc}") from exc
        if raw is None:
            return []
        try:
            return CookieRecord.model_validate_json(raw).cookies
        except ValidationError as exc:
            warning(f"Ignoring unreadable saved cookies for {base_url}: {exc.error_count()} error(s)")
            return []

    def save(self, base_url: str, cookies: list[StoredCookie]) -> None:
        """Replace the record for *base_url* with *cookies*.

        Raises:
            CacheError: If the record cannot be written.
        """
        record = CookieRecord(base_url=base_url, cookies=cookies)
        try:
            stored = self._cache.set(base_url, record.model_dump_json())
        except _STORE_ERRORS as exc:
            raise CacheError(f"Cookie write failed for {base_url}: {exc}") from exc
        if not stored:
            raise CacheError(f"Cookie write for {base_url} did not store a record")

    def close(self) -> None:
        self._cache.close()


def _domain_matches(cookie_domain: str, host: str) -> bool:
    domain = cookie_domain.lstrip(".")
    if not domain:
        return True
    # http.cookiejar files dotless hosts such as "localhost" under "localhost.local"
    if domain == f"{host}.local":
        return True
    return host == domain or host.endswith(f".{domain}")


def dump_jar(cookies: httpx.Cookies, base_url: str) -> list[StoredCookie]:
    """Snapshot the cookies in *cookies* that would be sent to *base_url*."""
    host = urlparse(base_url).hostname or ""
    return [
        StoredCookie(
            name=c.name,
            value=c.value or "",
            domain=c.domain,
            path=c.path,
            secure=c.secure,
            expires=c.expires,
        )
        for c in cookies.jar
        if _domain_matches(c.domain, host)
    ]


def restore_jar(cookies: httpx.Cookies, stored: list[StoredCookie], base_url: str) -> None:
    """Load *stored* records into the live jar *cookies*."""
    host = urlparse(base_url).hostname or ""
    for item in stored:
        cookies.jar.set_cookie(_to_cookie(item, host))


def _to_cookie(item: StoredCookie, host: str) -> Cookie:
    domain = item.domain or host
    return Cookie(
        version=0,
        name=item.name,
        value=item.value,
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=domain.startswith("."),
        domain_initial_dot=domain.startswith("."),
        path=item.path,
        path_specified=True,
        secure=item.secure,
        expires=item.expires,
        discard=item.expires is None,
        comment=None,
        comment_url=None,
        rest={},
    )


def open_cookie_store(store_dir: Optional[Path], enabled: bool) -> Optional[CookieStore]:
    """Return a :class:`CookieStore` under *store_dir*, or ``None`` when not persisting."""
    if store_dir is None or not enabled:
        return None
    return CookieStore(store_dir)
