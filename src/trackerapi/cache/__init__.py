"""Backing store for trackerapi.

Two :mod:`diskcache` directories under one store root:

- :class:`ResponseCache` -- request URL to response body, with a TTL.
- :class:`CookieStore` -- base URL to the saved session cookie jar.

Both are optional. Without them the client still works; it just reaches
the network on every call and logs in from scratch in every process.
"""

from trackerapi.cache.cache import ResponseCache
from trackerapi.cache.cookies import CookieStore, dump_jar, restore_jar

__all__ = ["ResponseCache", "CookieStore", "dump_jar", "restore_jar"]
