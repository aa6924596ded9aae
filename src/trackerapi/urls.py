"""Request URL construction.

Query parameters are sorted by key so that logically equal requests yield
byte-identical URLs, which matters because the URL is the cache key.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urljoin


def build_url(
    base_url: str,
    path: str,
    action: str = "",
    params: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return ``<base_url><path>?<sorted params>``, adding ``action`` when given.

    List and tuple values repeat the key once per item. ``None`` values are
    dropped.

    Example::

        >>> build_url("https://tracker.example/", "ajax.php", "artist", {"id": 5})
        'https://tracker.example/ajax.php?action=artist&id=5'
    """
    query: dict[str, Any] = {k: v for k, v in (params or {}).items() if v is not None}
    if action:
        query["action"] = action
    url = urljoin(_with_slash(base_url), path)
    if not query:
        return url
    items = sorted((key, _stringify(value)) for key, value in query.items())
    return f"{url}?{urlencode(items, doseq=True)}"


def _with_slash(base_url: str) -> str:
    return base_url if base_url.endswith("/") else base_url + "/"


def _stringify(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_stringify(v) for v in value]
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
