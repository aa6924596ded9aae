"""Network transport: the only module that talks HTTP.

:class:`Transport` wraps a blocking :class:`httpx.Client` whose cookie jar
*is* the session. It offers the three request shapes the tracker needs:

- :meth:`Transport.fetch` -- GET a JSON endpoint and return the raw body;
- :meth:`Transport.post_form` -- the form-encoded login post;
- :meth:`Transport.get` -- fire-and-inspect GET used for logout.

Every request carries the configured ``User-Agent``. Transport failures and
non-200 statuses on :meth:`~Transport.fetch` become
:class:`~trackerapi.exceptions.NetworkError`; nothing is retried here.

Anything with a ``fetch(url) -> bytes`` method satisfies :class:`Fetcher`,
which is how :class:`~trackerapi.client.caching.CachingTransport` slots in
front of a :class:`Transport`.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx

from trackerapi.exceptions import NetworkError
from trackerapi.models import RequestConfig
from trackerapi.output import debug


class Fetcher(Protocol):
    """Anything that turns a request URL into a response body."""

    def fetch(self, request_url: str) -> bytes: ...


class Transport:
    """Blocking HTTP transport bound to one user agent and one cookie jar.

    Args:
        user_agent: Value of the ``User-Agent`` header on every request.
        request: Timeout and TLS settings used when building the client.
        http_client: Pre-built :class:`httpx.Client` to use instead, e.g.
            one with an :class:`httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        user_agent: str,
        request: Optional[RequestConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._user_agent = user_agent
        if http_client is None:
            config = request or RequestConfig()
            http_client = httpx.Client(
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=True,
            )
        self._client = http_client

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def cookies(self) -> httpx.Cookies:
        """The live session cookie jar."""
        return self._client.cookies

    def fetch(self, request_url: str) -> bytes:
        """GET *request_url* and return the body.

        Raises:
            NetworkError: On a transport failure or any status other than 200.
        """
        response = self._send("GET", request_url)
        if response.status_code != httpx.codes.OK:
            raise NetworkError(
                f"Status Code {response.status_code} {response.reason_phrase}".rstrip()
            )
        debug(f"Fetched {len(response.content)} bytes from {request_url}")
        return response.content

    def post_form(self, url: str, data: dict[str, Any]) -> httpx.Response:
        """POST *data* form-encoded to *url*, following redirects.

        The caller inspects the final ``response.url``; the status is not
        checked here.
        """
        return self._send("POST", url, data=data)

    def get(self, url: str) -> httpx.Response:
        """GET *url*, following redirects, without checking the status."""
        return self._send("GET", url)

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(
                method,
                url,
                headers={"User-Agent": self._user_agent},
                follow_redirects=True,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
