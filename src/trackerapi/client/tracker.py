"""High-level tracker client.

:class:`TrackerClient` wires the pipeline together::

    TrackerClient
      +-- SessionManager ----------+
      +-- Dispatcher --------------+--> CachingTransport --> Transport (httpx)
                                            |
                                        ResponseCache (diskcache)

and exposes one thin method per ``ajax.php`` action. Each method only
assembles query parameters, calls :meth:`TrackerClient.do`, and returns the
``response`` member of the decoded envelope.

Example::

    with TrackerClient("https://tracker.example/", "my-app/1.0",
                       store_dir=Path("~/.cache/my-app").expanduser()) as client:
        client.login("alice", "hunter2")
        artist = client.get_artist(1460)
        print(artist.name)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, TypeVar

import httpx
from pydantic import BaseModel

from trackerapi.cache import ResponseCache
from trackerapi.cache.cookies import open_cookie_store
from trackerapi.client.caching import CachingTransport
from trackerapi.client.dispatcher import Dispatcher
from trackerapi.client.quirks import QuirkRegistry
from trackerapi.client.transport import Transport
from trackerapi.exceptions import AuthenticationRequired
from trackerapi.models import (
    Account,
    Artist,
    ArtistResponse,
    CacheConfig,
    JSONResponse,
    Profile,
    RequestConfig,
    SessionState,
    TopTenTorrentList,
    TopTenTorrentsResponse,
)
from trackerapi.session import API_PATH, SessionManager
from trackerapi.urls import build_url

T = TypeVar("T", bound=BaseModel)

DOWNLOAD_PATH = "torrents.php"
UPLOAD_PATH = "upload.php"

Params = Optional[Mapping[str, Any]]


class TrackerClient:
    """Client for a Gazelle-style tracker JSON API.

    Args:
        base_url: Site root, e.g. ``https://tracker.example/``.
        user_agent: ``User-Agent`` sent with every request.
        store_dir: Backing-store directory for the response cache and the
            saved cookie jar. ``None`` disables both.
        cache_config: TTL and on/off switch for the response cache.
        persist_cookies: Save the cookie jar under *store_dir* so later
            clients can resume the session.
        request: Timeout and TLS settings for the default transport.
        http_client: Pre-built :class:`httpx.Client`, mainly for tests.
        quirks: Payload corrections; defaults to the known tracker bugs.
        clock: Time source for cache ages.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        *,
        store_dir: Optional[Path] = None,
        cache_config: Optional[CacheConfig] = None,
        persist_cookies: bool = True,
        request: Optional[RequestConfig] = None,
        http_client: Optional[httpx.Client] = None,
        quirks: Optional[QuirkRegistry] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = SessionState(base_url=base_url, user_agent=user_agent)
        self._transport = Transport(user_agent, request, http_client)
        self._cache = ResponseCache(store_dir, cache_config or CacheConfig(), clock=clock)
        self._caching = CachingTransport(self._transport, self._cache)
        self._dispatcher = Dispatcher(self._caching, self._transport, self._state, quirks)
        self._cookie_store = open_cookie_store(store_dir, persist_cookies)
        self._session = SessionManager(
            self._state, self._transport, self._dispatcher, self._cookie_store
        )

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        store_dir: Optional[Path] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> TrackerClient:
        """Build a client from a saved :class:`~trackerapi.models.Profile`."""
        return cls(
            profile.base_url,
            profile.user_agent,
            store_dir=store_dir,
            cache_config=profile.cache,
            persist_cookies=profile.persist_cookies,
            request=profile.request,
            http_client=http_client,
        )

    def __enter__(self) -> TrackerClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()
        self._cache.close()
        if self._cookie_store is not None:
            self._cookie_store.close()

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def logged_in(self) -> bool:
        return self._state.logged_in

    def login(self, username: str, password: str) -> Account:
        return self._session.login(username, password)

    def logout(self) -> bool:
        return self._session.logout()

    def get_account(self) -> Account:
        return self._session.get_account()

    # ------------------------------------------------------------------ #
    # Generic dispatch
    # ------------------------------------------------------------------ #

    def get_json(self, request_url: str, target: type[T]) -> T:
        """Dispatch a prebuilt request URL and decode it into *target*."""
        return self._dispatcher.dispatch(request_url, target)

    def do(self, action: str, params: Params = None, target: type[T] = JSONResponse) -> T:
        """Call ``ajax.php?action=<action>`` with *params* and decode into *target*."""
        url = build_url(self._state.base_url, API_PATH, action, params)
        return self._dispatcher.dispatch(url, target)

    # ------------------------------------------------------------------ #
    # Capability URLs
    # ------------------------------------------------------------------ #

    def create_download_url(self, torrent_id: int) -> str:
        """Return a download URL for *torrent_id* carrying the session secrets.

        Raises:
            AuthenticationRequired: No session is established.
        """
        self._require_login()
        return build_url(
            self._state.base_url,
            DOWNLOAD_PATH,
            "download",
            {
                "id": torrent_id,
                "authkey": self._state.auth_key,
                "torrent_pass": self._state.pass_key,
            },
        )

    def create_upload_url(self) -> tuple[str, str]:
        """Return the upload form URL and the auth key to submit with it.

        Raises:
            AuthenticationRequired: No session is established.
        """
        self._require_login()
        return build_url(self._state.base_url, UPLOAD_PATH), self._state.auth_key

    def _require_login(self) -> None:
        if not self._state.logged_in:
            raise AuthenticationRequired()

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def _response(self, action: str, params: Params = None, **extra: Any) -> Any:
        merged = {**(params or {}), **extra}
        return self.do(action, merged).response

    def get_mailbox(self, params: Params = None) -> Any:
        return self._response("inbox", params)

    def get_conversation(self, conversation_id: int) -> Any:
        return self._response("inbox", type="viewconv", id=conversation_id)

    def get_notifications(self, params: Params = None) -> Any:
        return self._response("notifications", params)

    def get_announcements(self) -> Any:
        return self._response("announcements")

    def get_subscriptions(self, params: Params = None) -> Any:
        return self._response("subscriptions", params)

    def get_categories(self) -> Any:
        """Forum categories and the forums inside them."""
        return self._response("forum", type="main")

    def get_forum(self, forum_id: int, params: Params = None) -> Any:
        return self._response("forum", params, type="viewforum", forumid=forum_id)

    def get_thread(self, thread_id: int, params: Params = None) -> Any:
        return self._response("forum", params, type="viewthread", threadid=thread_id)

    def get_artist_bookmarks(self) -> Any:
        return self._response("bookmarks", type="artists")

    def get_torrent_bookmarks(self) -> Any:
        return self._response("bookmarks", type="torrents")

    def get_artist(self, artist_id: int, params: Params = None) -> Artist:
        """Fetch an artist page by id, or by ``artistname`` in *params* with id 0."""
        merged = dict(params or {})
        if "artistname" not in merged or artist_id != 0:
            merged["id"] = artist_id
        return self.do("artist", merged, ArtistResponse).response

    def get_request(self, request_id: int, params: Params = None) -> Any:
        return self._response("request", params, id=request_id)

    def get_torrent(self, torrent_id: int, params: Params = None) -> Any:
        """Fetch a torrent by id, or by ``hash`` in *params* with id 0."""
        return self._response("torrent", self._id_or_hash(torrent_id, params))

    def get_torrent_group(self, group_id: int, params: Params = None) -> Any:
        """Fetch a torrent group by id, or by ``hash`` in *params* with id 0."""
        return self._response("torrentgroup", self._id_or_hash(group_id, params))

    def search_torrents(self, search: str, params: Params = None) -> Any:
        return self._response("browse", params, searchstr=search)

    def search_requests(self, search: str, params: Params = None) -> Any:
        return self._response("requests", params, search=search)

    def search_users(self, search: str, params: Params = None) -> Any:
        return self._response("usersearch", params, search=search)

    def get_top_ten_torrents(self, params: Params = None) -> list[TopTenTorrentList]:
        merged = {**(params or {}), "type": "torrents"}
        return self.do("top10", merged, TopTenTorrentsResponse).response

    def get_top_ten_tags(self, params: Params = None) -> Any:
        return self._response("top10", params, type="tags")

    def get_top_ten_users(self, params: Params = None) -> Any:
        return self._response("top10", params, type="users")

    @staticmethod
    def _id_or_hash(item_id: int, params: Params) -> dict[str, Any]:
        merged = dict(params or {})
        if "hash" not in merged or item_id != 0:
            merged["id"] = item_id
        return merged
