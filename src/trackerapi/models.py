"""Canonical Pydantic models shared across all trackerapi modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, :class:`OutputConfig`,
    :class:`GlobalConfig`, and :class:`Profile`.

**Pipeline models** -- state owned by the client and records kept in the
backing store:
    :class:`SessionStatus`, :class:`SessionState`, :class:`CacheEntry`,
    :class:`StoredCookie`, and :class:`CookieRecord`.

**Wire models** -- decode targets for tracker responses. Every payload is
first validated against :class:`Envelope`; endpoint models extend it with a
``response`` member. Entity shapes belong to the tracker, so apart from the
account, artist and top-ten payloads (which the pipeline itself relies on)
they are kept loose with ``extra="allow"``.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Response cache settings for a profile."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: int = Field(default=300, description="Cache TTL in seconds")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/trackerapi/config.json``.

    Loaded and saved by :func:`~trackerapi.config.load_global_config` and
    :func:`~trackerapi.config.save_global_config`. See
    :func:`~trackerapi.config.resolve_config` for the precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """Per-tracker profile stored as JSON under the ``profiles/`` config directory.

    A profile names one tracker site and the account used on it. The
    password itself is never stored; ``password_source`` tells
    :func:`~trackerapi.config.resolve_credential` where to read it from.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(description="Site root, e.g. https://tracker.example/")
    user_agent: str = Field(default="trackerapi", description="User-Agent header value")
    username: Optional[str] = None
    password_source: str = Field(
        default="prompt",
        description="Credential source: env:VAR, file:/path, prompt",
    )
    persist_cookies: bool = Field(
        default=True, description="Remember the session cookie between runs"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Session and backing-store records ---


class SessionStatus(str, enum.Enum):
    """Lifecycle of a client session."""

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionState(BaseModel):
    """Authentication state of one client.

    Owned by :class:`~trackerapi.session.SessionManager`; the cookie jar
    itself lives on the HTTP transport.
    """

    base_url: str
    user_agent: str
    auth_key: str = ""
    pass_key: str = ""
    status: SessionStatus = SessionStatus.ANONYMOUS

    @property
    def logged_in(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED


class CacheEntry(BaseModel):
    """One cached response body, keyed by its full request URL."""

    request_url: str
    body: bytes
    fetched_at: float = Field(description="Unix timestamp of the network fetch")


class StoredCookie(BaseModel):
    """A serialisable copy of one cookie from the session jar."""

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    secure: bool = False
    expires: Optional[int] = None


class CookieRecord(BaseModel):
    """All cookies remembered for one base URL."""

    base_url: str
    cookies: list[StoredCookie] = Field(default_factory=list)


# --- Wire models ---


class Envelope(BaseModel):
    """The minimal ``status``/``error`` wrapper every tracker payload carries."""

    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class _Loose(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Account(_Loose):
    """Payload of ``action=index``: the logged-in user and session secrets."""

    username: str = ""
    id: int = 0
    authkey: str
    passkey: str


class AccountResponse(Envelope):
    response: Account


class ArtistGroup(_Loose):
    """A torrent group listed on an artist page."""

    group_id: int = Field(default=0, alias="groupId")
    group_name: str = Field(default="", alias="groupName")
    group_year: int = Field(default=0, alias="groupYear")
    extended_artists: Optional[dict[str, Any]] = Field(
        default=None, alias="extendedArtists"
    )


class Artist(_Loose):
    id: int
    name: str
    torrentgroup: list[ArtistGroup] = Field(default_factory=list)


class ArtistResponse(Envelope):
    response: Artist


class TopTenTorrent(_Loose):
    torrent_id: int = Field(default=0, alias="torrentId")
    group_id: int = Field(default=0, alias="groupId")
    artist: str = ""
    group_name: str = Field(default="", alias="groupName")


class TopTenTorrentList(_Loose):
    caption: str = ""
    tag: str = ""
    limit: int = 0
    results: list[TopTenTorrent] = Field(default_factory=list)


class TopTenTorrentsResponse(Envelope):
    response: list[TopTenTorrentList]


class JSONResponse(Envelope):
    """Envelope with an untyped ``response`` member.

    Used for endpoints whose entity shapes the pipeline never inspects.
    """

    response: Any = None
