"""trackerapi -- client for Gazelle-style private tracker JSON APIs.

The tracker exposes its data through ``ajax.php?action=...`` behind a
cookie-based login. This package wraps that in a blocking client with:

* a session manager that resumes saved cookies before posting credentials,
* a TTL response cache on disk keyed by the request URL,
* an envelope check that turns ``{"status": "failure"}`` into an exception,
* scoped corrections for payloads the tracker is known to get wrong.

Typical use::

    from trackerapi import TrackerClient

    with TrackerClient("https://tracker.example/", "my-app/1.0") as client:
        client.login("alice", "hunter2")
        print(client.get_artist(1460).name)

or from the shell::

    trackerapi config add home --base-url https://tracker.example/ --username alice
    trackerapi login
    trackerapi request top10 --param type=torrents --param limit=10

Modules:
    app: Typer application and console-script entry point.
    session: Login, resume and logout.
    client: Transport, caching, dispatch, quirks and the client facade.
    cache: On-disk response cache and cookie store.
    models: Pydantic models for configuration, state and payloads.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

from trackerapi.client import TrackerClient
from trackerapi.exceptions import (
    APIError,
    AuthenticationRequired,
    CacheError,
    DecodeError,
    LoginFailed,
    NetworkError,
    TrackerError,
)

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "AuthenticationRequired",
    "CacheError",
    "DecodeError",
    "LoginFailed",
    "NetworkError",
    "TrackerClient",
    "TrackerError",
    "__version__",
]
