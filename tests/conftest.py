"""Shared test fixtures for trackerapi.

Provides a fake tracker served through :class:`httpx.MockTransport`, a
controllable clock for cache expiry, isolated config directories, and a
CLI runner. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional, Union
from urllib.parse import parse_qs

import httpx
import pytest

from trackerapi.client import TrackerClient
from trackerapi.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://tracker.example/"

ACCOUNT = {
    "username": "alice",
    "id": 7,
    "authkey": "ak-123",
    "passkey": "pk-456",
}

Payload = Union[dict, bytes, str, Callable[[httpx.Request], Any]]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    Flags such as ``--quiet`` installed by one CLI invocation must not leak
    into the next test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake tracker
# ---------------------------------------------------------------------------


class FakeTracker:
    """Just enough of a Gazelle site to exercise the client.

    * ``POST /login.php`` with the right form redirects to ``/index.php``
      and sets a ``session`` cookie; anything else lands back on the login
      page.
    * ``/ajax.php`` without an accepted session redirects to the login page
      (HTML, not JSON), like the real thing.
    * ``action=index`` returns :data:`ACCOUNT`; other actions answer from
      :attr:`routes`, or with a failure envelope when unknown.
    * ``/logout.php`` drops the session and answers :attr:`logout_status`.
    """

    def __init__(self, username: str = "alice", password: str = "hunter2") -> None:
        self.username = username
        self.password = password
        self.session_id = "sess-1"
        self.valid_sessions: set[str] = set()
        self.routes: dict[str, Payload] = {}
        self.logout_status = 200
        self.requests: list[httpx.Request] = []

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handle), follow_redirects=True)

    def calls(self, path: str, action: Optional[str] = None) -> list[httpx.Request]:
        """Requests seen for *path*, optionally only those for one ``action``."""
        return [
            r
            for r in self.requests
            if r.url.path == path and (action is None or r.url.params.get("action") == action)
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/login.php":
            return self._login(request)
        if path == "/index.php":
            return httpx.Response(200, text="<html>index</html>")
        if path == "/logout.php":
            self.valid_sessions.discard(self._session(request))
            if self.logout_status != 200:
                return httpx.Response(self.logout_status)
            return httpx.Response(302, headers={"Location": "/login.php"})
        if path == "/ajax.php":
            return self._ajax(request)
        return httpx.Response(404)

    def _session(self, request: httpx.Request) -> str:
        for part in request.headers.get("cookie", "").split(";"):
            name, _, value = part.strip().partition("=")
            if name == "session":
                return value
        return ""

    def _login(self, request: httpx.Request) -> httpx.Response:
        if request.method != "POST":
            return httpx.Response(200, text="<html>login</html>")
        form = parse_qs(request.content.decode())
        if form.get("username") == [self.username] and form.get("password") == [self.password]:
            self.valid_sessions.add(self.session_id)
            return httpx.Response(
                302,
                headers={
                    "Location": "/index.php",
                    "Set-Cookie": f"session={self.session_id}; Path=/",
                },
            )
        return httpx.Response(302, headers={"Location": "/login.php?invalid=1"})

    def _ajax(self, request: httpx.Request) -> httpx.Response:
        if self._session(request) not in self.valid_sessions:
            return httpx.Response(302, headers={"Location": "/login.php"})

        action = request.url.params.get("action")
        if action == "index":
            return httpx.Response(200, json={"status": "success", "response": ACCOUNT})

        payload = self.routes.get(action)
        if payload is None:
            return httpx.Response(200, json={"status": "failure", "error": "bad action"})
        if callable(payload):
            payload = payload(request)
        if isinstance(payload, (bytes, str)):
            return httpx.Response(200, content=payload)
        return httpx.Response(200, json=payload)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def success(response: Any) -> dict[str, Any]:
    return {"status": "success", "response": response}


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def make_client(tracker: FakeTracker, store_dir: Path, clock: FakeClock):
    """Factory for clients talking to :func:`tracker` and sharing one store.

    Each call builds a fresh client (a fresh "process"), so saved cookies
    and cached responses carry over while in-memory state does not.
    """
    clients: list[TrackerClient] = []

    def _make(**kwargs: Any) -> TrackerClient:
        kwargs.setdefault("store_dir", store_dir)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("http_client", tracker.http_client())
        client = TrackerClient(BASE_URL, "trackerapi-tests/1.0", **kwargs)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def logged_in(make_client) -> TrackerClient:
    client = make_client()
    client.login("alice", "hunter2")
    return client


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all TRACKERAPI_* environment variables and changes
    the working directory to tmp_path.
    """
    monkeypatch.setattr("trackerapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["TRACKERAPI_PROFILE", "TRACKERAPI_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Plain, colourless, verbose output so debug traces land on stderr."""
    output = OutputManager(format=OutputFormat.PLAIN, verbose=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()


def dumps(data: Any) -> bytes:
    return json.dumps(data).encode()
