"""Session lifecycle: login, silent resumption, and logout.

States::

    ANONYMOUS --login()--> AUTHENTICATING --probe ok--> AUTHENTICATED
        ^                        |                          |
        +-------- failure -------+--------- logout() -------+

A login first tries to *resume*: cookies saved by an earlier process are
loaded into the jar and the account endpoint is probed. If the tracker
accepts them, no password is sent. Otherwise the jar is emptied (and the
empty jar persisted) and the credentials are posted to ``login.php``. The
tracker redirects a successful login to the index page; landing anywhere
else is a :class:`~trackerapi.exceptions.LoginFailed`.

Either way the account probe runs once the tracker has accepted the
session, harvesting the auth key and pass key that capability URLs and
logout need, and the jar is saved for the next process.

:class:`SessionManager` owns the :class:`~trackerapi.models.SessionState`
and serialises login, logout and the probe with a lock; concurrent logins
on one client would otherwise interleave secret updates.
"""

from __future__ import annotations

import threading
from typing import Optional

from trackerapi.cache.cookies import CookieStore, dump_jar, restore_jar
from trackerapi.client.dispatcher import Dispatcher
from trackerapi.client.transport import Transport
from trackerapi.exceptions import LoginFailed, NetworkError, TrackerError
from trackerapi.models import Account, AccountResponse, SessionState, SessionStatus
from trackerapi.output import debug, warning
from trackerapi.urls import build_url

API_PATH = "ajax.php"
LOGIN_PATH = "login.php"
LOGOUT_PATH = "logout.php"
LOGIN_SUCCESS_MARKER = "index"


class SessionManager:
    """Authenticates one client against the tracker.

    Args:
        state: The client's session state; mutated only by this manager.
        transport: Network transport whose cookie jar holds the session.
        dispatcher: Used for the account probe, with the login gate and
            the cache bypassed.
        cookie_store: Where the jar is saved between runs. ``None``
            disables resumption.
    """

    def __init__(
        self,
        state: SessionState,
        transport: Transport,
        dispatcher: Dispatcher,
        cookie_store: Optional[CookieStore] = None,
    ) -> None:
        self._state = state
        self._transport = transport
        self._dispatcher = dispatcher
        self._cookie_store = cookie_store
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def logged_in(self) -> bool:
        return self._state.logged_in

    def login(self, username: str, password: str) -> Account:
        """Authenticate, resuming a saved session when the tracker still accepts it.

        Returns:
            The account payload from the probe.

        Raises:
            LoginFailed: The tracker rejected the credentials.
            NetworkError: The login post or the probe could not be sent.
            APIError, DecodeError: The probe after a credential login failed.
            CacheError: Saved cookies could not be read or written.
        """
        with self._lock:
            self._state.status = SessionStatus.AUTHENTICATING
            try:
                account = self._resume()
                if account is None:
                    account = self._submit_credentials(username, password)
            except BaseException:
                self._invalidate()
                raise
            self._state.status = SessionStatus.AUTHENTICATED
            self._save_cookies()
            return account

    def resume(self) -> Optional[Account]:
        """Re-establish a saved session without credentials.

        An already authenticated session is left as it is; its account is
        re-probed and returned.

        Returns:
            The account payload, or ``None`` when there is nothing to resume
            or the tracker no longer accepts the saved cookies.
        """
        with self._lock:
            if self._state.logged_in:
                return self._probe()
            self._state.status = SessionStatus.AUTHENTICATING
            try:
                account = self._resume()
            except BaseException:
                self._invalidate()
                raise
            if account is None:
                self._invalidate()
                return None
            self._state.status = SessionStatus.AUTHENTICATED
            self._save_cookies()
            return account

    def get_account(self) -> Account:
        """Probe the account endpoint and refresh the auth and pass keys.

        The probe never uses the response cache and does not require a
        completed login, which is what lets :meth:`login` test saved cookies.
        """
        with self._lock:
            return self._probe()

    def logout(self) -> bool:
        """End the session locally, then tell the tracker.

        Local state is cleared first and unconditionally, and the cookie
        jar (in memory and on disk) is emptied once the request is sent.
        The server-side logout is best effort: a failure is reported as a
        warning.

        Returns:
            ``True`` if the tracker acknowledged the logout request.
        """
        with self._lock:
            auth_key = self._state.auth_key
            self._invalidate()

        url = build_url(self._state.base_url, LOGOUT_PATH, params={"auth": auth_key})
        try:
            response = self._transport.get(url)
        except NetworkError as exc:
            warning(f"Server-side logout failed: {exc}")
            return False
        finally:
            self._forget_cookies()
        if response.is_error:
            warning(f"Server-side logout returned HTTP {response.status_code}")
            return False
        return True

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _resume(self) -> Optional[Account]:
        if self._cookie_store is None:
            return None

        base_url = self._state.base_url
        stored = self._cookie_store.load(base_url)
        restore_jar(self._transport.cookies, stored, base_url)
        if not dump_jar(self._transport.cookies, base_url):
            debug("No saved session cookies")
            return None

        debug(f"Trying to resume saved session for {base_url}")
        try:
            account = self._probe()
        except TrackerError as exc:
            debug(f"Saved session rejected ({exc}); logging in with credentials")
            self._transport.cookies.clear()
            self._cookie_store.save(base_url, [])
            return None
        debug("Resumed saved session")
        return account

    def _submit_credentials(self, username: str, password: str) -> Account:
        url = build_url(self._state.base_url, LOGIN_PATH)
        response = self._transport.post_form(url, {"username": username, "password": password})
        if LOGIN_SUCCESS_MARKER not in str(response.url):
            raise LoginFailed(f"login failed for {username}: landed on {response.url}")
        return self._probe()

    def _probe(self) -> Account:
        url = build_url(self._state.base_url, API_PATH, "index")
        result = self._dispatcher.dispatch(
            url, AccountResponse, use_cache=False, require_login=False
        )
        self._state.auth_key = result.response.authkey
        self._state.pass_key = result.response.passkey
        return result.response

    def _invalidate(self) -> None:
        self._state.auth_key = ""
        self._state.pass_key = ""
        self._state.status = SessionStatus.ANONYMOUS

    def _save_cookies(self) -> None:
        if self._cookie_store is None:
            return
        base_url = self._state.base_url
        self._cookie_store.save(base_url, dump_jar(self._transport.cookies, base_url))

    def _forget_cookies(self) -> None:
        self._transport.cookies.clear()
        if self._cookie_store is not None:
            self._cookie_store.save(self._state.base_url, [])
