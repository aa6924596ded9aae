"""Request dispatcher: request URL in, decoded payload out.

Every read the client performs ends up in :meth:`Dispatcher.dispatch`:

1. Refuse with :class:`~trackerapi.exceptions.AuthenticationRequired` when
   the session is not authenticated, before touching cache or network.
2. Fetch the body through the caching transport (or straight from the
   network transport when the cache must be bypassed).
3. Validate the :class:`~trackerapi.models.Envelope`; a non-success status
   raises :class:`~trackerapi.exceptions.APIError` with the server's
   message, whatever the rest of the payload looks like.
4. Decode into the target model. On failure, apply the target's registered
   quirk correction (if any) and try exactly once more.

The session manager calls :meth:`~Dispatcher.dispatch` with
``require_login=False, use_cache=False`` to probe the account while a
login is still in progress.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from trackerapi.client.quirks import QuirkRegistry, create_default_registry
from trackerapi.client.transport import Fetcher
from trackerapi.exceptions import APIError, AuthenticationRequired, DecodeError
from trackerapi.models import Envelope, SessionState
from trackerapi.output import debug

T = TypeVar("T", bound=BaseModel)


class Dispatcher:
    """Shared fetch-validate-decode pipeline.

    Args:
        fetcher: Cache-aware fetcher used for ordinary dispatches.
        network: Fetcher that always reaches the network; used when
            ``use_cache=False``.
        session: Session state consulted for the login gate. The dispatcher
            only reads it.
        quirks: Corrections for known malformed payloads. Defaults to
            :func:`~trackerapi.client.quirks.create_default_registry`.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        network: Fetcher,
        session: SessionState,
        quirks: QuirkRegistry | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._network = network
        self._session = session
        self._quirks = quirks if quirks is not None else create_default_registry()

    def dispatch(
        self,
        request_url: str,
        target: type[T],
        *,
        use_cache: bool = True,
        require_login: bool = True,
    ) -> T:
        """Fetch *request_url* and decode it into *target*.

        Args:
            request_url: Fully built request URL; also the cache key.
            target: Envelope subclass to decode the body into.
            use_cache: Read and write the response cache.
            require_login: Enforce the login gate.

        Raises:
            AuthenticationRequired: The session is not authenticated.
            NetworkError: The fetch failed or returned a non-200 status.
            CacheError: The cache could not be read or written.
            APIError: The envelope reports failure.
            DecodeError: The body matches neither the envelope nor *target*.
        """
        if require_login and not self._session.logged_in:
            raise AuthenticationRequired()

        fetcher = self._fetcher if use_cache else self._network
        body = fetcher.fetch(request_url)

        check_envelope(body)
        return self._decode(body, target)

    def _decode(self, body: bytes, target: type[T]) -> T:
        try:
            return target.model_validate_json(body)
        except ValidationError as first:
            correct = self._quirks.correction_for(target)
            if correct is None:
                raise DecodeError(f"Cannot decode {target.__name__}: {first}") from first

        debug(f"Applying {target.__name__} payload correction")
        try:
            return target.model_validate_json(correct(body))
        except ValidationError as second:
            raise DecodeError(
                f"Cannot decode {target.__name__} even after correction: {second}"
            ) from second


def check_envelope(body: bytes) -> Envelope:
    """Validate the ``status``/``error`` wrapper of *body*.

    Raises:
        DecodeError: The body is not JSON or lacks a ``status``.
        APIError: ``status`` is anything other than ``"success"``.
    """
    try:
        envelope = Envelope.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Malformed response envelope: {exc}") from exc
    if not envelope.ok:
        raise APIError(envelope.error or f"request failed with status '{envelope.status}'")
    return envelope
