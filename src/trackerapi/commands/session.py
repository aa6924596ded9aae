"""Session commands -- log in, query the tracker, log out.

Every command here works against the active profile (``--profile``,
``TRACKERAPI_PROFILE``, ``./trackerapi.json`` or the default profile; see
:func:`~trackerapi.config.resolve_config`). Each invocation is its own
process, so commands first try to resume the session saved by an earlier
``trackerapi login`` and only ask for the password when the tracker no
longer accepts the saved cookies.

Typical workflow::

    trackerapi login
    trackerapi account --json
    trackerapi request artist --param id=1460
    trackerapi download-url 31337
    trackerapi logout
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer

from trackerapi.client import TrackerClient
from trackerapi.exceptions import ConfigError, InvalidUsageError, TrackerError
from trackerapi.models import Account, Profile
from trackerapi.output import debug, error, get_output, info, success, warning


# ------------------------------------------------------------------ #
# Shared helpers
# ------------------------------------------------------------------ #


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report a :class:`TrackerError` on stderr and exit with its code."""
    try:
        yield
    except TrackerError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None


def active_profile(ctx: typer.Context) -> Profile:
    """Resolve the profile selected by flags, environment or config."""
    from trackerapi.config import resolve_config

    cli_profile = ctx.obj.get("profile") if ctx.obj else None
    _, profile = resolve_config(cli_profile=cli_profile)
    if profile is None:
        raise ConfigError(
            "No profile configured. Create one with: "
            "trackerapi config add NAME --base-url URL --username USER"
        )
    return profile


def _make_client(profile: Profile) -> TrackerClient:
    from trackerapi.config import get_store_dir

    return TrackerClient.from_profile(profile, get_store_dir(profile))


@contextmanager
def _open_client(profile: Profile) -> Iterator[TrackerClient]:
    client = _make_client(profile)
    try:
        yield client
    finally:
        client.close()


def _establish(client: TrackerClient, profile: Profile) -> Account:
    """Resume the saved session, or log in with the profile's credentials."""
    from trackerapi.config import resolve_credential

    account = client.session.resume()
    if account is not None:
        debug(f"Using saved session for {profile.name}")
        return account
    if not profile.username:
        raise ConfigError(f"Profile '{profile.name}' has no username")
    password = resolve_credential(
        profile.password_source, prompt=f"Password for {profile.username} at {profile.base_url}: "
    )
    return client.login(profile.username, password)


def _parse_params(pairs: Optional[list[str]]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into query parameters; repeated keys become lists."""
    params: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Expected KEY=VALUE, got: {pair}")
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def login_command(ctx: typer.Context) -> None:
    """Log in with the active profile, reusing a saved session when possible.

    Example::

        trackerapi login
        TRACKERAPI_PROFILE=other trackerapi login
    """
    with handle_errors():
        profile = active_profile(ctx)
        with _open_client(profile) as client:
            account = _establish(client, profile)
    success(f"Logged in to {profile.base_url} as {account.username or profile.username}")


def logout_command(ctx: typer.Context) -> None:
    """End the saved session, locally and on the tracker."""
    with handle_errors():
        profile = active_profile(ctx)
        with _open_client(profile) as client:
            if client.session.resume() is None:
                info("No active session.")
                return
            acknowledged = client.logout()
    if acknowledged:
        success("Logged out.")
    else:
        warning("Logged out locally; the tracker did not confirm.")


def account_command(ctx: typer.Context) -> None:
    """Print the account payload for the active profile."""
    with handle_errors():
        profile = active_profile(ctx)
        with _open_client(profile) as client:
            account = _establish(client, profile)
    get_output().format_response(account.model_dump(mode="json"))


def request_command(
    ctx: typer.Context,
    action: str = typer.Argument(help="ajax.php action, e.g. 'artist' or 'top10'."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as KEY=VALUE (repeatable)."
    ),
) -> None:
    """Dispatch an arbitrary API action and print its ``response`` payload.

    Example::

        trackerapi request artist --param id=1460
        trackerapi request browse -P searchstr=wire -P format=FLAC --json
    """
    with handle_errors():
        params = _parse_params(param)
        profile = active_profile(ctx)
        with _open_client(profile) as client:
            _establish(client, profile)
            result = client.do(action, params)
    get_output().format_response(result.response)


def download_url_command(
    ctx: typer.Context,
    torrent_id: int = typer.Argument(help="Torrent id."),
) -> None:
    """Print a download URL for a torrent.

    The URL embeds the account's auth and pass keys; treat it as a secret.
    """
    with handle_errors():
        profile = active_profile(ctx)
        with _open_client(profile) as client:
            _establish(client, profile)
            url = client.create_download_url(torrent_id)
    get_output().print_data(url)
