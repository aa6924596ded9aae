"""Config commands -- create, inspect and select tracker profiles.

Provides the ``trackerapi config`` sub-command group. A profile names one
tracker site and the account used on it; the password is never written to
disk, only the ``password_source`` it is read from (``env:VAR``,
``file:/path`` or ``prompt``).

Typical workflow::

    trackerapi config add home --base-url https://tracker.example/ \\
        --username alice --password-source env:TRACKER_PASSWORD
    trackerapi config use home
    trackerapi config show
"""

from __future__ import annotations

from typing import Optional

import typer

from trackerapi.commands.session import handle_errors
from trackerapi.output import get_output, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("add")
def config_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(..., "--base-url", help="Tracker site root."),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Account name."),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        help="Where to read the password: env:VAR, file:/path, or prompt.",
    ),
    user_agent: str = typer.Option(
        "trackerapi", "--user-agent", help="User-Agent header value."
    ),
    ttl: int = typer.Option(300, "--ttl", help="Response cache lifetime in seconds."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the response cache."),
    no_persist_cookies: bool = typer.Option(
        False, "--no-persist-cookies", help="Do not remember the session between runs."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Create a profile.

    The first profile created also becomes the default.

    Example::

        trackerapi config add home --base-url https://tracker.example/ -u alice
    """
    from trackerapi.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from trackerapi.models import CacheConfig, Profile

    with handle_errors():
        exists = profile_exists(name)
    if exists and not force:
        get_output().error(f"Profile '{name}' already exists (use --force to overwrite).")
        raise typer.Exit(code=2)
    if ttl < 0:
        get_output().error("--ttl must not be negative.")
        raise typer.Exit(code=2)

    profile = Profile(
        name=name,
        base_url=base_url,
        user_agent=user_agent,
        username=username,
        password_source=password_source,
        persist_cookies=not no_persist_cookies,
        cache=CacheConfig(enabled=not no_cache, ttl_seconds=ttl),
    )
    with handle_errors():
        save_profile(profile)
        config = load_global_config()
        if config.default_profile is None:
            config.default_profile = name
            save_global_config(config)
            info(f"'{name}' is now the default profile.")
    success(f"Profile '{name}' saved.")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Profile name (default: active profile)."),
) -> None:
    """Show a profile, or the active one when no name is given."""
    from trackerapi.commands.session import active_profile
    from trackerapi.config import get_config_dir, load_profile

    with handle_errors():
        profile = load_profile(name) if name else active_profile(ctx)
    info(f"Config directory: {get_config_dir()}")
    get_output().format_response(profile.model_dump(mode="json"))


@config_app.command("list")
def config_list() -> None:
    """List all profiles, marking the default."""
    from trackerapi.config import list_profiles, load_global_config, load_profile

    with handle_errors():
        default = load_global_config().default_profile
        rows = []
        for name in list_profiles():
            profile = load_profile(name)
            rows.append(
                [
                    name,
                    profile.base_url,
                    profile.username or "",
                    "*" if name == default else "",
                ]
            )
    if not rows:
        info("No profiles. Create one with: trackerapi config add NAME --base-url URL")
        return
    get_output().print_table(["name", "base_url", "username", "default"], rows, title="Profiles")


@config_app.command("remove")
def config_remove(
    name: str = typer.Argument(help="Profile name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Delete a profile. Cached responses and saved cookies are left in place."""
    from trackerapi.config import delete_profile, load_global_config, save_global_config

    if not yes and not typer.confirm(f"Remove profile '{name}'?"):
        info("Cancelled.")
        raise typer.Exit()
    with handle_errors():
        delete_profile(name)
        config = load_global_config()
        if config.default_profile == name:
            config.default_profile = None
            save_global_config(config)
    success(f"Profile '{name}' removed.")


@config_app.command("use")
def config_use(name: str = typer.Argument(help="Profile name.")) -> None:
    """Make a profile the default."""
    from trackerapi.config import load_global_config, load_profile, save_global_config

    with handle_errors():
        load_profile(name)
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)
    success(f"Default profile set to '{name}'.")
