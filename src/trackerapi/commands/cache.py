"""Cache commands -- inspect or empty the response cache.

The cache lives under the active profile's store directory (see
:func:`~trackerapi.config.get_store_dir`). Saved session cookies sit next
to it but are never touched by these commands; use ``trackerapi logout``
to forget a session.
"""

from __future__ import annotations

import typer

from trackerapi.commands.session import active_profile, handle_errors
from trackerapi.output import get_output, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(ctx: typer.Context):
    from trackerapi.cache import ResponseCache
    from trackerapi.config import get_store_dir

    profile = active_profile(ctx)
    return ResponseCache(get_store_dir(profile), profile.cache)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show whether the cache is enabled, where it lives and how many entries it holds."""
    with handle_errors():
        cache = _open_cache(ctx)
        try:
            stats = cache.stats()
        finally:
            cache.close()
    get_output().format_response(stats)


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Remove every cached response for the active profile."""
    if not yes and not typer.confirm("Remove all cached responses?"):
        info("Cancelled.")
        raise typer.Exit()
    with handle_errors():
        cache = _open_cache(ctx)
        try:
            cache.clear()
        finally:
            cache.close()
    success("Response cache cleared.")
