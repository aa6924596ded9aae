"""Typer application and CLI entry point for trackerapi.

This module wires together the top-level Typer application and registers
the built-in commands: the session commands (``login``, ``logout``,
``account``, ``request``, ``download-url``) directly on the root app, and
the ``cache`` and ``config`` sub-groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Commands are registered at import time so that tests can drive
:data:`app` with Typer's ``CliRunner``. Unhandled exceptions are written
to a crash log under the data directory.

See Also:
    :mod:`trackerapi.config`: Profile and global configuration resolution.
    :mod:`trackerapi.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from trackerapi import __version__
from trackerapi.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="trackerapi",
    help="Query a Gazelle-style tracker's JSON API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from trackerapi.commands.cache import cache_app  # noqa: E402
from trackerapi.commands.config import config_app  # noqa: E402
from trackerapi.commands.session import (  # noqa: E402
    account_command,
    download_url_command,
    login_command,
    logout_command,
    request_command,
)

app.command("login")(login_command)
app.command("logout")(logout_command)
app.command("account")(account_command)
app.command("request")(request_command)
app.command("download-url")(download_url_command)
app.add_typer(cache_app, name="cache", help="Inspect or empty the response cache.")
app.add_typer(config_app, name="config", help="Manage tracker profiles.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"trackerapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Trace cache, session and decoding steps."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~trackerapi.output.OutputManager` from the
    CLI flags and stores the profile override in ``ctx.obj`` for the
    sub-commands.
    """
    from trackerapi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under ``<data_dir>/logs`` and return its path."""
    from trackerapi.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``trackerapi`` console script.

    :class:`~trackerapi.exceptions.TrackerError` instances that escape a
    command cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from trackerapi.exceptions import TrackerError
        from trackerapi.output import error

        if isinstance(exc, TrackerError):
            error(exc.message)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
