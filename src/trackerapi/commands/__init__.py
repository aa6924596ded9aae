"""Built-in CLI sub-commands for trackerapi.

* :mod:`~trackerapi.commands.session` -- ``login``, ``logout``, ``account``,
  ``request`` and ``download-url``, registered directly on the root app.
* :mod:`~trackerapi.commands.cache` -- inspect or empty the response cache.
* :mod:`~trackerapi.commands.config` -- create, inspect and select profiles.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``cache`` and ``config``) or plain callback
functions registered on the root app.
"""
