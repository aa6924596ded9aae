"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~trackerapi.exceptions.TrackerError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login from a
network outage without parsing stderr.

Example::

    $ trackerapi request artist --param id=1
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no session, run `trackerapi login` first
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Login was rejected, or an authenticated call was made without a session."""

EXIT_API_ERROR = 5
"""The tracker answered with a ``failure`` status envelope."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, non-200 status)."""

EXIT_DECODE_ERROR = 7
"""The response body did not match the expected payload shape."""

EXIT_CACHE_ERROR = 8
"""The response cache or cookie store could not be read or written."""
