"""HTTP client pipeline for trackerapi.

Classes:
    :class:`Transport` -- blocking network transport backed by :class:`httpx.Client`.
    :class:`CachingTransport` -- response cache composed in front of a transport.
    :class:`Dispatcher` -- login gate, envelope check, and quirk-tolerant decoding.
    :class:`QuirkRegistry` -- corrections for known malformed payloads.
    :class:`TrackerClient` -- the facade most callers use.

Example::

    from trackerapi.client import TrackerClient

    with TrackerClient("https://tracker.example/", "my-app/1.0") as client:
        client.login("alice", "hunter2")
        print(client.get_announcements())
"""

from trackerapi.client.caching import CachingTransport
from trackerapi.client.dispatcher import Dispatcher
from trackerapi.client.quirks import QuirkRegistry, create_default_registry
from trackerapi.client.tracker import TrackerClient
from trackerapi.client.transport import Transport

__all__ = [
    "CachingTransport",
    "Dispatcher",
    "QuirkRegistry",
    "TrackerClient",
    "Transport",
    "create_default_registry",
]
