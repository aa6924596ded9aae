"""Corrections for known malformed tracker payloads.

Some Gazelle builds emit JSON that contradicts their own schema. Two cases
are known and handled:

- ``action=artist`` sends ``"extendedArtists":false`` for groups without
  extended artist credits, where an object is expected.
- ``action=top10&type=torrents`` sends ``"artist":false`` for torrents
  without a main artist, where a string is expected.

A :class:`QuirkRegistry` maps a decode target (a model class) to a
correction that rewrites the raw body. The dispatcher consults it only
after a first decode attempt fails, and retries exactly once. This is not
a general coercion layer: targets without a registered correction fail on
the first attempt.
"""

from __future__ import annotations

from typing import Callable, Optional

from pydantic import BaseModel

from trackerapi.models import ArtistResponse, TopTenTorrentsResponse

Correction = Callable[[bytes], bytes]


def replace_fragment(bad: bytes, good: bytes) -> Correction:
    """Build a correction that replaces every *bad* fragment with *good*."""

    def correct(body: bytes) -> bytes:
        return body.replace(bad, good)

    return correct


class QuirkRegistry:
    """Registry of body corrections keyed by decode target.

    Example::

        registry = QuirkRegistry()
        registry.register(ArtistResponse, replace_fragment(b'"x":false', b'"x":{}'))
        fix = registry.correction_for(ArtistResponse)
    """

    def __init__(self) -> None:
        self._corrections: dict[type[BaseModel], Correction] = {}

    def register(self, target: type[BaseModel], correction: Correction) -> None:
        """Register *correction* for *target*, replacing any earlier one."""
        self._corrections[target] = correction

    def correction_for(self, target: type[BaseModel]) -> Optional[Correction]:
        """Return the correction registered for exactly *target*, if any."""
        return self._corrections.get(target)

    def __contains__(self, target: object) -> bool:
        return target in self._corrections


def create_default_registry() -> QuirkRegistry:
    """Return a registry holding the two known tracker corrections."""
    registry = QuirkRegistry()
    registry.register(
        ArtistResponse,
        replace_fragment(b'"extendedArtists":false', b'"extendedArtists":{}'),
    )
    registry.register(
        TopTenTorrentsResponse,
        replace_fragment(b'"artist":false', b'"artist":""'),
    )
    return registry
