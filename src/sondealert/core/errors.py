"""
Error taxonomy.

Callers decide how far an error propagates:
- `UpstreamError` from the location/landing fetch aborts a cycle; from a single
  notification it is scoped to that landing.
- `StorageError` on load aborts a cycle; on save it is reported and tolerated.
- `MalformedDataError` is always scoped to the offending landing.
"""

from __future__ import annotations


class SondeAlertError(Exception):
    """Base class for all errors raised by sondealert."""


class UpstreamError(SondeAlertError):
    """An external API call failed (transport, timeout, status or decode)."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class StorageError(SondeAlertError):
    """The dedup file could not be read, decoded or written."""


class MalformedDataError(SondeAlertError):
    """A per-landing field (e.g. the landing timestamp) could not be parsed."""

