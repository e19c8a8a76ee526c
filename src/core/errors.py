"""Placeport exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Fatal errors stop an import run; entry errors only skip one entry.
"""

from __future__ import annotations


class PlaceportError(Exception):
    """Base exception for all placeport failures."""


class PlaceportConfigError(PlaceportError):
    """Raised for invalid runtime configuration."""


class PlaceportSourceError(PlaceportError):
    """Raised when the history export cannot be opened or decoded."""


class PlaceportStoreError(PlaceportError):
    """Raised when the places database cannot be opened, detected or committed."""


class PlaceportDependencyError(PlaceportError):
    """Raised when an optional runtime dependency is missing."""


class PlaceportEntryError(PlaceportError):
    """Raised for a single history entry that cannot be imported."""


class MissingProtocolError(PlaceportEntryError):
    """Raised when a URL has no ``:`` protocol separator."""


class OpaqueOriginError(PlaceportEntryError):
    """Raised when a URL origin cannot be expressed as scheme, host and port."""


class InvalidUrlError(PlaceportEntryError):
    """Raised when a URL cannot be parsed."""


class InvalidEntryError(PlaceportEntryError):
    """Raised when a source element does not have the history entry shape."""
