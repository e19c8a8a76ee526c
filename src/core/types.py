"""Shared typed models.

This module defines immutable data models used by the reader, the
store resolvers and the import driver to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal

ReadMode = Literal["buffered", "stream"]
VisitIdentity = Literal["timestamp", "place_timestamp"]


@dataclass(frozen=True)
class ImportEntry:
    """One history entry from the source export.

    Attributes:
        url: Visited URL as written by the source browser.
        title: Page title, empty when the source had none.
        timestamp: Visit time in microseconds since the Unix epoch.
    """

    url: str
    title: str
    timestamp: int

    def display_title(self) -> str | None:
        """Return the title to store, None for an empty title."""
        return self.title or None

    def to_log_fields(self) -> dict[str, object]:
        """Return entry fields for structured log events."""
        return asdict(self)


@dataclass(frozen=True)
class ParsedUrl:
    """URL split into the parts the places schema relies on.

    Attributes:
        serialized: Normalized URL string used as place identity.
        scheme: Lowercase scheme without ``:``.
        host: Lowercase ASCII host, None for hostless URLs.
        port: Explicit non-default port, None otherwise.
    """

    serialized: str
    scheme: str
    host: str | None
    port: int | None


@dataclass(frozen=True)
class OriginKey:
    """Identity of a places origin row."""

    prefix: str
    host: str


@dataclass(frozen=True)
class ImportOptions:
    """Import command options.

    Attributes:
        source_uri: History export path or ``s3://bucket/key`` URI.
        database_path: Destination places.sqlite path.
    """

    source_uri: str
    database_path: str


@dataclass(frozen=True)
class ImportSummary:
    """Counters describing a finished import run.

    Attributes:
        entries: Source entries processed, including failed ones.
        imported: Visits written to the destination.
        duplicates: Visits skipped because they already existed.
        failed: Entries skipped because of per-entry errors.
        batches: Transactions committed.
    """

    entries: int = 0
    imported: int = 0
    duplicates: int = 0
    failed: int = 0
    batches: int = 0
