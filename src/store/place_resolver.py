"""Find-or-create resolution of places rows.

A place is identified by its exact serialized URL. New places get a
reversed host, a fresh GUID, the URL hash and their origin id; visit
aggregates start at zero and are maintained by the visit recorder.
"""

from __future__ import annotations

import sqlite3
from typing import Callable

from core.errors import OpaqueOriginError
from core.types import ParsedUrl
from store.origin_resolver import resolve_origin
from store.schema_profiles import SchemaProfile
from transforms.guid import generate_guid
from transforms.url_hash import hash_url
from transforms.url_parsing import reverse_host

GuidFactory = Callable[[], str]


def resolve_place(
    connection: sqlite3.Connection,
    profile: SchemaProfile,
    parsed_url: ParsedUrl,
    title: str | None,
    guid_factory: GuidFactory = generate_guid,
) -> int:
    """Return the place id of a URL, inserting the place when absent.

    Args:
        connection: Destination connection inside the batch transaction.
        profile: Destination schema profile.
        parsed_url: Parsed URL identifying the place.
        title: Page title, None when unknown.
        guid_factory: GUID source for new places.

    Returns:
        Existing or newly assigned ``moz_places.id``. Existing places are
        returned unchanged.

    Raises:
        MissingProtocolError: If the URL cannot be hashed.
        OpaqueOriginError: If the URL has no host or no tuple origin.
    """
    existing_id = find_place_id(connection, parsed_url.serialized)
    if existing_id is not None:
        return existing_id
    if not parsed_url.host:
        raise OpaqueOriginError(f"URL must have a host: '{parsed_url.serialized}'.")
    rev_host = reverse_host(parsed_url.host)
    guid = guid_factory()
    url_hash = hash_url(parsed_url.serialized)
    origin_id = resolve_origin(connection, profile, parsed_url)
    statement = profile.place_insert()
    cursor = connection.execute(
        statement.sql,
        statement.parameters(parsed_url.serialized, title, rev_host, guid, url_hash, origin_id),
    )
    return int(cursor.lastrowid)


def find_place_id(connection: sqlite3.Connection, url: str) -> int | None:
    """Return the id of the place with exactly this URL, if any."""
    row = connection.execute("SELECT id FROM moz_places WHERE url = ?", (url,)).fetchone()
    if row is None:
        return None
    return int(row[0])
