"""Find-or-create resolution of places origins."""

from __future__ import annotations

import sqlite3

from core.types import ParsedUrl
from store.schema_profiles import SchemaProfile
from transforms.url_parsing import origin_key


def resolve_origin(
    connection: sqlite3.Connection,
    profile: SchemaProfile,
    parsed_url: ParsedUrl,
) -> int:
    """Return the origin id of a URL, inserting the origin when absent.

    Args:
        connection: Destination connection inside the batch transaction.
        profile: Destination schema profile.
        parsed_url: Parsed URL whose origin is resolved.

    Returns:
        Existing or newly assigned ``moz_origins.id``.

    Raises:
        OpaqueOriginError: If the URL has no scheme/host/port origin.
    """
    key = origin_key(parsed_url)
    row = connection.execute(
        "SELECT id FROM moz_origins WHERE host = ? AND prefix = ?",
        (key.host, key.prefix),
    ).fetchone()
    if row is not None:
        return int(row[0])
    statement = profile.origin_insert()
    cursor = connection.execute(statement.sql, statement.parameters(key.prefix, key.host))
    return int(cursor.lastrowid)
