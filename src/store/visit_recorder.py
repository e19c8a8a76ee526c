"""Visit deduplication and insertion.

By default a visit is a duplicate when any visit shares its timestamp,
whatever place it belongs to. Two different URLs visited in the same
microsecond therefore collide and only the first is kept. The
``place_timestamp`` identity keys on ``(place_id, visit_date)`` instead.
"""

from __future__ import annotations

import sqlite3

from core.logging_config import get_logger
from core.types import ImportEntry, VisitIdentity
from store.schema_profiles import SchemaProfile

_LOGGER = get_logger(__name__)


def record_visit(
    connection: sqlite3.Connection,
    profile: SchemaProfile,
    place_id: int,
    entry: ImportEntry,
    identity: VisitIdentity = "timestamp",
) -> bool:
    """Record one visit of a place unless it already exists.

    Args:
        connection: Destination connection inside the batch transaction.
        profile: Destination schema profile.
        place_id: Visited place id.
        entry: Source entry carrying URL, title and timestamp.
        identity: Duplicate visit key.

    Returns:
        True when the visit was inserted, False when skipped as duplicate.
    """
    if visit_exists(connection, place_id, entry.timestamp, identity):
        _log_duplicate(entry, identity)
        return False
    recalc_assignments = "".join(
        f", {assignment}" for assignment in profile.place_recalc_assignments
    )
    connection.execute(
        "UPDATE moz_places "
        "SET visit_count = visit_count + 1, "
        "last_visit_date = max(ifnull(last_visit_date, 0), ?)"
        f"{recalc_assignments} "
        "WHERE id = ?",
        (entry.timestamp, place_id),
    )
    statement = profile.visit_insert()
    connection.execute(statement.sql, statement.parameters(place_id, entry.timestamp))
    return True


def skip_known_timestamp(
    connection: sqlite3.Connection,
    entry: ImportEntry,
    identity: VisitIdentity = "timestamp",
) -> bool:
    """Return True when an entry is a duplicate before its place is resolved.

    Only the ``timestamp`` identity can decide this without a place id;
    ``place_timestamp`` always returns False here.
    """
    if identity != "timestamp" or not _timestamp_exists(connection, entry.timestamp):
        return False
    _log_duplicate(entry, identity)
    return True


def visit_exists(
    connection: sqlite3.Connection,
    place_id: int,
    timestamp: int,
    identity: VisitIdentity = "timestamp",
) -> bool:
    """Return whether a visit with the same identity is already stored."""
    if identity != "place_timestamp":
        return _timestamp_exists(connection, timestamp)
    row = connection.execute(
        "SELECT EXISTS(SELECT 1 FROM moz_historyvisits "
        "WHERE place_id = ? AND visit_date = ?)",
        (place_id, timestamp),
    ).fetchone()
    return bool(row[0])


def _timestamp_exists(connection: sqlite3.Connection, timestamp: int) -> bool:
    row = connection.execute(
        "SELECT EXISTS(SELECT 1 FROM moz_historyvisits WHERE visit_date = ?)",
        (timestamp,),
    ).fetchone()
    return bool(row[0])


def _log_duplicate(entry: ImportEntry, identity: VisitIdentity) -> None:
    _LOGGER.info(
        "visit_skipped_duplicate",
        url=entry.url,
        title=entry.display_title(),
        timestamp=entry.timestamp,
        identity=identity,
    )
