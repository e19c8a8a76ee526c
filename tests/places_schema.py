"""Shared helpers creating empty places databases for tests."""

from __future__ import annotations

from pathlib import Path
import sqlite3

_ORIGIN_COLUMNS = {
    "legacy": "frecency INTEGER NOT NULL",
    "recalc_frecency": "frecency INTEGER NOT NULL, recalc_frecency INTEGER NOT NULL DEFAULT 0",
    "alt_frecency": (
        "frecency INTEGER NOT NULL, recalc_frecency INTEGER NOT NULL DEFAULT 0, "
        "alt_frecency INTEGER, recalc_alt_frecency INTEGER NOT NULL DEFAULT 0"
    ),
}

_PLACE_COLUMNS = {
    "legacy": "",
    "recalc_frecency": (
        ", description TEXT, preview_image_url TEXT, site_name TEXT, "
        "recalc_frecency INTEGER NOT NULL DEFAULT 0"
    ),
    "alt_frecency": (
        ", description TEXT, preview_image_url TEXT, site_name TEXT, "
        "recalc_frecency INTEGER NOT NULL DEFAULT 0, alt_frecency INTEGER, "
        "recalc_alt_frecency INTEGER NOT NULL DEFAULT 0"
    ),
}

_VISIT_COLUMNS = {
    "legacy": "",
    "recalc_frecency": ", source INTEGER NOT NULL DEFAULT 0",
    "alt_frecency": ", source INTEGER NOT NULL DEFAULT 0, triggeringPlaceId INTEGER",
}


def create_places_database(database_path: Path, profile_name: str = "alt_frecency") -> Path:
    """Create an empty places database with one profile's column layout.

    Args:
        database_path: Destination file path.
        profile_name: Schema profile whose layout is created.

    Returns:
        The database path.
    """
    connection = sqlite3.connect(database_path)
    try:
        connection.executescript(
            f"""
            CREATE TABLE moz_origins (
                id INTEGER PRIMARY KEY,
                prefix TEXT NOT NULL,
                host TEXT NOT NULL,
                {_ORIGIN_COLUMNS[profile_name]},
                UNIQUE (prefix, host)
            );
            CREATE TABLE moz_places (
                id INTEGER PRIMARY KEY,
                url LONGVARCHAR,
                title LONGVARCHAR,
                rev_host LONGVARCHAR,
                visit_count INTEGER DEFAULT 0,
                hidden INTEGER DEFAULT 0 NOT NULL,
                typed INTEGER DEFAULT 0 NOT NULL,
                frecency INTEGER DEFAULT -1 NOT NULL,
                last_visit_date INTEGER,
                guid TEXT,
                foreign_count INTEGER DEFAULT 0 NOT NULL,
                url_hash INTEGER DEFAULT 0 NOT NULL,
                origin_id INTEGER REFERENCES moz_origins(id)
                {_PLACE_COLUMNS[profile_name]}
            );
            CREATE UNIQUE INDEX moz_places_guid_uniqueindex ON moz_places (guid);
            CREATE TABLE moz_historyvisits (
                id INTEGER PRIMARY KEY,
                from_visit INTEGER,
                place_id INTEGER,
                visit_date INTEGER,
                visit_type INTEGER,
                session INTEGER
                {_VISIT_COLUMNS[profile_name]}
            );
            """
        )
        connection.commit()
    finally:
        connection.close()
    return database_path


def fetch_rows(database_path: Path, sql: str, parameters: tuple[object, ...] = ()) -> list[tuple]:
    """Run a read query against a database file and return all rows."""
    connection = sqlite3.connect(database_path)
    try:
        return connection.execute(sql, parameters).fetchall()
    finally:
        connection.close()
