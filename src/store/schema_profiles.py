"""Destination schema profiles.

Column layouts of ``moz_origins``, ``moz_places`` and ``moz_historyvisits``
drift between browser releases. Each profile names one layout and the
values written for every column the engine does not compute itself.
Supporting a new layout means adding a profile, not branching inline.
"""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from typing import Mapping

from core.constants import (
    AUTO_SCHEMA_PROFILE,
    LEGACY_FRECENCY_RECALC_MARKER,
    VISIT_FROM_NONE,
    VISIT_SESSION_NONE,
    VISIT_SOURCE_LOCAL,
    VISIT_TYPE_LINK,
)
from core.errors import PlaceportStoreError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

ORIGINS_TABLE = "moz_origins"
PLACES_TABLE = "moz_places"
VISITS_TABLE = "moz_historyvisits"

ORIGIN_KEY_COLUMNS = ("prefix", "host")
PLACE_KEY_COLUMNS = ("url", "title", "rev_host", "guid", "url_hash", "origin_id")
VISIT_KEY_COLUMNS = ("place_id", "visit_date")


@dataclass(frozen=True)
class SchemaProfile:
    """One destination column layout.

    Attributes:
        name: Profile identifier used in configuration.
        description: Browser releases sharing this layout.
        origin_defaults: Fixed values for new origin rows.
        place_defaults: Fixed values for new place rows.
        visit_defaults: Fixed values for new visit rows.
        place_recalc_assignments: SQL assignments flagging a visited place
            for frecency recalculation.
    """

    name: str
    description: str
    origin_defaults: Mapping[str, object]
    place_defaults: Mapping[str, object]
    visit_defaults: Mapping[str, object]
    place_recalc_assignments: tuple[str, ...]

    def required_columns(self) -> dict[str, set[str]]:
        """Return the columns each table must have for this profile."""
        return {
            ORIGINS_TABLE: set(ORIGIN_KEY_COLUMNS) | set(self.origin_defaults),
            PLACES_TABLE: set(PLACE_KEY_COLUMNS) | set(self.place_defaults),
            VISITS_TABLE: set(VISIT_KEY_COLUMNS) | set(self.visit_defaults),
        }

    def origin_insert(self) -> InsertStatement:
        """Return the insert for a new origin keyed by ``(prefix, host)``."""
        return build_insert_statement(ORIGINS_TABLE, ORIGIN_KEY_COLUMNS, self.origin_defaults)

    def place_insert(self) -> InsertStatement:
        """Return the insert for a new place keyed by ``PLACE_KEY_COLUMNS``."""
        return build_insert_statement(PLACES_TABLE, PLACE_KEY_COLUMNS, self.place_defaults)

    def visit_insert(self) -> InsertStatement:
        """Return the insert for a new visit keyed by ``(place_id, visit_date)``."""
        return build_insert_statement(VISITS_TABLE, VISIT_KEY_COLUMNS, self.visit_defaults)


@dataclass(frozen=True)
class InsertStatement:
    """Parameterized insert with the profile defaults bound after the keys."""

    sql: str
    default_values: tuple[object, ...]

    def parameters(self, *key_values: object) -> tuple[object, ...]:
        """Return statement parameters for the given key column values."""
        return key_values + self.default_values


def build_insert_statement(
    table: str,
    key_columns: tuple[str, ...],
    defaults: Mapping[str, object],
) -> InsertStatement:
    """Build an insert covering key columns followed by defaulted columns.

    Args:
        table: Destination table name.
        key_columns: Columns whose values the caller supplies.
        defaults: Remaining columns and their fixed values.

    Returns:
        Insert statement with placeholders for every column.
    """
    columns = key_columns + tuple(defaults)
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
    return InsertStatement(sql=sql, default_values=tuple(defaults.values()))


_UNMODELED_PLACE_DEFAULTS: dict[str, object] = {
    "visit_count": 0,
    "hidden": 0,
    "typed": 0,
    "foreign_count": 0,
    "last_visit_date": None,
}

_PAGE_METADATA_DEFAULTS: dict[str, object] = {
    "description": None,
    "preview_image_url": None,
    "site_name": None,
}

ALT_FRECENCY_PROFILE = SchemaProfile(
    name="alt_frecency",
    description="Firefox 118 and later",
    origin_defaults={
        "frecency": 0,
        "recalc_frecency": 1,
        "alt_frecency": None,
        "recalc_alt_frecency": 1,
    },
    place_defaults={
        **_UNMODELED_PLACE_DEFAULTS,
        **_PAGE_METADATA_DEFAULTS,
        "frecency": 0,
        "recalc_frecency": 1,
        "alt_frecency": 0,
        "recalc_alt_frecency": 1,
    },
    visit_defaults={
        "from_visit": VISIT_FROM_NONE,
        "visit_type": VISIT_TYPE_LINK,
        "session": VISIT_SESSION_NONE,
        "source": VISIT_SOURCE_LOCAL,
        "triggeringPlaceId": None,
    },
    place_recalc_assignments=("recalc_frecency = 1",),
)

RECALC_FRECENCY_PROFILE = SchemaProfile(
    name="recalc_frecency",
    description="Firefox 89 to 117",
    origin_defaults={"frecency": 0, "recalc_frecency": 1},
    place_defaults={
        **_UNMODELED_PLACE_DEFAULTS,
        **_PAGE_METADATA_DEFAULTS,
        "frecency": 0,
        "recalc_frecency": 1,
    },
    visit_defaults={
        "from_visit": VISIT_FROM_NONE,
        "visit_type": VISIT_TYPE_LINK,
        "session": VISIT_SESSION_NONE,
        "source": VISIT_SOURCE_LOCAL,
    },
    place_recalc_assignments=("recalc_frecency = 1",),
)

LEGACY_PROFILE = SchemaProfile(
    name="legacy",
    description="Firefox 62 to 88, negative frecency marks stale rows",
    origin_defaults={"frecency": 0},
    place_defaults={
        **_UNMODELED_PLACE_DEFAULTS,
        "frecency": LEGACY_FRECENCY_RECALC_MARKER,
    },
    visit_defaults={
        "from_visit": VISIT_FROM_NONE,
        "visit_type": VISIT_TYPE_LINK,
        "session": VISIT_SESSION_NONE,
    },
    place_recalc_assignments=(
        "frecency = CASE WHEN frecency > 0 THEN -frecency "
        f"ELSE {LEGACY_FRECENCY_RECALC_MARKER} END",
    ),
)

# Newest first; detection picks the first profile the database satisfies.
SCHEMA_PROFILES: tuple[SchemaProfile, ...] = (
    ALT_FRECENCY_PROFILE,
    RECALC_FRECENCY_PROFILE,
    LEGACY_PROFILE,
)


def supported_schema_profiles() -> tuple[str, ...]:
    """Return configurable profile names, including ``auto``."""
    return (AUTO_SCHEMA_PROFILE,) + tuple(profile.name for profile in SCHEMA_PROFILES)


def get_schema_profile(name: str) -> SchemaProfile:
    """Look up a profile by name.

    Raises:
        PlaceportStoreError: If no profile has that name.
    """
    for profile in SCHEMA_PROFILES:
        if profile.name == name:
            return profile
    raise PlaceportStoreError(
        f"Unknown schema profile '{name}'. "
        f"Supported profiles: {', '.join(supported_schema_profiles())}."
    )


def detect_schema_profile(
    connection: sqlite3.Connection,
    requested: str = AUTO_SCHEMA_PROFILE,
) -> SchemaProfile:
    """Resolve the schema profile for an open places database.

    Args:
        connection: Open destination connection.
        requested: Profile name or ``auto`` for column-based detection.

    Returns:
        Matching schema profile.

    Raises:
        PlaceportStoreError: If tables are missing or no profile matches.
    """
    table_columns = _read_table_columns(connection)
    if requested != AUTO_SCHEMA_PROFILE:
        profile = get_schema_profile(requested)
        missing = _missing_columns(profile, table_columns)
        if missing:
            raise PlaceportStoreError(
                f"Places database does not match schema profile '{profile.name}': "
                f"missing columns {missing}. Use --schema-profile auto to detect it."
            )
        return profile
    for profile in SCHEMA_PROFILES:
        if not _missing_columns(profile, table_columns):
            _LOGGER.info(
                "schema_profile_detected",
                profile=profile.name,
                description=profile.description,
            )
            return profile
    raise PlaceportStoreError(
        "Places database layout is not supported: no schema profile matches its "
        f"columns. Supported profiles: {', '.join(p.name for p in SCHEMA_PROFILES)}."
    )


def _read_table_columns(connection: sqlite3.Connection) -> dict[str, set[str]]:
    """Read column names of the three history tables."""
    table_columns: dict[str, set[str]] = {}
    for table in (ORIGINS_TABLE, PLACES_TABLE, VISITS_TABLE):
        rows = connection.execute(f"PRAGMA table_info({table})").fetchall()
        if not rows:
            raise PlaceportStoreError(
                f"Places database has no {table} table. "
                "Point the import at a browser profile's places.sqlite."
            )
        table_columns[table] = {str(row[1]) for row in rows}
    return table_columns


def _missing_columns(
    profile: SchemaProfile,
    table_columns: dict[str, set[str]],
) -> list[str]:
    """Return ``table.column`` names the profile needs but the database lacks."""
    missing: list[str] = []
    for table, columns in profile.required_columns().items():
        missing.extend(f"{table}.{column}" for column in sorted(columns - table_columns[table]))
    return missing
