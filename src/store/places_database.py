"""Destination places database connection.

This module opens ``places.sqlite`` for an exclusive import run, enables
write-ahead logging and owns the batch transaction and per-entry
savepoint boundaries the import driver works inside.
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Callable

from core.config import PlaceportConfig
from core.errors import PlaceportStoreError
from core.logging_config import get_logger
from store.schema_profiles import SchemaProfile, detect_schema_profile

_LOGGER = get_logger(__name__)

_ENTRY_SAVEPOINT = "import_entry"

EntryOperation = Callable[[sqlite3.Connection], bool]


class PlacesDatabase:
    """Open destination database with its detected schema profile."""

    def __init__(self, connection: sqlite3.Connection, profile: SchemaProfile) -> None:
        self._connection = connection
        self._profile = profile

    @classmethod
    def open(
        cls,
        database_path: Path,
        config: PlaceportConfig,
        readonly: bool = False,
    ) -> "PlacesDatabase":
        """Open an existing places database.

        Args:
            database_path: Path to ``places.sqlite``.
            config: Runtime configuration.
            readonly: Open without enabling WAL or allowing writes.

        Returns:
            Database handle with a resolved schema profile.

        Raises:
            PlaceportStoreError: If the file is missing, cannot be opened,
                or matches no schema profile.
        """
        resolved_path = database_path.expanduser()
        if not resolved_path.is_file():
            raise PlaceportStoreError(
                f"Places database not found at {resolved_path}. "
                "Provide the path of an existing places.sqlite file."
            )
        connection = _connect(resolved_path, config, readonly)
        try:
            profile = detect_schema_profile(connection, config.schema_profile)
        except PlaceportStoreError:
            connection.close()
            raise
        except sqlite3.Error as error:
            connection.close()
            raise PlaceportStoreError(
                f"Failed to inspect places database at {resolved_path}: {error}. "
                "Check that the file is a SQLite database."
            ) from error
        return cls(connection, profile)

    @property
    def connection(self) -> sqlite3.Connection:
        """Underlying SQLite connection."""
        return self._connection

    @property
    def profile(self) -> SchemaProfile:
        """Schema profile used for inserts."""
        return self._profile

    def begin_batch(self) -> None:
        """Start the transaction of a new batch."""
        self._connection.execute("BEGIN")

    def commit_batch(self) -> None:
        """Commit the current batch.

        Raises:
            PlaceportStoreError: If the commit fails; the batch is rolled back.
        """
        try:
            self._connection.execute("COMMIT")
        except sqlite3.Error as error:
            self.rollback_batch()
            raise PlaceportStoreError(
                f"Failed to commit import batch: {error}. "
                "Earlier batches are kept; re-run the import to resume."
            ) from error

    def rollback_batch(self) -> None:
        """Discard the current batch if a transaction is open."""
        if self._connection.in_transaction:
            self._connection.execute("ROLLBACK")

    def run_in_savepoint(self, operation: EntryOperation) -> bool:
        """Run one entry's writes inside a savepoint.

        The savepoint is rolled back when the operation raises or returns
        False, so a skipped or failed entry leaves no rows behind.

        Args:
            operation: Callable applying the entry; returns whether to keep it.

        Returns:
            The operation result.
        """
        self._connection.execute(f"SAVEPOINT {_ENTRY_SAVEPOINT}")
        try:
            keep = operation(self._connection)
        except Exception:
            self._rollback_savepoint()
            raise
        if keep:
            self._connection.execute(f"RELEASE SAVEPOINT {_ENTRY_SAVEPOINT}")
        else:
            self._rollback_savepoint()
        return keep

    def close(self) -> None:
        """Roll back any open batch and close the connection."""
        self.rollback_batch()
        self._connection.close()

    def __enter__(self) -> "PlacesDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _rollback_savepoint(self) -> None:
        self._connection.execute(f"ROLLBACK TO SAVEPOINT {_ENTRY_SAVEPOINT}")
        self._connection.execute(f"RELEASE SAVEPOINT {_ENTRY_SAVEPOINT}")


def _connect(database_path: Path, config: PlaceportConfig, readonly: bool) -> sqlite3.Connection:
    """Connect in manual transaction mode and apply durability pragmas."""
    mode = "ro" if readonly else "rw"
    uri = f"file:{database_path.resolve().as_posix()}?mode={mode}"
    timeout_seconds = max(0.1, config.busy_timeout_ms / 1000.0)
    connection: sqlite3.Connection | None = None
    try:
        connection = sqlite3.connect(uri, uri=True, timeout=timeout_seconds, isolation_level=None)
        connection.execute(f"PRAGMA busy_timeout = {config.busy_timeout_ms}")
        if not readonly:
            connection.execute("PRAGMA journal_mode = WAL")
            connection.execute("PRAGMA synchronous = NORMAL")
    except sqlite3.Error as error:
        if connection is not None:
            connection.close()
        raise PlaceportStoreError(
            f"Failed to open places database at {database_path}: {error}. "
            "Close the browser using this profile and retry."
        ) from error
    _LOGGER.debug("places_database_opened", path=str(database_path), readonly=readonly)
    return connection
