"""History import orchestration.

This module applies import entries to the places database in batches.
Each batch is one transaction; each entry runs in its own savepoint so
a failing entry is logged and skipped without touching its batch.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sqlite3
from typing import Iterable

from core.config import PlaceportConfig
from core.errors import PlaceportEntryError, PlaceportStoreError
from core.logging_config import get_logger
from core.types import ImportEntry, ImportOptions, ImportSummary
from ingest.takeout_reader import TakeoutReader
from store.place_resolver import GuidFactory, resolve_place
from store.places_database import PlacesDatabase
from store.visit_recorder import record_visit, skip_known_timestamp
from transforms.guid import generate_guid
from transforms.url_parsing import parse_url

_LOGGER = get_logger(__name__)

_IMPORTED = "imported"
_DUPLICATE = "duplicate"
_FAILED = "failed"


class HistoryImporter:
    """Stateful driver applying entries to one open places database."""

    def __init__(
        self,
        database: PlacesDatabase,
        config: PlaceportConfig,
        guid_factory: GuidFactory = generate_guid,
    ) -> None:
        self._database = database
        self._config = config
        self._guid_factory = guid_factory

    def import_entries(self, entries: Iterable[ImportEntry]) -> ImportSummary:
        """Apply entries in source order and commit them in batches.

        Args:
            entries: Buffered or lazily produced import entries.

        Returns:
            Counters for the run.

        Raises:
            PlaceportStoreError: If a batch commit fails or the database rejects
                a write for a reason other than a constraint violation.
            PlaceportSourceError: If the entry source fails mid-run; the
                open batch is rolled back and earlier batches stay committed.
        """
        batch_size = self._config.batch_size
        counts = {_IMPORTED: 0, _DUPLICATE: 0, _FAILED: 0}
        batches = 0
        pending = 0
        try:
            for entry in entries:
                if pending == 0:
                    self._database.begin_batch()
                counts[self._import_entry(entry)] += 1
                pending += 1
                if batch_size and pending >= batch_size:
                    self._commit_batch(pending)
                    batches += 1
                    pending = 0
            if pending:
                self._commit_batch(pending)
                batches += 1
        except Exception:
            self._database.rollback_batch()
            raise
        return ImportSummary(
            entries=sum(counts.values()),
            imported=counts[_IMPORTED],
            duplicates=counts[_DUPLICATE],
            failed=counts[_FAILED],
            batches=batches,
        )

    def _import_entry(self, entry: ImportEntry) -> str:
        """Apply one entry and return its outcome.

        Raises:
            PlaceportStoreError: If the database fails for a reason other than
                a constraint violation of this entry.
        """
        try:
            recorded = self._database.run_in_savepoint(
                lambda connection: self._apply_entry(connection, entry)
            )
        except (PlaceportEntryError, sqlite3.IntegrityError) as error:
            _LOGGER.error(
                "entry_import_failed",
                **entry.to_log_fields(),
                error=str(error),
                error_type=type(error).__name__,
            )
            return _FAILED
        except sqlite3.Error as error:
            raise PlaceportStoreError(
                f"Failed to write history entry {entry.url!r}: {error}. "
                "Close the browser using this profile and re-run the import to resume."
            ) from error
        return _IMPORTED if recorded else _DUPLICATE

    def _apply_entry(self, connection: sqlite3.Connection, entry: ImportEntry) -> bool:
        profile = self._database.profile
        identity = self._config.visit_identity
        parsed_url = parse_url(entry.url)
        if skip_known_timestamp(connection, entry, identity):
            return False
        place_id = resolve_place(
            connection,
            profile,
            parsed_url,
            entry.display_title(),
            self._guid_factory,
        )
        return record_visit(
            connection,
            profile,
            place_id,
            entry,
            identity,
        )

    def _commit_batch(self, entry_count: int) -> None:
        self._database.commit_batch()
        _LOGGER.info("batch_committed", entry_count=entry_count)


def import_history(options: ImportOptions, config: PlaceportConfig) -> ImportSummary:
    """Import a history export into a places database.

    Args:
        options: Source and destination locations.
        config: Runtime configuration.

    Returns:
        Counters for the run; invalid source elements count as failed.

    Raises:
        PlaceportSourceError: If the export cannot be read or decoded.
        PlaceportStoreError: If the database cannot be opened or committed.
    """
    reader = TakeoutReader(options.source_uri, config)
    _LOGGER.info(
        "import_started",
        source_uri=options.source_uri,
        database_path=options.database_path,
        batch_size=config.batch_size,
        read_mode=config.read_mode,
        visit_identity=config.visit_identity,
    )
    with PlacesDatabase.open(Path(options.database_path), config) as database:
        importer = HistoryImporter(database, config)
        summary = importer.import_entries(reader)
        schema_profile = database.profile.name
    summary = replace(
        summary,
        entries=summary.entries + reader.invalid_entries,
        failed=summary.failed + reader.invalid_entries,
    )
    _log_import_completion(options, schema_profile, summary)
    return summary


def _log_import_completion(
    options: ImportOptions,
    schema_profile: str,
    summary: ImportSummary,
) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "import_completed",
        source_uri=options.source_uri,
        database_path=options.database_path,
        schema_profile=schema_profile,
        entries=summary.entries,
        imported=summary.imported,
        duplicates=summary.duplicates,
        failed=summary.failed,
        batches=summary.batches,
    )
