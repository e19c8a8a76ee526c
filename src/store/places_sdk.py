"""Python SDK for history import operations.

This module exposes high-level APIs for importing history exports,
hashing URLs and inspecting destination databases.
"""

from __future__ import annotations

from pathlib import Path

from core.config import PlaceportConfig
from core.types import ImportOptions, ImportSummary
from ingest.pipeline import import_history
from store.places_database import PlacesDatabase
from store.schema_profiles import SchemaProfile
from transforms.url_hash import hash_url


class PlaceportClient:
    """Primary SDK entry point for history imports."""

    def __init__(self, config: PlaceportConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or PlaceportConfig.from_env()

    @property
    def config(self) -> PlaceportConfig:
        """Runtime configuration used by this client."""
        return self._config

    def import_history(self, options: ImportOptions) -> ImportSummary:
        """Import a history export into a places database.

        Args:
            options: Source and destination locations.

        Returns:
            Counters for the run.

        Raises:
            PlaceportSourceError: If the export cannot be read.
            PlaceportStoreError: If the destination cannot be written.
        """
        return import_history(options, self._config)

    def hash_url(self, url: str) -> int:
        """Return the Firefox ``url_hash`` of a URL.

        Raises:
            MissingProtocolError: If the URL has no ``:`` separator.
        """
        return hash_url(url)

    def schema_profile(self, database_path: str) -> SchemaProfile:
        """Detect the schema profile of a places database without writing to it.

        Args:
            database_path: Path to ``places.sqlite``.

        Returns:
            Matching schema profile.

        Raises:
            PlaceportStoreError: If the database is missing or unsupported.
        """
        with PlacesDatabase.open(Path(database_path), self._config, readonly=True) as database:
            return database.profile
