"""Unit tests for the SDK client."""

from __future__ import annotations

from pathlib import Path

from core.config import PlaceportConfig
from core.types import ImportOptions
from store.places_sdk import PlaceportClient
from tests.fixture_paths import fixture_path
from tests.places_schema import create_places_database


def test_client_imports_and_inspects(tmp_path: Path) -> None:
    """Client should import a fixture and report the detected profile."""
    database_path = create_places_database(tmp_path / "places.sqlite", "legacy")
    client = PlaceportClient(PlaceportConfig())

    summary = client.import_history(
        ImportOptions(
            source_uri=str(fixture_path("takeout/three_entries.json")),
            database_path=str(database_path),
        )
    )

    assert summary.imported == 3
    assert client.schema_profile(str(database_path)).name == "legacy"
    assert client.hash_url("https://example.com/") == 47357371248711


def test_client_reads_config_from_env(monkeypatch) -> None:
    """Client without explicit config should read the environment."""
    monkeypatch.setenv("PLACEPORT_BATCH_SIZE", "25")

    assert PlaceportClient().config.batch_size == 25
