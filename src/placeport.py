"""Public SDK surface for placeport.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import PlaceportConfig
from core.errors import (
    PlaceportEntryError,
    PlaceportError,
    PlaceportSourceError,
    PlaceportStoreError,
)
from core.types import ImportEntry, ImportOptions, ImportSummary
from ingest.pipeline import HistoryImporter
from ingest.takeout_reader import TakeoutReader
from store.places_database import PlacesDatabase
from store.places_sdk import PlaceportClient
from store.schema_profiles import SchemaProfile, supported_schema_profiles
from transforms.guid import generate_guid
from transforms.url_hash import hash_url

__all__ = [
    "HistoryImporter",
    "ImportEntry",
    "ImportOptions",
    "ImportSummary",
    "PlaceportClient",
    "PlaceportConfig",
    "PlaceportEntryError",
    "PlaceportError",
    "PlaceportSourceError",
    "PlaceportStoreError",
    "PlacesDatabase",
    "SchemaProfile",
    "TakeoutReader",
    "generate_guid",
    "hash_url",
    "supported_schema_profiles",
]
