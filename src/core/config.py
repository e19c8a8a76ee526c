"""Runtime configuration model for placeport.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    AUTO_SCHEMA_PROFILE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_BUSY_TIMEOUT_MS,
    DEFAULT_READ_MODE,
    DEFAULT_VISIT_IDENTITY,
    SUPPORTED_READ_MODES,
    SUPPORTED_VISIT_IDENTITIES,
    UNBOUNDED_BATCH_SIZE_VALUES,
)
from core.errors import PlaceportConfigError
from core.types import ReadMode, VisitIdentity


@dataclass(frozen=True)
class PlaceportConfig:
    """Validated runtime configuration.

    Attributes:
        batch_size: Entries per committed transaction, None for a single commit.
        read_mode: Source iteration strategy, ``buffered`` or ``stream``.
        schema_profile: Destination schema profile name or ``auto``.
        visit_identity: Duplicate visit key, ``timestamp`` or ``place_timestamp``.
        busy_timeout_ms: SQLite busy timeout for the destination connection.
        s3_region: Optional default AWS region for S3 sources.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    batch_size: int | None = DEFAULT_BATCH_SIZE
    read_mode: ReadMode = DEFAULT_READ_MODE
    schema_profile: str = AUTO_SCHEMA_PROFILE
    visit_identity: VisitIdentity = DEFAULT_VISIT_IDENTITY
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
    s3_region: str | None = None
    s3_profile: str | None = None

    @classmethod
    def from_env(cls) -> "PlaceportConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            PlaceportConfigError: If environment values are invalid.
        """
        batch_size = parse_batch_size(
            os.getenv("PLACEPORT_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))
        )
        read_mode = _parse_choice(
            "PLACEPORT_READ_MODE",
            os.getenv("PLACEPORT_READ_MODE", DEFAULT_READ_MODE),
            SUPPORTED_READ_MODES,
        )
        visit_identity = _parse_choice(
            "PLACEPORT_VISIT_IDENTITY",
            os.getenv("PLACEPORT_VISIT_IDENTITY", DEFAULT_VISIT_IDENTITY),
            SUPPORTED_VISIT_IDENTITIES,
        )
        busy_timeout_ms = _parse_busy_timeout(
            os.getenv("PLACEPORT_BUSY_TIMEOUT_MS", str(DEFAULT_BUSY_TIMEOUT_MS))
        )
        return cls(
            batch_size=batch_size,
            read_mode=read_mode,  # type: ignore[arg-type]
            schema_profile=os.getenv("PLACEPORT_SCHEMA_PROFILE", AUTO_SCHEMA_PROFILE),
            visit_identity=visit_identity,  # type: ignore[arg-type]
            busy_timeout_ms=busy_timeout_ms,
            s3_region=os.getenv("PLACEPORT_S3_REGION"),
            s3_profile=os.getenv("PLACEPORT_S3_PROFILE"),
        )


def parse_batch_size(raw_value: str) -> int | None:
    """Parse a batch size value.

    Args:
        raw_value: Positive integer, ``0`` or ``unbounded``.

    Returns:
        Batch size, or None when every entry shares one transaction.

    Raises:
        PlaceportConfigError: If value is not a non-negative integer.
    """
    normalized_value = raw_value.strip().lower()
    if normalized_value in UNBOUNDED_BATCH_SIZE_VALUES:
        return None
    try:
        batch_size = int(normalized_value)
    except ValueError as error:
        raise PlaceportConfigError(
            "Invalid PLACEPORT_BATCH_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set PLACEPORT_BATCH_SIZE to a positive number or 'unbounded'."
        ) from error
    if batch_size < 0:
        raise PlaceportConfigError(
            f"Invalid PLACEPORT_BATCH_SIZE value '{raw_value}': must not be negative."
        )
    return batch_size


def _parse_choice(variable: str, raw_value: str, choices: tuple[str, ...]) -> str:
    """Validate an enumerated environment value."""
    normalized_value = raw_value.strip().lower()
    if normalized_value not in choices:
        raise PlaceportConfigError(
            f"Invalid {variable} value '{raw_value}'. "
            f"Supported values: {', '.join(choices)}."
        )
    return normalized_value


def _parse_busy_timeout(raw_value: str) -> int:
    """Parse the SQLite busy timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed non-negative timeout in milliseconds.

    Raises:
        PlaceportConfigError: If value cannot be parsed into int.
    """
    try:
        timeout_ms = int(raw_value)
    except ValueError as error:
        raise PlaceportConfigError(
            "Invalid PLACEPORT_BUSY_TIMEOUT_MS value: "
            f"expected integer, got '{raw_value}'. "
            "Set PLACEPORT_BUSY_TIMEOUT_MS to a number of milliseconds."
        ) from error
    return max(0, timeout_ms)
