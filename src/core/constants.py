"""Core constants used across placeport modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_BATCH_SIZE = 1000
DEFAULT_READ_MODE = "buffered"
SUPPORTED_READ_MODES = ("buffered", "stream")
DEFAULT_VISIT_IDENTITY = "timestamp"
SUPPORTED_VISIT_IDENTITIES = ("timestamp", "place_timestamp")
AUTO_SCHEMA_PROFILE = "auto"
DEFAULT_BUSY_TIMEOUT_MS = 5000
UNBOUNDED_BATCH_SIZE_VALUES = ("0", "unbounded")
DEFAULT_READ_CHUNK_SIZE = 64 * 1024

TAKEOUT_HISTORY_KEY = "Browser History"
TAKEOUT_URL_FIELD = "url"
TAKEOUT_TITLE_FIELD = "title"
TAKEOUT_TIMESTAMP_FIELD = "time_usec"

GOLDEN_RATIO = 0x9E3779B9
UINT32_MASK = 0xFFFFFFFF
URL_HASH_PREFIX_MASK = 0x0000FFFF

# See toolkit/components/places/Helpers.cpp in mozilla-central.
GUID_LENGTH = 12
GUID_BYTE_LENGTH = GUID_LENGTH // 4 * 3

REVERSE_HOST_SUFFIX = "."
DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
ORIGIN_PORT_OMITTED_SCHEMES = ("http", "https")
SPECIAL_SCHEMES = ("http", "https", "ws", "wss", "ftp", "file")

VISIT_TYPE_LINK = 1
VISIT_SESSION_NONE = 0
VISIT_SOURCE_LOCAL = 0
VISIT_FROM_NONE = 0
LEGACY_FRECENCY_RECALC_MARKER = -1
