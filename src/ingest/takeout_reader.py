"""History export readers.

This module loads Chrome Takeout ``BrowserHistory.json`` documents from
local paths or S3 objects and yields typed import entries. Documents are
either decoded whole (``buffered``) or element by element from chunked
reads (``stream``); both modes validate entries the same way.
"""

from __future__ import annotations

import codecs
import json
from pathlib import Path
from typing import Any, Iterator, NoReturn

from core.config import PlaceportConfig
from core.constants import (
    DEFAULT_READ_CHUNK_SIZE,
    TAKEOUT_HISTORY_KEY,
    TAKEOUT_TIMESTAMP_FIELD,
    TAKEOUT_TITLE_FIELD,
    TAKEOUT_URL_FIELD,
)
from core.errors import InvalidEntryError, PlaceportDependencyError, PlaceportSourceError
from core.logging_config import get_logger
from core.s3_uri import is_s3_uri, parse_s3_uri
from core.types import ImportEntry

_LOGGER = get_logger(__name__)

_MAX_TIMESTAMP = 2**63 - 1
_JSON_WHITESPACE = " \t\n\r"


class TakeoutReader:
    """Iterable of import entries decoded from one history export."""

    def __init__(
        self,
        source_uri: str,
        config: PlaceportConfig,
        chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        """Create a reader.

        Args:
            source_uri: Local path or ``s3://bucket/key`` URI.
            config: Runtime configuration for read mode and S3 session.
            chunk_size: Characters read per chunk from the source.

        Raises:
            PlaceportSourceError: If a local source path does not exist.
        """
        self._source_uri = source_uri
        self._config = config
        self._chunk_size = chunk_size
        self.invalid_entries = 0
        if not is_s3_uri(source_uri):
            source_path = Path(source_uri).expanduser()
            if not source_path.is_file():
                raise PlaceportSourceError(
                    f"Failed to read history export at {source_path}: file does not exist. "
                    "Provide the path of a Takeout BrowserHistory.json file."
                )

    def __iter__(self) -> Iterator[ImportEntry]:
        chunks = self._read_chunks()
        if self._config.read_mode == "stream":
            elements = _stream_history_elements(chunks, self._source_uri)
        else:
            elements = _load_history_elements("".join(chunks), self._source_uri)
        for index, element in enumerate(elements):
            try:
                yield entry_from_payload(element)
            except InvalidEntryError as error:
                self.invalid_entries += 1
                _LOGGER.error(
                    "source_entry_invalid",
                    source_uri=self._source_uri,
                    index=index,
                    payload=repr(element),
                    error=str(error),
                )

    def _read_chunks(self) -> Iterator[str]:
        if is_s3_uri(self._source_uri):
            return _read_s3_chunks(self._source_uri, self._config, self._chunk_size)
        return _read_local_chunks(Path(self._source_uri).expanduser(), self._chunk_size)


def entry_from_payload(payload: object) -> ImportEntry:
    """Validate one history element and convert it into an entry.

    Args:
        payload: Decoded JSON array element.

    Returns:
        Typed import entry; extra fields are ignored.

    Raises:
        InvalidEntryError: If the element is not a history entry object.
    """
    if not isinstance(payload, dict):
        raise InvalidEntryError(
            f"Expected a history entry object, got {type(payload).__name__}."
        )
    url = payload.get(TAKEOUT_URL_FIELD)
    if not isinstance(url, str) or not url:
        raise InvalidEntryError(f"History entry needs a non-empty string '{TAKEOUT_URL_FIELD}'.")
    title = payload.get(TAKEOUT_TITLE_FIELD, "")
    if title is None:
        title = ""
    if not isinstance(title, str):
        raise InvalidEntryError(f"History entry field '{TAKEOUT_TITLE_FIELD}' must be a string.")
    timestamp = payload.get(TAKEOUT_TIMESTAMP_FIELD)
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise InvalidEntryError(
            f"History entry needs an integer '{TAKEOUT_TIMESTAMP_FIELD}' in microseconds."
        )
    if not 0 <= timestamp <= _MAX_TIMESTAMP:
        raise InvalidEntryError(
            f"History entry '{TAKEOUT_TIMESTAMP_FIELD}' is out of range: {timestamp}."
        )
    return ImportEntry(url=url, title=title, timestamp=timestamp)


def _load_history_elements(document_text: str, source_uri: str) -> list[Any]:
    """Decode a whole export document and return its history array."""
    try:
        document = json.loads(document_text)
    except json.JSONDecodeError as error:
        raise PlaceportSourceError(
            f"Failed to parse history export at {source_uri}: {error.msg} "
            f"(line {error.lineno}, column {error.colno}). Fix the JSON syntax and retry."
        ) from error
    if not isinstance(document, dict) or TAKEOUT_HISTORY_KEY not in document:
        raise PlaceportSourceError(
            f"Invalid history export at {source_uri}: expected an object with a "
            f"'{TAKEOUT_HISTORY_KEY}' array."
        )
    elements = document[TAKEOUT_HISTORY_KEY]
    if not isinstance(elements, list):
        raise PlaceportSourceError(
            f"Invalid history export at {source_uri}: '{TAKEOUT_HISTORY_KEY}' must be an array."
        )
    return elements


def _stream_history_elements(chunks: Iterator[str], source_uri: str) -> Iterator[Any]:
    """Yield elements of the history array without decoding the whole document."""
    stream = _JsonTokenStream(chunks, source_uri)
    stream.expect("{")
    while True:
        if stream.peek() != '"':
            stream.fail(f"expected an object with a '{TAKEOUT_HISTORY_KEY}' array")
        key = stream.decode_value()
        stream.expect(":")
        if key == TAKEOUT_HISTORY_KEY:
            yield from _stream_array_elements(stream)
            return
        stream.decode_value()
        stream.expect(",")


def _stream_array_elements(stream: _JsonTokenStream) -> Iterator[Any]:
    """Yield array elements one at a time."""
    if stream.peek() != "[":
        stream.fail(f"'{TAKEOUT_HISTORY_KEY}' must be an array")
    stream.expect("[")
    if stream.peek() == "]":
        return
    while True:
        yield stream.decode_value()
        separator = stream.next_char()
        if separator == "]":
            return
        if separator != ",":
            stream.fail(f"expected ',' or ']' in '{TAKEOUT_HISTORY_KEY}', found {separator!r}")


class _JsonTokenStream:
    """Incremental JSON scanner over text chunks."""

    def __init__(self, chunks: Iterator[str], source_uri: str) -> None:
        self._chunks = chunks
        self._source_uri = source_uri
        self._decoder = json.JSONDecoder()
        self._buffer = ""
        self._position = 0
        self._consumed = 0
        self._exhausted = False

    def peek(self) -> str | None:
        """Return the next non-whitespace character without consuming it."""
        self._skip_whitespace()
        if self._position >= len(self._buffer):
            return None
        return self._buffer[self._position]

    def next_char(self) -> str | None:
        """Consume and return the next non-whitespace character."""
        char = self.peek()
        if char is not None:
            self._position += 1
        return char

    def expect(self, char: str) -> None:
        """Consume ``char`` or fail."""
        actual = self.next_char()
        if actual != char:
            self.fail(f"expected '{char}', found {actual!r}")

    def decode_value(self) -> Any:
        """Decode one complete JSON value."""
        while True:
            self._skip_whitespace()
            try:
                value, end = self._decoder.raw_decode(self._buffer, self._position)
            except json.JSONDecodeError as error:
                if self._fill():
                    continue
                self.fail(error.msg)
            if end == len(self._buffer) and self._fill():
                continue
            self._position = end
            self._compact()
            return value

    def fail(self, reason: str) -> NoReturn:
        """Raise a source error pointing at the current offset."""
        offset = self._consumed + self._position
        raise PlaceportSourceError(
            f"Invalid history export at {self._source_uri} near character {offset}: "
            f"{reason}. Provide a Takeout BrowserHistory.json document."
        )

    def _skip_whitespace(self) -> None:
        while True:
            while (
                self._position < len(self._buffer)
                and self._buffer[self._position] in _JSON_WHITESPACE
            ):
                self._position += 1
            if self._position < len(self._buffer) or not self._fill():
                return

    def _fill(self) -> bool:
        if self._exhausted:
            return False
        for chunk in self._chunks:
            if chunk:
                self._buffer += chunk
                return True
        self._exhausted = True
        return False

    def _compact(self) -> None:
        if self._position > DEFAULT_READ_CHUNK_SIZE:
            self._consumed += self._position
            self._buffer = self._buffer[self._position:]
            self._position = 0


def _read_local_chunks(source_path: Path, chunk_size: int) -> Iterator[str]:
    """Yield text chunks of a local export file."""
    try:
        with source_path.open("r", encoding="utf-8-sig") as source_file:
            while True:
                chunk = source_file.read(chunk_size)
                if not chunk:
                    return
                yield chunk
    except (OSError, UnicodeDecodeError) as error:
        raise PlaceportSourceError(
            f"Failed to read history export at {source_path}: {error}. "
            "Check file permissions and encoding."
        ) from error


def _read_s3_chunks(source_uri: str, config: PlaceportConfig, chunk_size: int) -> Iterator[str]:
    """Yield decoded text chunks of an S3 export object."""
    location = parse_s3_uri(source_uri)
    s3_client = _create_s3_client(config)
    body = s3_client.get_object(Bucket=location.bucket, Key=location.key)["Body"]
    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    try:
        for raw_chunk in body.iter_chunks(chunk_size=chunk_size):
            yield decoder.decode(raw_chunk)
        yield decoder.decode(b"", final=True)
    except UnicodeDecodeError as error:
        raise PlaceportSourceError(
            f"Failed to decode history export at {source_uri}: {error}."
        ) from error


def _create_s3_client(config: PlaceportConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        PlaceportDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise PlaceportDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to import history exports from s3:// sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")
