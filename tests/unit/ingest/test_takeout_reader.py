"""Unit tests for history export readers."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from core.config import PlaceportConfig
from core.errors import InvalidEntryError, PlaceportDependencyError, PlaceportSourceError
from core.types import ImportEntry
from ingest.takeout_reader import TakeoutReader, entry_from_payload
from tests.fixture_paths import fixture_path

_BUFFERED = PlaceportConfig()
_STREAM = replace(PlaceportConfig(), read_mode="stream")


class _FakeLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, object]]] = []

    def error(self, event: str, **fields: object) -> None:
        self.events.append((event, fields))


@pytest.mark.parametrize("config", [_BUFFERED, _STREAM], ids=["buffered", "stream"])
def test_reader_yields_entries_in_order(config: PlaceportConfig) -> None:
    """Both read modes should yield the same typed entries."""
    reader = TakeoutReader(str(fixture_path("takeout/three_entries.json")), config)

    entries = list(reader)

    assert [entry.timestamp for entry in entries] == [
        1700000000000000,
        1700000100000000,
        1700000200000000,
    ]
    assert entries[0] == ImportEntry(
        url="https://www.mozilla.org/about/",
        title="About Mozilla",
        timestamp=1700000000000000,
    )


@pytest.mark.parametrize("chunk_size", [1, 7, 4096])
def test_stream_reader_skips_leading_keys_across_chunks(chunk_size: int) -> None:
    """Streaming should skip other top-level values at any chunk boundary."""
    reader = TakeoutReader(
        str(fixture_path("takeout/leading_keys.json")), _STREAM, chunk_size=chunk_size
    )

    urls = [entry.url for entry in reader]

    assert urls == ["https://vault.bitwarden.com/", "https://vault.bitwarden.com:8443/"]


@pytest.mark.parametrize("config", [_BUFFERED, _STREAM], ids=["buffered", "stream"])
def test_reader_counts_invalid_elements(config: PlaceportConfig, monkeypatch) -> None:
    """Invalid array elements should be logged, counted and skipped."""
    fake_logger = _FakeLogger()
    monkeypatch.setattr("ingest.takeout_reader._LOGGER", fake_logger)
    reader = TakeoutReader(str(fixture_path("takeout/mixed_entries.json")), config)

    entries = list(reader)

    assert len(entries) == 4
    assert entries[-1].title == ""
    assert reader.invalid_entries == 2
    assert [fields["index"] for _, fields in fake_logger.events] == [3, 4]
    assert {event for event, _ in fake_logger.events} == {"source_entry_invalid"}


@pytest.mark.parametrize("config", [_BUFFERED, _STREAM], ids=["buffered", "stream"])
@pytest.mark.parametrize("fixture_name", ["truncated.json", "not_an_array.json"])
def test_reader_raises_for_malformed_document(config: PlaceportConfig, fixture_name: str) -> None:
    """Malformed documents should fail as source errors."""
    reader = TakeoutReader(str(fixture_path(f"takeout/{fixture_name}")), config)

    with pytest.raises(PlaceportSourceError):
        list(reader)


@pytest.mark.parametrize("config", [_BUFFERED, _STREAM], ids=["buffered", "stream"])
def test_reader_handles_empty_history(config: PlaceportConfig) -> None:
    """An empty history array should yield nothing."""
    reader = TakeoutReader(str(fixture_path("takeout/empty.json")), config)

    assert list(reader) == []


def test_stream_reader_yields_before_failure() -> None:
    """Streaming should hand out complete elements before a truncated tail."""
    entries = iter(TakeoutReader(str(fixture_path("takeout/truncated.json")), _STREAM))

    first = next(entries)

    assert first.url == "https://example.com/"
    with pytest.raises(PlaceportSourceError):
        next(entries)


def test_reader_raises_for_missing_history_key(tmp_path: Path) -> None:
    """Documents without the history array should be rejected."""
    source_path = tmp_path / "history.json"
    source_path.write_text('{"Bookmarks": []}', encoding="utf-8")

    for config in (_BUFFERED, _STREAM):
        with pytest.raises(PlaceportSourceError):
            list(TakeoutReader(str(source_path), config))


def test_reader_accepts_byte_order_mark(tmp_path: Path) -> None:
    """A UTF-8 byte order mark should not break decoding."""
    source_path = tmp_path / "history.json"
    source_path.write_bytes(
        b'\xef\xbb\xbf{"Browser History": [{"title": "x", "url": "https://a.example/", '
        b'"time_usec": 3}]}'
    )

    assert [entry.timestamp for entry in TakeoutReader(str(source_path), _STREAM)] == [3]


def test_reader_raises_for_missing_file(tmp_path: Path) -> None:
    """Missing local sources should fail before reading."""
    missing_path = tmp_path / "missing.json"

    with pytest.raises(PlaceportSourceError):
        TakeoutReader(str(missing_path), _BUFFERED)

    assert missing_path.exists() is False


def test_reader_reports_missing_boto3(monkeypatch) -> None:
    """S3 sources should fail clearly when boto3 is unavailable."""
    import builtins

    original_import = builtins.__import__

    def _patched_import(name, *args, **kwargs):
        if name == "boto3":
            raise ImportError("No module named boto3")
        return original_import(name, *args, **kwargs)

    monkeypatch.setattr(builtins, "__import__", _patched_import)
    reader = TakeoutReader("s3://exports/BrowserHistory.json", _BUFFERED)

    with pytest.raises(PlaceportDependencyError):
        list(reader)


def test_reader_reads_s3_objects(monkeypatch) -> None:
    """S3 objects should be decoded from streamed body chunks."""
    payload = fixture_path("takeout/three_entries.json").read_bytes()
    requests: list[dict[str, str]] = []

    class _FakeBody:
        def iter_chunks(self, chunk_size: int):
            for start in range(0, len(payload), 5):
                yield payload[start : start + 5]

    class _FakeS3Client:
        def get_object(self, **kwargs: str) -> dict[str, object]:
            requests.append(kwargs)
            return {"Body": _FakeBody()}

    monkeypatch.setattr(
        "ingest.takeout_reader._create_s3_client", lambda config: _FakeS3Client()
    )
    reader = TakeoutReader("s3://exports/takeout/BrowserHistory.json", _STREAM)

    entries = list(reader)

    assert len(entries) == 3
    assert requests == [{"Bucket": "exports", "Key": "takeout/BrowserHistory.json"}]


@pytest.mark.parametrize(
    "payload",
    [
        ["https://example.com/"],
        {"url": "", "time_usec": 1},
        {"url": "https://example.com/", "title": 5, "time_usec": 1},
        {"url": "https://example.com/", "time_usec": "1"},
        {"url": "https://example.com/", "time_usec": True},
        {"url": "https://example.com/", "time_usec": -1},
        {"url": "https://example.com/", "time_usec": 2**63},
    ],
)
def test_entry_from_payload_rejects_invalid_elements(payload: object) -> None:
    """Elements with wrong field types should be rejected."""
    with pytest.raises(InvalidEntryError):
        entry_from_payload(payload)


def test_entry_from_payload_defaults_missing_title() -> None:
    """Null or missing titles should become empty strings."""
    entry = entry_from_payload({"url": "https://example.com/", "title": None, "time_usec": 0})

    assert entry == ImportEntry(url="https://example.com/", title="", timestamp=0)
    assert entry.display_title() is None
