"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import PlaceportConfig, parse_batch_size
from core.errors import PlaceportConfigError

_CONFIG_VARIABLES = (
    "PLACEPORT_BATCH_SIZE",
    "PLACEPORT_READ_MODE",
    "PLACEPORT_SCHEMA_PROFILE",
    "PLACEPORT_VISIT_IDENTITY",
    "PLACEPORT_BUSY_TIMEOUT_MS",
    "PLACEPORT_S3_REGION",
    "PLACEPORT_S3_PROFILE",
)


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for variable in _CONFIG_VARIABLES:
        monkeypatch.delenv(variable, raising=False)


def test_from_env_uses_defaults() -> None:
    """Config without environment overrides should match the defaults."""
    assert PlaceportConfig.from_env() == PlaceportConfig()
    assert PlaceportConfig().batch_size == 1000


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read every supported variable."""
    monkeypatch.setenv("PLACEPORT_BATCH_SIZE", "50")
    monkeypatch.setenv("PLACEPORT_READ_MODE", "Stream")
    monkeypatch.setenv("PLACEPORT_SCHEMA_PROFILE", "legacy")
    monkeypatch.setenv("PLACEPORT_VISIT_IDENTITY", "place_timestamp")
    monkeypatch.setenv("PLACEPORT_BUSY_TIMEOUT_MS", "250")
    monkeypatch.setenv("PLACEPORT_S3_REGION", "eu-west-1")

    config = PlaceportConfig.from_env()

    assert config == PlaceportConfig(
        batch_size=50,
        read_mode="stream",
        schema_profile="legacy",
        visit_identity="place_timestamp",
        busy_timeout_ms=250,
        s3_region="eu-west-1",
    )


@pytest.mark.parametrize("raw_value", ["0", "unbounded", " Unbounded "])
def test_parse_batch_size_unbounded(raw_value: str) -> None:
    """Zero and unbounded should mean a single transaction."""
    assert parse_batch_size(raw_value) is None


@pytest.mark.parametrize("raw_value", ["many", "-5", "1.5"])
def test_parse_batch_size_rejects_invalid_values(raw_value: str) -> None:
    """Batch sizes should be non-negative integers."""
    with pytest.raises(PlaceportConfigError):
        parse_batch_size(raw_value)


@pytest.mark.parametrize(
    ("variable", "raw_value"),
    [
        ("PLACEPORT_READ_MODE", "mmap"),
        ("PLACEPORT_VISIT_IDENTITY", "url"),
        ("PLACEPORT_BUSY_TIMEOUT_MS", "soon"),
    ],
)
def test_from_env_raises_for_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
    variable: str,
    raw_value: str,
) -> None:
    """Config should fail for unsupported enumerations and numbers."""
    monkeypatch.setenv(variable, raw_value)

    with pytest.raises(PlaceportConfigError, match=variable):
        PlaceportConfig.from_env()
