"""Unit tests for Firefox URL hashing."""

from __future__ import annotations

import pytest

from core.errors import MissingProtocolError
from transforms.url_hash import hash_simple, hash_url

_BOOKMARKLET_URL = (
    "javascript:(function()%7Bwindow.location%20%3D%20%60https%3A%2F%2Felk.zone%2F"
    "%24%7Bwindow.location.toString()%7D%60%3B%7D)()%3B"
)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com/", 47357371248711),
        ("https://vault.bitwarden.com/", 47358609224710),
        ("https://search.nixos.org/", 47360563686504),
        ("https://www.mozilla.org/about/", 47357608426557),
        (_BOOKMARKLET_URL, 61198099442140),
    ],
)
def test_hash_url_matches_reference_values(url: str, expected: int) -> None:
    """URL hash should match values stored by the browser."""
    assert hash_url(url) == expected


def test_hash_url_is_deterministic() -> None:
    """Repeated hashing of one URL should return one value."""
    values = {hash_url("http://example.com/") for _ in range(3)}

    assert values == {125508428684077}


def test_hash_url_distinguishes_trailing_slash_and_port() -> None:
    """Serialized URL differences should change the low bits."""
    assert hash_url("https://example.com") == 47358512656846
    assert hash_url("https://example.com:8443/") == 47358417175903


def test_hash_url_prefix_bits_hash_protocol() -> None:
    """Upper bits should carry the low 16 bits of the protocol hash."""
    assert hash_simple("https") == 2213423890
    assert hash_url("https://example.com/") >> 32 == 2213423890 & 0xFFFF


def test_hash_url_raises_without_protocol() -> None:
    """URL hash should fail when the text has no scheme separator."""
    with pytest.raises(MissingProtocolError):
        hash_url("no-protocol-here")
