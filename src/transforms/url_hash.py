"""Firefox-compatible URL hashing.

This module reproduces the 64-bit ``url_hash`` places indexes URLs by.
The upper 16 bits hash the protocol, the lower 32 bits hash the whole URL.
"""

from __future__ import annotations

from core.constants import GOLDEN_RATIO, UINT32_MASK, URL_HASH_PREFIX_MASK
from core.errors import MissingProtocolError


def hash_url(url: str) -> int:
    """Hash a URL the way places computes ``moz_places.url_hash``.

    Args:
        url: Serialized URL.

    Returns:
        Unsigned 64-bit hash value.

    Raises:
        MissingProtocolError: If the URL has no ``:`` separator.
    """
    prefix, separator, _ = url.partition(":")
    if not separator:
        raise MissingProtocolError(f"URL is missing the protocol: '{url}'.")
    return ((hash_simple(prefix) & URL_HASH_PREFIX_MASK) << 32) + hash_simple(url)


def hash_simple(text: str) -> int:
    """Hash text with the golden-ratio rotate/xor/multiply mix.

    Args:
        text: Input text, hashed over its UTF-8 bytes.

    Returns:
        Unsigned 32-bit hash value.
    """
    hash_value = 0
    for byte in text.encode("utf-8"):
        rotated = ((hash_value << 5) | (hash_value >> 27)) & UINT32_MASK
        hash_value = ((rotated ^ byte) * GOLDEN_RATIO) & UINT32_MASK
    return hash_value
