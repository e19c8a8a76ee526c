"""URL normalization for places identity.

This module serializes URLs the way the destination browser stores them
and derives origin keys and reversed hosts from the parsed parts.
Only special schemes (http, https, ws, wss, ftp, file) get their
authority normalized; other schemes are kept verbatim apart from case.
"""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit

from core.constants import (
    DEFAULT_PORTS,
    ORIGIN_PORT_OMITTED_SCHEMES,
    REVERSE_HOST_SUFFIX,
    SPECIAL_SCHEMES,
)
from core.errors import InvalidUrlError, MissingProtocolError, OpaqueOriginError
from core.types import OriginKey, ParsedUrl

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_AUTHORITY_TERMINATORS = re.compile(r"[/?#]")


def parse_url(raw_url: str) -> ParsedUrl:
    """Parse and normalize a URL.

    Args:
        raw_url: URL text from the history export.

    Returns:
        Parsed URL with its normalized serialization.

    Raises:
        MissingProtocolError: If the URL has no scheme separator.
        InvalidUrlError: If the scheme, host or port is malformed.
    """
    url_text = raw_url.strip()
    scheme, separator, remainder = url_text.partition(":")
    if not separator:
        raise MissingProtocolError(f"URL is missing the protocol: '{raw_url}'.")
    if not _SCHEME_PATTERN.match(scheme):
        raise InvalidUrlError(f"URL has an invalid scheme: '{raw_url}'.")
    scheme = scheme.lower()
    if scheme not in SPECIAL_SCHEMES:
        return _parse_opaque_url(scheme, remainder)
    return _parse_special_url(raw_url, scheme, remainder)


def origin_key(parsed_url: ParsedUrl) -> OriginKey:
    """Derive the ``(prefix, host)`` origin identity of a URL.

    Args:
        parsed_url: Parsed URL.

    Returns:
        Origin key; http and https drop their default port from the host.

    Raises:
        OpaqueOriginError: If the URL has no tuple origin.
    """
    scheme = parsed_url.scheme
    if scheme not in DEFAULT_PORTS or not parsed_url.host:
        raise OpaqueOriginError(
            f"Opaque URLs are not supported: '{parsed_url.serialized}'."
        )
    port = DEFAULT_PORTS[scheme] if parsed_url.port is None else parsed_url.port
    prefix = f"{scheme}://"
    if scheme in ORIGIN_PORT_OMITTED_SCHEMES and port == DEFAULT_PORTS[scheme]:
        return OriginKey(prefix=prefix, host=parsed_url.host)
    return OriginKey(prefix=prefix, host=f"{parsed_url.host}:{port}")


def reverse_host(host: str) -> str:
    """Reverse an ASCII host and append the trailing separator."""
    return host[::-1] + REVERSE_HOST_SUFFIX


def _parse_opaque_url(scheme: str, remainder: str) -> ParsedUrl:
    host = None
    if remainder.startswith("//"):
        authority = _AUTHORITY_TERMINATORS.split(remainder[2:], maxsplit=1)[0]
        host = authority.rpartition("@")[2] or None
    return ParsedUrl(serialized=f"{scheme}:{remainder}", scheme=scheme, host=host, port=None)


def _parse_special_url(raw_url: str, scheme: str, remainder: str) -> ParsedUrl:
    if not remainder.startswith("//"):
        raise InvalidUrlError(f"URL is missing its authority: '{raw_url}'.")
    after_slashes = remainder[2:]
    match = _AUTHORITY_TERMINATORS.search(after_slashes)
    authority = after_slashes[: match.start()] if match else after_slashes
    tail = after_slashes[match.start():] if match else ""
    if not tail.startswith("/"):
        tail = "/" + tail
    authority_parts = urlsplit("//" + authority)
    hostname = authority_parts.hostname
    if not hostname:
        if scheme == "file":
            return ParsedUrl(
                serialized=f"file://{tail}", scheme=scheme, host=None, port=None
            )
        raise InvalidUrlError(f"URL is missing its host: '{raw_url}'.")
    host = _encode_host(raw_url, hostname)
    port = _parse_port(raw_url, authority_parts)
    if port == DEFAULT_PORTS.get(scheme):
        port = None
    userinfo, at_sign, _ = authority.rpartition("@")
    netloc = f"{userinfo}{at_sign}{host}" + (f":{port}" if port is not None else "")
    return ParsedUrl(
        serialized=f"{scheme}://{netloc}{tail}", scheme=scheme, host=host, port=port
    )


def _encode_host(raw_url: str, hostname: str) -> str:
    """Return the ASCII form of a lowercase host."""
    if ":" in hostname:
        return f"[{hostname}]"
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError as error:
        raise InvalidUrlError(f"URL has an invalid host: '{raw_url}': {error}.") from error


def _parse_port(raw_url: str, authority_parts: SplitResult) -> int | None:
    try:
        return authority_parts.port
    except ValueError as error:
        raise InvalidUrlError(f"URL has an invalid port: '{raw_url}'.") from error
