"""
Content source resolution — turn a file's declared contents into a
fetchable URL and header list.

Shared by the config loader (which only warns) and the extraction loop
(which fails the entry).
"""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit

from ignextract.core.errors import HeaderError, SourceError
from ignextract.core.models.document import HTTPHeader

# Schemes an Ignition config may legally use.
KNOWN_SCHEMES = frozenset({"data", "http", "https", "s3", "tftp", "gs", "arn"})

# Schemes ignextract can actually fetch.
FETCHABLE_SCHEMES = frozenset({"data", "http", "https"})

# RFC 7230 token characters
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def parse_source(raw: str) -> SplitResult:
    """Parse a content source into its URL parts.

    Raises:
        SourceError: On control characters, malformed authority or port,
            or a missing scheme.
    """
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in raw):
        raise SourceError(f"invalid control character in source: {raw!r}")
    try:
        parts = urlsplit(raw)
        _ = parts.port  # raises on a non-numeric or out-of-range port
    except ValueError as e:
        raise SourceError(f"cannot parse source {raw!r}: {e}") from e
    if not parts.scheme:
        raise SourceError(f"missing scheme in source: {raw!r}")
    return parts


def parse_headers(headers: list[HTTPHeader]) -> list[tuple[str, str]]:
    """Validate header declarations and return them as ordered pairs.

    Raises:
        HeaderError: On an empty or malformed name, a duplicate name
            (case-insensitive), or a missing or multi-line value.
    """
    seen: set[str] = set()
    parsed: list[tuple[str, str]] = []
    for header in headers:
        if not header.name:
            raise HeaderError("HTTP header name can't be empty")
        if not _HEADER_NAME_RE.match(header.name):
            raise HeaderError(f"invalid HTTP header name: {header.name!r}")
        key = header.name.lower()
        if key in seen:
            raise HeaderError(f"duplicate HTTP header: {header.name}")
        seen.add(key)
        if not header.value:
            raise HeaderError(f"HTTP header {header.name} has no value")
        if "\r" in header.value or "\n" in header.value:
            raise HeaderError(f"HTTP header {header.name} value contains a line break")
        parsed.append((header.name, header.value))
    return parsed
