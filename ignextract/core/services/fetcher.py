"""
Content fetcher — stream a file's bytes from its source into a sink.

Supported sources:
    data:   RFC 2397 data URLs (base64 or percent-encoded)
    http:   via urllib.request, with retry + backoff on transient errors
    https:  same as http

Everything else (s3, gs, tftp, arn ...) raises ``FetchError``.
``compression: gzip`` is decompressed while streaming.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import http.client
import io
import logging
import time
import urllib.request
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import IO, Any
from urllib.error import HTTPError, URLError
from urllib.parse import SplitResult, unquote_to_bytes, urlunsplit

from ignextract import __version__
from ignextract.core.config.settings import FetchSettings
from ignextract.core.errors import FetchError
from ignextract.core.reliability.backoff import call_with_retry
from ignextract.core.services.sources import parse_source

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

USER_AGENT = f"ignextract/{__version__}"

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class FetchOptions:
    """Per-fetch options.

    Args:
        headers: Ordered (name, value) pairs sent with HTTP requests.
        compression: ``"gzip"`` to decompress the source, or None/"".
    """

    headers: list[tuple[str, str]] = field(default_factory=list)
    compression: str | None = None


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, HTTPError):
        return exc.code in _RETRYABLE_STATUS
    return isinstance(exc, (URLError, TimeoutError, ConnectionError))


class Fetcher:
    """Fetches content sources into writable binary streams.

    Args:
        settings: Timeout and retry policy for HTTP sources.
        opener: Replacement for ``urllib.request.urlopen`` (tests).
        sleep: Replacement for ``time.sleep`` between retries (tests).
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        *,
        opener: Callable[..., Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._settings = settings or FetchSettings()
        self._opener = opener or urllib.request.urlopen
        self._sleep = sleep

    @property
    def settings(self) -> FetchSettings:
        return self._settings

    def fetch(
        self,
        url: SplitResult | str,
        sink: IO[bytes],
        options: FetchOptions | None = None,
    ) -> int:
        """Stream the contents of ``url`` into ``sink``.

        Returns:
            Number of bytes written to ``sink``.

        Raises:
            FetchError: If the source is unsupported, unreachable, or
                its payload cannot be decoded or written.
        """
        options = options or FetchOptions()
        parts = parse_source(url) if isinstance(url, str) else url
        scheme = parts.scheme.lower()

        if scheme == "data":
            stream = self._open_data(parts)
        elif scheme in ("http", "https"):
            stream = self._open_http(parts, options.headers)
        else:
            raise FetchError(f"unsupported source scheme: {scheme}")

        with stream:
            written = self._copy(stream, sink, options.compression)

        logger.debug("Fetched %d bytes from %s source", written, scheme)
        return written

    # ── Sources ─────────────────────────────────────────────────

    def _open_data(self, parts: SplitResult) -> IO[bytes]:
        raw = urlunsplit(parts)
        _, _, rest = raw.partition(":")
        header, sep, payload = rest.partition(",")
        if not sep:
            raise FetchError("invalid data url: missing ','")

        params = [p.strip().lower() for p in header.split(";")]
        data = unquote_to_bytes(payload)
        if "base64" in params[1:]:
            try:
                data = base64.b64decode(b"".join(data.split()), validate=True)
            except binascii.Error as e:
                raise FetchError(f"invalid base64 in data url: {e}") from e
        return io.BytesIO(data)

    def _open_http(self, parts: SplitResult, headers: list[tuple[str, str]]) -> IO[bytes]:
        url = urlunsplit(parts)
        request_headers = dict(headers)
        declared = {name.lower() for name in request_headers}
        if "user-agent" not in declared:
            request_headers["User-Agent"] = USER_AGENT
        if "accept-encoding" not in declared:
            request_headers["Accept-Encoding"] = "identity"

        try:
            request = urllib.request.Request(url, headers=request_headers)
        except ValueError as e:
            raise FetchError(f"invalid url {url}: {e}") from e

        def attempt() -> IO[bytes]:
            return self._opener(request, timeout=self._settings.timeout)

        try:
            return call_with_retry(
                attempt,
                self._settings.backoff,
                retryable=_is_retryable,
                sleep=self._sleep,
                label=url,
            )
        except HTTPError as e:
            raise FetchError(f"GET {url}: HTTP {e.code} {e.reason}") from e
        except URLError as e:
            raise FetchError(f"GET {url}: {e.reason}") from e
        except (OSError, ValueError, http.client.HTTPException) as e:
            raise FetchError(f"GET {url}: {e}") from e

    # ── Streaming ───────────────────────────────────────────────

    def _copy(self, stream: IO[bytes], sink: IO[bytes], compression: str | None) -> int:
        reader: IO[bytes] = stream
        if compression == "gzip":
            reader = gzip.GzipFile(fileobj=stream, mode="rb")
        elif compression:
            raise FetchError(f"unsupported compression: {compression}")

        written = 0
        while True:
            try:
                chunk = reader.read(CHUNK_SIZE)
            except (OSError, EOFError, zlib.error, http.client.HTTPException) as e:
                raise FetchError(f"cannot read content: {e}") from e
            if not chunk:
                break
            try:
                sink.write(chunk)
            except OSError as e:
                raise FetchError(f"cannot write content: {e}") from e
            written += len(chunk)
        return written
