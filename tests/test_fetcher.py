"""
Tests for content sources and the fetcher — data URLs, HTTP, gzip.
"""

import base64
import gzip
import io
from urllib.error import HTTPError, URLError

import pytest

from ignextract.core.config.settings import FetchSettings
from ignextract.core.errors import FetchError, HeaderError, SourceError
from ignextract.core.models.document import HTTPHeader
from ignextract.core.services.fetcher import USER_AGENT, Fetcher, FetchOptions
from ignextract.core.services.sources import parse_headers, parse_source

# ── Source / header parsing ─────────────────────────────────────────


class TestParseSource:
    def test_data_url(self):
        parts = parse_source("data:,hello")
        assert parts.scheme == "data"

    def test_https_url(self):
        parts = parse_source("https://example.com:8443/a/b?x=1")
        assert parts.hostname == "example.com"
        assert parts.port == 8443

    def test_bad_ipv6_host(self):
        with pytest.raises(SourceError):
            parse_source("http://[::1")

    def test_bad_port(self):
        with pytest.raises(SourceError):
            parse_source("http://example.com:port/")

    def test_missing_scheme(self):
        with pytest.raises(SourceError, match="missing scheme"):
            parse_source("/etc/hosts")

    def test_control_character(self):
        with pytest.raises(SourceError, match="control character"):
            parse_source("http://example.com/\nx")


class TestParseHeaders:
    def test_keeps_order(self):
        headers = [HTTPHeader(name="B", value="2"), HTTPHeader(name="A", value="1")]
        assert parse_headers(headers) == [("B", "2"), ("A", "1")]

    def test_empty(self):
        assert parse_headers([]) == []

    def test_empty_name(self):
        with pytest.raises(HeaderError, match="can't be empty"):
            parse_headers([HTTPHeader(name="", value="x")])

    def test_invalid_name(self):
        with pytest.raises(HeaderError, match="invalid HTTP header name"):
            parse_headers([HTTPHeader(name="Bad Name", value="x")])

    def test_duplicate_case_insensitive(self):
        with pytest.raises(HeaderError, match="duplicate"):
            parse_headers([HTTPHeader(name="X-A", value="1"), HTTPHeader(name="x-a", value="2")])

    def test_missing_value(self):
        with pytest.raises(HeaderError, match="no value"):
            parse_headers([HTTPHeader(name="X-A")])

    def test_line_break_in_value(self):
        with pytest.raises(HeaderError, match="line break"):
            parse_headers([HTTPHeader(name="X-A", value="a\r\nInjected: 1")])


# ── Data URLs ───────────────────────────────────────────────────────


class TestDataSources:
    def _fetch(self, url: str, **kwargs) -> bytes:
        sink = io.BytesIO()
        written = Fetcher().fetch(url, sink, FetchOptions(**kwargs))
        assert written == len(sink.getvalue())
        return sink.getvalue()

    def test_plain(self):
        assert self._fetch("data:,hello") == b"hello"

    def test_percent_encoded(self):
        assert self._fetch("data:,hello%20world%0A") == b"hello world\n"

    def test_base64(self):
        assert self._fetch("data:text/plain;base64,aGVsbG8=") == b"hello"

    def test_base64_without_mediatype(self):
        assert self._fetch("data:;base64,aGVsbG8=") == b"hello"

    def test_empty_payload(self):
        assert self._fetch("data:,") == b""

    def test_invalid_base64(self):
        with pytest.raises(FetchError, match="base64"):
            self._fetch("data:;base64,@@@")

    def test_missing_comma(self):
        with pytest.raises(FetchError, match="missing ','"):
            self._fetch("data:text/plain")

    def test_gzip(self):
        payload = base64.b64encode(gzip.compress(b"compressed hello")).decode()
        assert self._fetch(f"data:;base64,{payload}", compression="gzip") == b"compressed hello"

    def test_gzip_on_plain_data_fails(self):
        with pytest.raises(FetchError, match="cannot read content"):
            self._fetch("data:,not-gzip", compression="gzip")


class TestUnsupportedSources:
    @pytest.mark.parametrize("url", ["s3://bucket/key", "tftp://host/file", "gs://b/o", "ftp://x/y"])
    def test_rejected(self, url: str):
        with pytest.raises(FetchError, match="unsupported source scheme"):
            Fetcher().fetch(url, io.BytesIO())


# ── HTTP ────────────────────────────────────────────────────────────


class FakeOpener:
    """Stands in for urllib.request.urlopen; replays a list of results."""

    def __init__(self, *results):
        self.results = list(results)
        self.requests = []

    def __call__(self, request, timeout=None):
        self.requests.append((request, timeout))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return io.BytesIO(result)


def _http_error(code: int, msg: str = "error") -> HTTPError:
    return HTTPError("https://example.com/f", code, msg, {}, None)


class TestHTTPSources:
    def _fetcher(self, opener: FakeOpener, retries: int = 2) -> tuple[Fetcher, list[float]]:
        sleeps: list[float] = []
        settings = FetchSettings(timeout=5, retries=retries, backoff_base=0.1, backoff_max=1)
        return Fetcher(settings, opener=opener, sleep=sleeps.append), sleeps

    def test_streams_body(self):
        opener = FakeOpener(b"remote bytes")
        fetcher, _ = self._fetcher(opener)
        sink = io.BytesIO()
        assert fetcher.fetch("https://example.com/f", sink) == 12
        assert sink.getvalue() == b"remote bytes"
        request, timeout = opener.requests[0]
        assert request.full_url == "https://example.com/f"
        assert timeout == 5

    def test_default_headers(self):
        opener = FakeOpener(b"")
        fetcher, _ = self._fetcher(opener)
        fetcher.fetch("http://example.com/f", io.BytesIO())
        request, _ = opener.requests[0]
        assert request.get_header("User-agent") == USER_AGENT
        assert request.get_header("Accept-encoding") == "identity"

    def test_declared_headers_sent(self):
        opener = FakeOpener(b"")
        fetcher, _ = self._fetcher(opener)
        options = FetchOptions(headers=[("Authorization", "Bearer t"), ("User-Agent", "custom")])
        fetcher.fetch("https://example.com/f", io.BytesIO(), options)
        request, _ = opener.requests[0]
        assert request.get_header("Authorization") == "Bearer t"
        assert request.get_header("User-agent") == "custom"

    def test_retries_transient_errors(self):
        opener = FakeOpener(_http_error(503), URLError("connection refused"), b"ok")
        fetcher, sleeps = self._fetcher(opener, retries=2)
        sink = io.BytesIO()
        fetcher.fetch("https://example.com/f", sink)
        assert sink.getvalue() == b"ok"
        assert len(sleeps) == 2

    def test_gives_up_after_retries(self):
        opener = FakeOpener(_http_error(503), _http_error(503), _http_error(503, "Unavailable"))
        fetcher, sleeps = self._fetcher(opener, retries=2)
        with pytest.raises(FetchError, match="HTTP 503 Unavailable"):
            fetcher.fetch("https://example.com/f", io.BytesIO())
        assert len(sleeps) == 2

    def test_not_found_not_retried(self):
        opener = FakeOpener(_http_error(404, "Not Found"))
        fetcher, sleeps = self._fetcher(opener)
        with pytest.raises(FetchError, match="HTTP 404"):
            fetcher.fetch("https://example.com/f", io.BytesIO())
        assert sleeps == []
        assert len(opener.requests) == 1

    def test_connection_error(self):
        opener = FakeOpener(URLError("name resolution failed"))
        fetcher, _ = self._fetcher(opener, retries=0)
        with pytest.raises(FetchError, match="name resolution failed"):
            fetcher.fetch("https://example.com/f", io.BytesIO())

    def test_gzip_body(self):
        opener = FakeOpener(gzip.compress(b"unzipped"))
        fetcher, _ = self._fetcher(opener)
        sink = io.BytesIO()
        fetcher.fetch("https://example.com/f.gz", sink, FetchOptions(compression="gzip"))
        assert sink.getvalue() == b"unzipped"


class TestSinkErrors:
    def test_write_failure_wrapped(self):
        class BrokenSink(io.RawIOBase):
            def writable(self):
                return True

            def write(self, b):
                raise OSError("disk full")

        with pytest.raises(FetchError, match="disk full"):
            Fetcher().fetch("data:,hello", BrokenSink())
