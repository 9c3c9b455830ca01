"""
Shared test fixtures and configuration.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from ignextract.core.errors import FetchError
from ignextract.core.services.fetcher import Fetcher, FetchOptions


class FakeFetcher(Fetcher):
    """Fetcher test double.

    Serves canned bytes per URL, raises configured errors, and records
    every call. Unknown URLs fail like an unreachable host.
    """

    def __init__(self, responses: dict[str, bytes | Exception] | None = None):
        super().__init__()
        self.responses: dict[str, bytes | Exception] = dict(responses or {})
        self.calls: list[tuple[str, FetchOptions]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def fetch(self, url, sink, options=None):
        key = url if isinstance(url, str) else url.geturl()
        self.calls.append((key, options or FetchOptions()))
        response = self.responses.get(key)
        if response is None:
            raise FetchError(f"no route to {key}")
        if isinstance(response, Exception):
            raise response
        sink.write(response)
        return len(response)


def _ignition_config(files: list[dict], version: str = "3.3.0") -> dict:
    """Build a minimal Ignition document declaring ``files``."""
    return {"ignition": {"version": version}, "storage": {"files": files}}


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo handlers installed by setup_logging (CLI runs included)."""
    pkg = logging.getLogger("ignextract")
    handlers, level, propagate = list(pkg.handlers), pkg.level, pkg.propagate
    yield
    for h in list(pkg.handlers):
        if h not in handlers:
            pkg.removeHandler(h)
            h.close()
    pkg.setLevel(level)
    pkg.propagate = propagate


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes an Ignition document to disk."""

    def _write(files: list[dict], version: str = "3.3.0", name: str = "config.ign") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(_ignition_config(files, version)))
        return path

    return _write


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Return a path for an output directory that does not exist yet."""
    return tmp_path / "out"
