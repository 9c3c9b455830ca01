"""
Configuration loader — reads an Ignition document into domain models.

Parsing never raises: problems are collected into a ``Report`` whose
entries the caller always shows, and a fatal report or a top-level
``error`` means the document must not be extracted.

Ignition documents are JSON. A document that does not start with ``{``
is read as YAML, which covers hand-written configs kept in YAML.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import IO, Any

import yaml
from pydantic import ValidationError

from ignextract.core.errors import ConfigError, HeaderError, SourceError
from ignextract.core.models.document import Config
from ignextract.core.models.report import Report
from ignextract.core.services.sources import (
    FETCHABLE_SCHEMES,
    KNOWN_SCHEMES,
    parse_headers,
    parse_source,
)

logger = logging.getLogger(__name__)

# Token that selects standard input as the config source
STDIN_SOURCE = "-"

SUPPORTED_VERSIONS = frozenset({"3.0.0", "3.1.0", "3.2.0", "3.3.0", "3.4.0"})
EXPERIMENTAL_VERSIONS = frozenset({"3.5.0-experimental"})

SUPPORTED_COMPRESSION = frozenset({"", "gzip"})

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(-[0-9A-Za-z.-]+)?$")

ERR_EMPTY = "not a config (empty)"
ERR_INVALID = "config is not valid"
ERR_BAD_VERSION = "invalid config version (couldn't parse)"
ERR_UNKNOWN_VERSION = "unsupported config version"


@dataclass
class ParseResult:
    """Outcome of parsing one document."""

    config: Config | None = None
    report: Report = field(default_factory=Report)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.config is not None and self.error is None and not self.report.is_fatal()


def read_config(source: str, stdin: IO[bytes] | None = None) -> bytes:
    """Read raw config bytes from a file path or ``-`` for standard input.

    Raises:
        ConfigError: If the input cannot be read.
    """
    try:
        if source == STDIN_SOURCE:
            stream = stdin if stdin is not None else sys.stdin.buffer
            blob = stream.read()
        else:
            blob = Path(source).read_bytes()
    except OSError as e:
        raise ConfigError(f"couldn't read config: {e}") from e

    logger.debug("Read %d bytes of config from %s", len(blob), source)
    return blob


def parse_config(blob: bytes) -> ParseResult:
    """Parse and validate an Ignition document.

    Args:
        blob: Raw document bytes.

    Returns:
        ParseResult with the config (None when unusable), the
        diagnostic report, and a summary error if parsing failed.
    """
    result = ParseResult()
    report = result.report

    if not blob.strip():
        report.error(ERR_EMPTY)
        result.error = ERR_EMPTY
        return result

    try:
        data = _decode(blob)
    except (ValueError, yaml.YAMLError) as e:
        report.error(f"config is not valid JSON or YAML: {e}")
        result.error = ERR_INVALID
        return result

    if not isinstance(data, dict):
        report.error(f"expected a mapping at the top level, got {type(data).__name__}", "$")
        result.error = ERR_INVALID
        return result

    version_error = _check_version(data, report)
    if version_error:
        result.error = version_error
        return result

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            report.error(err["msg"], _context(err["loc"]))
        result.error = ERR_INVALID
        return result

    _check_files(config, report)

    if report.is_fatal():
        result.error = ERR_INVALID
        return result

    result.config = config
    logger.info(
        "Parsed Ignition %s config with %d file(s)",
        config.ignition.version,
        len(config.files),
    )
    return result


def _decode(blob: bytes) -> Any:
    text = blob.decode("utf-8")
    if text.lstrip().startswith("{"):
        return json.loads(text)
    return yaml.safe_load(text)


def _check_version(data: dict, report: Report) -> str | None:
    """Validate ``ignition.version``; return a summary error if unusable."""
    ignition = data.get("ignition")
    version = ignition.get("version") if isinstance(ignition, dict) else None
    context = "$.ignition.version"

    if not isinstance(version, str):
        report.error("no config version found", context)
        return ERR_BAD_VERSION

    match = _VERSION_RE.match(version)
    if match is None:
        report.error(f"{ERR_BAD_VERSION}: {version!r}", context)
        return ERR_BAD_VERSION

    if version in EXPERIMENTAL_VERSIONS:
        report.warning(f"config version {version} is experimental", context)
        return None

    if match.group(1) != "3" or version not in SUPPORTED_VERSIONS:
        report.error(f"{ERR_UNKNOWN_VERSION}: {version}", context)
        return ERR_UNKNOWN_VERSION

    return None


def _check_files(config: Config, report: Report) -> None:
    """Semantic checks on ``storage.files``.

    Problems that only affect a single entry at extraction time are
    warnings; the extraction loop reports them again as failures.
    """
    seen: set[str] = set()
    for i, entry in enumerate(config.files):
        ctx = f"$.storage.files.{i}"

        key = _path_key(entry.path)
        if not entry.path:
            report.error("path can't be empty", f"{ctx}.path")
        elif key in seen:
            report.error(f"duplicate entry defined: {entry.path}", f"{ctx}.path")
        elif ".." in PurePosixPath(entry.path).parts:
            report.warning("path contains '..' and will not be extracted", f"{ctx}.path")
        elif not entry.path.startswith("/"):
            # Extraction re-roots every path, so a relative one still has a place.
            report.warning(f"path not absolute: {entry.path}", f"{ctx}.path")
        seen.add(key)

        compression = entry.contents.compression or ""
        if compression not in SUPPORTED_COMPRESSION:
            report.error(f"unsupported compression: {compression}", f"{ctx}.contents.compression")

        if entry.source is not None:
            _check_source(entry.source, report, f"{ctx}.contents.source")

        try:
            parse_headers(entry.contents.http_headers)
        except HeaderError as e:
            report.warning(str(e), f"{ctx}.contents.httpHeaders")

        if entry.overwrite is None and entry.source is not None:
            report.info("overwrite is not set; file will be skipped", f"{ctx}.overwrite")


def _path_key(path: str) -> str:
    """Normalize a path the way extraction places it (``etc//hosts`` → ``/etc/hosts``)."""
    return "/" + "/".join(p for p in PurePosixPath(path).parts if p.strip("/"))


def _check_source(source: str, report: Report, context: str) -> None:
    try:
        parts = parse_source(source)
    except SourceError as e:
        report.warning(str(e), context)
        return
    scheme = parts.scheme.lower()
    if scheme not in KNOWN_SCHEMES:
        report.warning(f"unknown source scheme: {scheme}", context)
    elif scheme not in FETCHABLE_SCHEMES:
        report.warning(f"{scheme} sources can't be fetched by ignextract", context)


def _context(loc: tuple) -> str:
    return "$." + ".".join(str(part) for part in loc) if loc else "$"
