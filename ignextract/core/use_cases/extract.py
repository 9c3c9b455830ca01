"""
Extract use case — materialize the files of an Ignition config on disk.

Each declared file goes through a fixed pipeline:

    overwrite gate → path → mkdir → create → source → headers → fetch

and ends in exactly one ``ExtractionOutcome``. A failure at any stage
is recorded and the loop moves on to the next file; only precondition
failures (output dir, config input, fatal diagnostics) stop a run, and
those happen before the first file is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import IO

from ignextract.core.config.loader import parse_config, read_config
from ignextract.core.config.settings import ExtractOptions
from ignextract.core.errors import ConfigError, FetchError, HeaderError, PathError, SourceError
from ignextract.core.models.document import File
from ignextract.core.models.outcome import ExtractionOutcome, ExtractionStage
from ignextract.core.models.report import Report
from ignextract.core.observability.logging_config import REPORTED
from ignextract.core.services.fetcher import Fetcher, FetchOptions
from ignextract.core.services.output_dir import PreparedOutput, prepare_output_dir
from ignextract.core.services.sources import parse_headers, parse_source

logger = logging.getLogger(__name__)

SKIP_REASON = "non-overwrite file"

OutcomeCallback = Callable[[ExtractionOutcome], None]


# ── Per-file pipeline ───────────────────────────────────────────


def resolve_destination(root: Path, path: str) -> Path:
    """Re-root an Ignition path (``/etc/hosts``) under ``root``.

    Raises:
        PathError: If the path is empty, holds a NUL byte, or has a
            ``..`` component.
    """
    if "\x00" in path:
        raise PathError(f"path contains a NUL byte: {path!r}")
    # The root part may be "/" or "//".
    parts = [p for p in PurePosixPath(path).parts if p.strip("/")]
    if ".." in parts:
        raise PathError(f"path escapes output dir: {path}")
    if not parts:
        raise PathError(f"path names the output dir itself: {path!r}")
    return root.joinpath(*parts)


def extract_file(entry: File, root: Path, fetcher: Fetcher) -> ExtractionOutcome:
    """Run one file entry through the pipeline. Never raises for the entry."""
    if entry.overwrite is not True:
        return ExtractionOutcome.skipped(entry.path, SKIP_REASON)

    try:
        dest = resolve_destination(root, entry.path)
    except PathError as e:
        return _failed(entry, ExtractionStage.PATH, str(e))

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, ValueError) as e:
        return _failed(entry, ExtractionStage.MKDIR, f"cannot mkdir: {dest.parent}: {e}", dest)

    try:
        sink = open(dest, "wb")
    except (OSError, ValueError) as e:
        return _failed(entry, ExtractionStage.CREATE, f"cannot create file: {dest}: {e}", dest)

    with sink:
        return _write_contents(entry, dest, sink, fetcher)


def _write_contents(entry: File, dest: Path, sink: IO[bytes], fetcher: Fetcher) -> ExtractionOutcome:
    # No contents: the file is created empty, as provisioning would.
    if entry.source is None:
        return ExtractionOutcome.written(entry.path, str(dest), 0)

    try:
        url = parse_source(entry.source)
    except SourceError as e:
        return _failed(entry, ExtractionStage.SOURCE, f"cannot read content: {entry.path}: {e}", dest)

    try:
        headers = parse_headers(entry.contents.http_headers)
    except HeaderError as e:
        return _failed(
            entry, ExtractionStage.HEADERS, f"cannot read content headers: {entry.path}: {e}", dest
        )

    options = FetchOptions(headers=headers, compression=entry.contents.compression)
    try:
        written = fetcher.fetch(url, sink, options)
    except FetchError as e:
        return _failed(entry, ExtractionStage.FETCH, f"cannot write file: {entry.path}: {e}", dest)

    return ExtractionOutcome.written(entry.path, str(dest), written)


def _failed(
    entry: File,
    stage: ExtractionStage,
    error: str,
    dest: Path | None = None,
) -> ExtractionOutcome:
    # The reporter already prints the failure; console logging skips it.
    logger.warning("File %s failed at %s: %s", entry.path, stage, error, extra={REPORTED: True})
    return ExtractionOutcome.failed_at(
        entry.path,
        stage,
        error,
        destination=str(dest) if dest else None,
    )


def extract_files(
    files: Iterable[File],
    root: Path,
    fetcher: Fetcher,
    on_outcome: OutcomeCallback | None = None,
) -> list[ExtractionOutcome]:
    """Process every entry in document order.

    ``on_outcome`` is called as soon as each entry finishes, so callers
    can report progress while later entries are still being fetched.
    """
    outcomes: list[ExtractionOutcome] = []
    for entry in files:
        outcome = extract_file(entry, root, fetcher)
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)
    return outcomes


# ── Whole run ───────────────────────────────────────────────────


class Reporter:
    """Receives run events. The default implementation ignores them."""

    def output_created(self, root: Path) -> None:
        pass

    def diagnostics(self, report: Report) -> None:
        pass

    def outcome(self, outcome: ExtractionOutcome) -> None:
        pass


@dataclass
class ExtractResult:
    """Everything a completed run produced."""

    output: PreparedOutput
    report: Report = field(default_factory=Report)
    outcomes: list[ExtractionOutcome] = field(default_factory=list)

    @property
    def written(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "written")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    def to_dict(self) -> dict:
        return {
            "output": str(self.output.root),
            "report": self.report.to_dict(),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "summary": {
                "written": self.written,
                "skipped": self.skipped,
                "failed": self.failed,
            },
        }


def run_extract(
    options: ExtractOptions,
    *,
    reporter: Reporter | None = None,
    fetcher: Fetcher | None = None,
    stdin: IO[bytes] | None = None,
) -> ExtractResult:
    """Prepare the output dir, load the config, and extract every file.

    Raises:
        OutputDirError: If the output dir is unusable or not empty.
        ConfigError: If the config can't be read or parsed, or its
            diagnostics are fatal. Diagnostics are reported first.
    """
    reporter = reporter or Reporter()
    fetcher = fetcher or Fetcher(options.fetch)

    output = prepare_output_dir(options.output)
    if output.created:
        reporter.output_created(output.root)

    blob = read_config(options.source, stdin=stdin)
    parsed = parse_config(blob)
    if parsed.report.entries:
        reporter.diagnostics(parsed.report)
    if parsed.report.is_fatal():
        raise ConfigError(f"couldn't parse config: {parsed.error or 'fatal diagnostics'}")
    if parsed.error or parsed.config is None:
        raise ConfigError(f"couldn't parse config: {parsed.error}")

    files = parsed.config.files
    logger.info("Extracting %d file(s) into %s", len(files), output.root)
    outcomes = extract_files(files, output.root, fetcher, on_outcome=reporter.outcome)

    return ExtractResult(output=output, report=parsed.report, outcomes=outcomes)
