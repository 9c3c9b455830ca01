"""
ignextract — CLI entrypoint.

Usage:
    ignextract -output DIR config.ign
    ignextract -output DIR -            (config on stdin)
    ignextract -version
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from ignextract import __version__
from ignextract.core.config.settings import ExtractOptions, FetchSettings
from ignextract.core.errors import ExtractError
from ignextract.core.models.outcome import ExtractionOutcome
from ignextract.core.models.report import Report
from ignextract.core.observability.logging_config import resolve_level, setup_logging
from ignextract.core.use_cases.extract import Reporter, run_extract

# Exit status when --fail-on-error is set and at least one file failed
EXIT_PARTIAL = 2


def _line(text: str) -> str:
    return text.strip()


def _die(message: str) -> None:
    click.echo(_line(message), err=True)
    sys.exit(1)


def _usage_error(ctx: click.Context, message: str = "") -> None:
    if message:
        click.echo(_line(message), err=True)
    click.echo(ctx.get_usage(), err=True)
    sys.exit(1)


class ConsoleReporter(Reporter):
    """Prints run events: info lines to stdout, failures to stderr."""

    def output_created(self, root: Path) -> None:
        click.echo(f"output dir not found, creating dir at: {root}")

    def diagnostics(self, report: Report) -> None:
        click.echo(_line(str(report)))

    def outcome(self, outcome: ExtractionOutcome) -> None:
        if outcome.status == "written":
            click.echo(outcome.path)
        elif outcome.status == "skipped":
            click.echo(f"skipping {outcome.reason}: {outcome.path}")
        else:
            click.echo(_line(outcome.error or f"cannot extract: {outcome.path}"), err=True)


@click.command(context_settings={"help_option_names": ["-h", "-help", "--help"]})
@click.version_option(
    __version__, "-version", "--version", prog_name="ignextract", message="%(prog)s %(version)s"
)
@click.option(
    "-output",
    "--output",
    "-o",
    "output",
    default=None,
    metavar="PATH",
    help="Empty (or missing) directory to extract files into.",
)
@click.option("--timeout", type=float, default=None, help="Per-request HTTP timeout in seconds.")
@click.option("--retries", type=int, default=None, help="Retries for transient HTTP failures.")
@click.option(
    "--fail-on-error",
    is_flag=True,
    help=f"Exit with status {EXIT_PARTIAL} if any file could not be extracted.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress the summary line.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.argument("config", nargs=-1, metavar="CONFIG")
@click.pass_context
def cli(
    ctx: click.Context,
    config: tuple[str, ...],
    output: str | None,
    timeout: float | None,
    retries: int | None,
    fail_on_error: bool,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """Extract the files declared in an Ignition config into a directory.

    CONFIG is a path to the config, or - to read it from stdin.
    """
    if len(config) != 1:
        _usage_error(ctx)
    if not output:
        _usage_error(ctx, "missing required flag: -output")

    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("IGNEXTRACT_LOG_LEVEL"),
        ),
        log_file=os.environ.get("IGNEXTRACT_LOG_FILE"),
        log_file_level=os.environ.get("IGNEXTRACT_LOG_FILE_LEVEL"),
    )

    try:
        options = ExtractOptions(
            output=Path(output),
            source=config[0],
            fetch=FetchSettings.from_env(timeout=timeout, retries=retries),
            fail_on_error=fail_on_error,
        )
        result = run_extract(options, reporter=ConsoleReporter())
    except ExtractError as e:
        _die(str(e))
        return

    if not quiet:
        click.echo(f"{result.written} written, {result.skipped} skipped, {result.failed} failed")

    if options.fail_on_error and result.failed:
        sys.exit(EXIT_PARTIAL)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
