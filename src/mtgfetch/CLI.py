"""mtgfetch CLI entrypoint.

This module provides the `extract` click command which downloads a remote
.tar.gz archive, extracts its files (flattened) into a local output
directory while displaying progress, and prints a summary of what was
written.

Usage example (from shell):
    mtgfetch -o data/ --check-status

Archive handling is delegated to `mtgfetch.Fetcher.fetch_and_extract`, so
this module only deals with options, logging setup and console output.
"""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, DownloadColumn, TransferSpeedColumn
from rich.table import Table

from .Errors import FetchExtractError
from .Fetcher import DEFAULT_URL, fetch_and_extract

# Create a single console instance for the CLI UI (rich console handles colors/formatting)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--url", "-u", type=str, envvar="MTGFETCH_URL", default=DEFAULT_URL, show_default=True,
              help="URL of the .tar.gz archive to fetch")
@click.option("--output", "-o",
              type=click.Path(file_okay=False, dir_okay=True, writable=True, path_type=Path),
              envvar="MTGFETCH_OUTPUT",
              default=Path("."),
              help="Output directory for extracted files")
@click.option("--strict-paths", is_flag=True, default=False,
              help="Reject absolute member names and names containing '..'")
@click.option("--check-status", is_flag=True, default=False,
              help="Fail on a non-2xx HTTP status instead of decoding the body")
@click.option("--timeout", type=float, envvar="MTGFETCH_TIMEOUT", default=None,
              help="Request timeout in seconds")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def extract(url: str, output: Path, strict_paths: bool, check_status: bool, timeout: float | None,
            verbose: bool):
    """Download a .tar.gz archive and extract its files into one directory.

    Directory components of member names are dropped, so every file lands
    directly in OUTPUT and a later member overwrites an earlier one with the
    same name. Exits with status 1 on the first failure.
    """
    _configure_logging(verbose)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Extracting files...", total=None)

            # Invoked with the number of bytes written while streaming members to disk.
            def progress_callback(bytes_written):
                progress.update(task, advance=bytes_written)

            result = fetch_and_extract(
                url,
                output,
                timeout=timeout,
                strict_paths=strict_paths,
                raise_for_status=check_status,
                progress_callback=progress_callback,
            )
    except FetchExtractError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    table = Table(title="Extracted Files")
    table.add_column("File Path", justify="left")
    for path in result.files:
        table.add_row(escape(str(path)))
    console.print(table)

    if result.skipped:
        console.print(f"Skipped {len(result.skipped)} non-file members.")
    console.print(f"Extraction complete: {len(result.files)} files, {result.bytes_written} bytes.")
