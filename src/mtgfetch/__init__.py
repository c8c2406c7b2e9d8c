"""mtgfetch package initializer.

Downloads a remote .tar.gz archive (by default the MTGJSON AllSets bundle)
and extracts its files, flattened, into a local directory. Exports:

- __version__: Package version string.
- fetch_and_extract / run: The fetch-and-extract operation.
- HttpStream / GzipStream: The streams the pipeline is built from.
- TarArchiveEngine / ExtractionResult: Streaming tar extraction.
- The error types, one per pipeline stage.
- cli: The CLI entrypoint function (click command).

Example:
    from mtgfetch import fetch_and_extract
    result = fetch_and_extract(output_dir="data")
"""

# Public version string
__version__ = "0.1.0"

from .Errors import (
    ArchiveError,
    DecompressError,
    FetchExtractError,
    IoError,
    NetworkError,
    PathError,
)
from .FileIO import GzipStream, HttpStream
from .Paths import resolve_output_name
from .TarArchive import ExtractionResult, TarArchiveEngine
from .Fetcher import DEFAULT_URL, fetch_and_extract, run

# Expose the CLI command object so callers can reuse or register it in other tools.
from .CLI import extract as cli

__all__ = [
    "__version__",
    "DEFAULT_URL",
    "fetch_and_extract",
    "run",
    "HttpStream",
    "GzipStream",
    "TarArchiveEngine",
    "ExtractionResult",
    "resolve_output_name",
    "FetchExtractError",
    "NetworkError",
    "DecompressError",
    "ArchiveError",
    "PathError",
    "IoError",
    "cli",
]
