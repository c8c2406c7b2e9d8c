"""Fetch-and-extract glue.

`fetch_and_extract` chains the three stages on one thread:

    HTTP GET (HttpStream) -> gzip (GzipStream) -> tar (TarArchiveEngine)

and writes every regular-file member, flattened, into the output directory.
The first error from any stage is raised as-is; nothing is retried and files
written before the failure are left in place. All streams are closed on every
exit path.
"""

import contextlib
import logging
import time
from os import PathLike
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

from .Errors import IoError
from .FileIO import DEFAULT_CHUNK_SIZE, GzipStream, HttpStream
from .TarArchive import ExtractionResult, TarArchiveEngine

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://mtgjson.com/files/AllSets.json.tar.gz"


def fetch_and_extract(
    url: str = DEFAULT_URL,
    output_dir: Union[str, PathLike, None] = None,
    *,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
    strict_paths: bool = False,
    raise_for_status: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> ExtractionResult:
    """Download a .tar.gz archive and extract its files into `output_dir`.

    Args:
        url: Archive URL.
        output_dir: Target directory, created if missing. Defaults to the
            current working directory.
        client: Optional `httpx.Client` to send the request with. It is not
            closed afterwards.
        timeout: Request timeout in seconds, overriding the client's.
        strict_paths: Reject absolute member names and names with `..`.
        raise_for_status: Fail on a non-2xx response instead of decoding
            whatever body the server sent.
        chunk_size: Chunk size for network reads and file writes.
        progress_callback: Called with the number of bytes written after
            each chunk.

    Returns:
        ExtractionResult: Files written, bytes written, members skipped.

    Raises:
        NetworkError, DecompressError, ArchiveError, PathError, IoError:
            From whichever stage failed first.
    """
    output_dir = Path(output_dir) if output_dir is not None else Path.cwd()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoError(f"Cannot create output directory {output_dir}: {e}") from e

    logger.info("Fetching archive from %s", url)
    started = time.monotonic()

    with contextlib.ExitStack() as stack:
        body = stack.enter_context(HttpStream(url, client=client, timeout=timeout,
                                              raise_for_status=raise_for_status))
        decompressed = stack.enter_context(GzipStream(body))
        engine = stack.enter_context(TarArchiveEngine(decompressed, strict_paths=strict_paths,
                                                      chunk_size=chunk_size))
        result = engine.extract_all(output_dir, progress_callback=progress_callback)

    logger.info("Extracted %d files (%d bytes) to %s in %.1fs",
                len(result.files), result.bytes_written, output_dir, time.monotonic() - started)
    return result


def run() -> ExtractionResult:
    """Fetch the default archive into the current working directory."""
    return fetch_and_extract()
