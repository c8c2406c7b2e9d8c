"""Error taxonomy for the fetch-and-extract pipeline.

Each stage of the pipeline (network, decompression, archive parsing, path
resolution, file I/O) raises its own exception type so callers can tell
which stage failed. All of them derive from `FetchExtractError`, and the
original library exception is always chained as `__cause__`.
"""


class FetchExtractError(Exception):
    """Base class for every error raised while fetching or extracting.

    Attributes:
        stage (str): Short name of the pipeline stage that failed.
    """
    stage = "unknown"

    def __str__(self) -> str:
        message = super().__str__()
        return f"{self.stage} error: {message}" if message else f"{self.stage} error"


class NetworkError(FetchExtractError):
    """Connection failure, timeout, or (when requested) a non-success status."""
    stage = "network"


class DecompressError(FetchExtractError):
    """The response body is not valid gzip data or ended early."""
    stage = "decompress"


class ArchiveError(FetchExtractError):
    """A tar header or member is malformed or truncated."""
    stage = "archive"


class PathError(FetchExtractError):
    """An entry name cannot be turned into an output file name."""
    stage = "path"


class IoError(FetchExtractError):
    """Creating or writing an output file failed."""
    stage = "io"
