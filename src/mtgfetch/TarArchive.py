"""Streaming tar archive engine.

Reads a tar archive from a forward-only byte stream (`tarfile` stream mode,
`r|`) and writes each regular-file member to disk as soon as its header has
been read. The archive is never held in memory: member data is copied in
fixed-size chunks straight from the stream into the output file.
"""

import logging
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .Errors import ArchiveError, IoError
from .FileIO import DEFAULT_CHUNK_SIZE
from .Paths import resolve_output_name
from .Protocols import ArchiveEngineProtocol, ByteSourceProtocol

logger = logging.getLogger(__name__)


class StrictTarInfo(tarfile.TarInfo):
    """TarInfo that refuses a bad header anywhere in the archive.

    `tarfile` only reports an invalid or truncated header when it is the
    first one and otherwise treats it as the end of the archive. Raising
    `ArchiveError` here, instead of a `tarfile.HeaderError`, lets the
    error through `TarFile.next()`.
    """

    @classmethod
    def fromtarfile(cls, archive):
        try:
            return super().fromtarfile(archive)
        except (tarfile.InvalidHeaderError, tarfile.TruncatedHeaderError) as e:
            raise ArchiveError(f"Malformed tar header at offset {archive.offset}: {e}") from e


@dataclass
class ExtractionResult:
    """Outcome of a successful extraction.

    Attributes:
        files (List[Path]): Written files, in archive order. A path appears
            once per member, so an overwritten file is listed twice.
        bytes_written (int): Total number of bytes written.
        skipped (List[str]): Names of members that are not regular files.
    """
    files: List[Path] = field(default_factory=list)
    bytes_written: int = 0
    skipped: List[str] = field(default_factory=list)


class TarArchiveEngine(ArchiveEngineProtocol):
    """
    Tar archive engine over an uncompressed tar byte stream.

    Attributes:
        stream (ByteSourceProtocol): The decompressed tar stream.
        strict_paths (bool): Reject absolute and `..` member names.
        chunk_size (int): Size of the chunks copied from member to file.
        archive (tarfile.TarFile): The stream-mode TarFile.
    """

    def __init__(self, stream: ByteSourceProtocol, strict_paths: bool = False,
                 chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """
        Open the tar stream and read the first header.

        Raises:
            ArchiveError: If the stream does not start with a valid tar header.
            DecompressError / NetworkError: Propagated from the stream.
        """
        self.stream = stream
        self.strict_paths = strict_paths
        self.chunk_size = chunk_size
        try:
            self.archive = tarfile.open(fileobj=stream, mode="r|", tarinfo=StrictTarInfo)
        except tarfile.TarError as e:
            raise ArchiveError(f"Not a tar archive: {e}") from e

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _next_member(self) -> Optional[tarfile.TarInfo]:
        try:
            return self.archive.next()
        except tarfile.TarError as e:
            raise ArchiveError(f"Failed to read tar member header: {e}") from e

    def _read_chunk(self, source) -> bytes:
        try:
            return source.read(self.chunk_size)
        except tarfile.TarError as e:
            raise ArchiveError(f"Failed to read tar member data: {e}") from e

    def extract_all(self, output_dir: Path,
                    progress_callback: Optional[Callable[[int], None]] = None) -> ExtractionResult:
        """
        Extract every regular-file member into `output_dir`, flattened.

        Members are handled strictly in stream order and the first error
        stops the extraction; files written before it stay on disk.

        Only regular files are written. Directory, link and device members
        are skipped and listed in `ExtractionResult.skipped` rather than
        created as empty files named after the member.

        Args:
            output_dir (Path): Existing directory that receives the files.
            progress_callback (callable|None): Called with the number of
                bytes written after each chunk.

        Returns:
            ExtractionResult: Files written and members skipped.

        Raises:
            ArchiveError: Malformed header or truncated member data.
            PathError: A member name has no usable final component.
            IoError: An output file cannot be created or written.
        """
        result = ExtractionResult()

        while (member := self._next_member()) is not None:
            if not member.isreg():
                logger.debug("Skipping non-file member %s", member.name)
                result.skipped.append(member.name)
                continue

            target = Path(output_dir) / resolve_output_name(member.name, strict=self.strict_paths)
            logger.info("Extracting %s -> %s", member.name, target)
            written = self.extract_member(member, target, progress_callback=progress_callback)

            result.files.append(target)
            result.bytes_written += written

        return result

    def extract_member(self, member: tarfile.TarInfo, target_path: Path, progress_callback=None) -> int:
        """
        Stream the data of `member` into `target_path`, truncating it first.

        Must be called before the next member is read, since the stream
        cannot go back.

        Returns:
            int: Number of bytes written.
        """
        source = self.archive.extractfile(member)
        if source is None:
            raise ArchiveError(f"Member {member.name} has no data")

        written = 0
        with source:
            try:
                with open(target_path, "wb") as target_file:
                    # The flow is GzipStream -> TarArchiveEngine -> local file
                    while chunk := self._read_chunk(source):
                        target_file.write(chunk)
                        written += len(chunk)
                        if progress_callback:
                            progress_callback(len(chunk))
            except OSError as e:
                raise IoError(f"Failed to write {target_path}: {e}") from e

        return written

    def close(self):
        """Close the TarFile. The underlying stream is left to its owner."""
        self.archive.close()
