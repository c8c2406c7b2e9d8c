"""Protocol definitions shared by the streams and the archive engine.

`ByteSourceProtocol` is the minimal readable stream a decompressor can
consume, and `ArchiveEngineProtocol` is the contract an archive engine
implements to extract its members into a directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from .TarArchive import ExtractionResult


class ByteSourceProtocol(Protocol):
    """A forward-only readable byte stream."""
    closed: bool

    def readable(self) -> bool: ...

    def read(self, size: int = -1) -> bytes: ...

    def readinto(self, buffer) -> int: ...


class ArchiveEngineProtocol(Protocol):
    """Protocol describing the minimal archive engine interface.

    Implementations read members in the order they appear in `stream` and
    write them to disk one at a time.
    """
    stream: ByteSourceProtocol

    def extract_all(self, output_dir: Path,
                    progress_callback: Optional[Callable[[int], None]] = None) -> ExtractionResult:
        """Extract every member of the archive into `output_dir`.

        Args:
            output_dir (Path): Existing directory that receives the files.
            progress_callback (callable|None): Optional callback called with the
            number of bytes written on each write().

        Returns:
            ExtractionResult: What was written and what was skipped.
        """
        ...

    def close(self) -> None: ...
