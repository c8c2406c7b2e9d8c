"""Output file name resolution for archive entries.

Archive members are flattened: only the final component of a member name is
kept and every file lands directly in the output directory. Two members
with the same final component therefore map to the same file, and the one
that comes later in the archive wins.
"""

import os
from pathlib import PurePosixPath

from .Errors import PathError


def resolve_output_name(entry_name: str, strict: bool = False) -> str:
    """Return the local file name for the archive member `entry_name`.

    Args:
        entry_name (str): Member name as stored in the tar header.
        strict (bool): Also reject absolute names, names containing `..`
            segments, and names whose final component holds a path separator
            of the local platform.

    Returns:
        str: The final path component of `entry_name`.

    Raises:
        PathError: If the name has no usable final component, or if `strict`
            is set and the name fails one of the strict checks.
    """
    path = PurePosixPath(entry_name)

    if strict:
        if path.is_absolute():
            raise PathError(f"Absolute member name rejected: {entry_name!r}")
        if ".." in path.parts:
            raise PathError(f"Member name with parent segment rejected: {entry_name!r}")

    name = path.name
    if name in ("", ".", ".."):
        raise PathError(f"Member name has no file name component: {entry_name!r}")

    if strict and any(sep and sep in name for sep in (os.sep, os.altsep)):
        raise PathError(f"Member name with local path separator rejected: {entry_name!r}")

    return name
