"""
Version files.

A version file holds one line of UTF-8 text naming a version specifier.
Project directories carry a local file (``.flutter-version`` by default);
the manager root carries the global file ``<root>/version``. Both use the
same format and are only ever replaced as a whole.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

from sdkenv.core.exceptions import VersionSpecParseError
from sdkenv.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_VERSION_FILE_NAME = ".flutter-version"


def read_version_file(path: Path) -> Optional[str]:
    """
    Read the specifier text from a version file.

    Only the first line counts and trailing whitespace is ignored.

    Returns:
        The specifier text (possibly empty), or None if the file does not exist

    Raises:
        VersionSpecParseError: If the file is not valid UTF-8
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return None
    except IsADirectoryError:
        logger.debug(f"Ignoring directory named like a version file: {path}")
        return None

    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError as e:
        first_line = data.splitlines()[0].rstrip()
        raise VersionSpecParseError(repr(first_line), source=str(path)) from e

    lines = content.splitlines()
    return lines[0].rstrip() if lines else ""


def write_version_file(path: Path, spec_text: str) -> None:
    """Replace a version file with a single specifier line."""
    atomic_write(path, f"{spec_text.strip()}\n")
    logger.debug(f"Wrote {spec_text!r} to {path}")


def remove_version_file(path: Path) -> bool:
    """Delete a version file; returns False if there was none."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def iter_ancestors(start: Path) -> Iterator[Path]:
    """Yield start and every parent directory up to the filesystem root."""
    current = start.resolve()
    yield current
    yield from current.parents


def find_version_file(start: Path, file_name: str = DEFAULT_VERSION_FILE_NAME) -> Optional[Path]:
    """
    Find the nearest version file, walking upward from start (inclusive).

    Example:
        >>> find_version_file(Path("/work/app/lib"))
        PosixPath('/work/app/.flutter-version')
    """
    for directory in iter_ancestors(start):
        candidate = directory / file_name
        if candidate.is_file():
            return candidate
    return None
