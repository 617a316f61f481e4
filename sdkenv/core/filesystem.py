"""
File system utilities for sdkenv.

This module provides the file operations the manager relies on:
- Atomic writes (temp file + rename) for version files, manifests and the
  catalog snapshot
- Guarded recursive deletion of installs
- Safe archive extraction (tar.xz, tar.gz, zip) for release archives

Writers never leave a partially-written file behind, so concurrent readers
observe either the old or the new content.
"""

import os
import shutil
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Union

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent

    Example:
        >>> is_relative_to(Path('/a/b/c'), Path('/a'))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


# ============================================================================
# Archive Extraction
# ============================================================================


def _check_members(names: Iterable[str], destination: Path) -> None:
    """
    Refuse archives with members that would land outside destination.

    Raises:
        InsecureArchiveError: On the first escaping member
    """
    root = destination.resolve()
    for name in names:
        if not is_relative_to((root / name).resolve(), root):
            raise InsecureArchiveError(
                f"Archive member '{name}' escapes the extraction directory"
            )


def _archive_opener(archive_path: Path) -> Optional[str]:
    """tarfile mode for a tar archive, "zip" for zip files, None if unknown."""
    name = archive_path.name.lower()
    if name.endswith(".zip"):
        return "zip"
    if name.endswith(".tar.xz"):
        return "r:xz"
    if name.endswith((".tar.gz", ".tgz")):
        return "r:gz"
    return None


def extract_archive(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract a release archive into destination.

    Flutter publishes .tar.xz archives for Linux and .zip archives for macOS
    and Windows; .tar.gz is accepted as well.

    Raises:
        UnsupportedArchiveFormat: If the extension is not recognized
        InsecureArchiveError: If a member would escape destination
        ArchiveExtractionError: If the archive is missing or corrupt

    Example:
        >>> extract_archive('flutter_linux_3.7.12-stable.tar.xz', staging)
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    mode = _archive_opener(archive_path)
    if mode is None:
        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name} "
            "(expected .tar.xz, .tar.gz or .zip)"
        )

    destination.mkdir(parents=True, exist_ok=True)
    try:
        if mode == "zip":
            with zipfile.ZipFile(archive_path) as zf:
                _check_members(zf.namelist(), destination)
                zf.extractall(destination)
        else:
            with tarfile.open(archive_path, mode) as tar:
                _check_members(tar.getnames(), destination)
                # "tar" keeps the executable bits of bin/ scripts; "data" would not
                if sys.version_info >= (3, 12):
                    tar.extractall(destination, filter="tar")
                else:
                    tar.extractall(destination)
    except InsecureArchiveError:
        raise
    except (OSError, EOFError, tarfile.TarError, zipfile.BadZipFile) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path.name}: {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('.flutter-version', '3.7.12\\n')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory keeps the rename on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('~/.sdkenv/versions/3.7.12', require_prefix='~/.sdkenv/versions')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix) or path == require_prefix:
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files (git objects)."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=handle_remove_readonly)
            else:
                shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """Add execute permission for everyone who can read the file."""
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | ((mode & 0o444) >> 2))
