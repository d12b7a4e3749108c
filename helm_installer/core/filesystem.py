"""
File system utilities for helm-installer.

This module provides:
- Zip archive extraction with directory traversal protection
- Permission helpers for downloaded binaries
- Recursive file search in directory-listing order
- Safe file operations (atomic writes, temporary directories)
"""

import logging
import os
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

FULL_PERMISSIONS = 0o777


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Raised when archive extraction fails."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Raised when archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Raised when an archive member would escape the destination."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """Check if path is inside parent."""
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def make_executable(path: Union[str, Path], mode: int = FULL_PERMISSIONS) -> None:
    """
    Grant full permissions on a file or directory.

    Args:
        path: File or directory to update
        mode: Permission bits (default: 0o777)
    """
    os.chmod(path, mode)


def find_files(root: Union[str, Path], filename: str) -> List[Path]:
    """
    Recursively collect files named exactly ``filename`` under ``root``.

    The walk is depth-first and follows ``os.listdir`` order, so the order of
    matches is whatever the filesystem returns.

    Args:
        root: Directory to search
        filename: Exact file name to match (including any extension)

    Returns:
        Matching paths in traversal order (may be empty)
    """
    matches: List[Path] = []
    _walk(Path(root), filename, matches)
    return matches


def _walk(directory: Path, filename: str, matches: List[Path]) -> None:
    for name in os.listdir(directory):
        entry = directory / name
        if entry.is_dir():
            _walk(entry, filename, matches)
        else:
            logger.debug(name)
            if name == filename:
                matches.append(entry)


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path], destination: Union[str, Path]
) -> Path:
    """
    Extract a zip archive to a destination directory.

    Zip files are recognised by their extension or, failing that, by their
    contents (downloads are stored under arbitrary names).

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to

    Returns:
        The destination directory

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)
    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip") or zipfile.is_zipfile(archive_path):
            _extract_zip(archive_path, destination)
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.name}. "
                "Supported: .zip"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    return destination


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()

        for member in members:
            _validate_archive_path(member, destination)

        zf.extractall(destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: str, encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        with open(temp_fd, "w", encoding=encoding) as f:
            f.write(content)
        temp_path.replace(file_path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def copy_tree(source: Union[str, Path], destination: Union[str, Path]) -> Path:
    """
    Copy a directory tree, replacing any existing destination.

    Returns:
        The destination directory
    """
    source = Path(source)
    destination = Path(destination)

    if destination.exists():
        shutil.rmtree(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, symlinks=True)
    return destination


@contextmanager
def temporary_directory(
    prefix: str = "helm_installer_", base_dir: Optional[Path] = None
):
    """
    Context manager for temporary directory with automatic cleanup.

    Args:
        prefix: Prefix for temp directory name
        base_dir: Parent directory (default: system temp dir)

    Yields:
        Path to temporary directory
    """
    if base_dir is not None:
        Path(base_dir).mkdir(parents=True, exist_ok=True)
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))

    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "make_executable",
    "find_files",
    "extract_archive",
    "atomic_write",
    "copy_tree",
    "temporary_directory",
]
