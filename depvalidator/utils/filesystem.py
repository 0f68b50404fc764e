"""
Filesystem utilities for depvalidator.

This module provides safe helpers for reading manifests and for discovering
which manifest or SBOM to check in a project directory. All filesystem
errors are normalized to ``FileOperationError`` (or its subclass
``ManifestNotFoundError`` for missing files).
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from depvalidator.utils.logger import get_logger
from depvalidator.exceptions import FileOperationError, ManifestNotFoundError
from depvalidator.constants import (
    CSPROJ_PATTERN,
    MANIFEST_DETECTION_ORDER,
    MAX_FILE_SIZE,
    SBOM_FILE_NAMES,
    SBOM_FILE_SUFFIXES,
)


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Validate and resolve a file path that must exist."""
    if not path.exists():
        raise ManifestNotFoundError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_bytes(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
) -> bytes:
    """Safely read a file's raw bytes with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).

    Returns:
        File contents.

    Raises:
        ManifestNotFoundError: The file does not exist.
        FileOperationError: The path is not a regular file, is too large,
            or cannot be read.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def is_sbom_filename(name: str) -> bool:
    """Return True if ``name`` follows a recognized SBOM naming convention."""
    lowered = name.lower()
    return lowered in SBOM_FILE_NAMES or lowered.endswith(tuple(SBOM_FILE_SUFFIXES))


def find_sbom_file(directory: PathLike = ".") -> Optional[Path]:
    """Locate a CycloneDX SBOM in ``directory`` (non-recursive).

    Well-known basenames are preferred; otherwise the first file (sorted
    by name) with an SBOM suffix is returned.
    """
    root = Path(directory)
    if not root.is_dir():
        return None

    for name in SBOM_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            logger.debug("Found SBOM: %s", candidate)
            return candidate

    matches: List[Path] = sorted(
        p for p in root.iterdir() if p.is_file() and is_sbom_filename(p.name)
    )
    if matches:
        logger.debug("Found SBOM: %s", matches[0])
        return matches[0]

    return None


def find_manifest_file(directory: PathLike = ".") -> Path:
    """Locate the dependency manifest in ``directory`` (non-recursive).

    Probes the well-known basenames in priority order, then falls back to
    the first ``*.csproj`` file.

    Raises:
        ManifestNotFoundError: No known dependency file exists.
    """
    root = Path(directory)

    for name in MANIFEST_DETECTION_ORDER:
        candidate = root / name
        if candidate.is_file():
            logger.debug("Found manifest: %s", candidate)
            return candidate

    matches = sorted(root.glob(CSPROJ_PATTERN)) if root.is_dir() else []
    if matches:
        logger.debug("Found project file: %s", matches[0])
        return matches[0]

    raise ManifestNotFoundError(
        "No known dependency file found",
        file_path=str(root),
        operation="discover",
    )
