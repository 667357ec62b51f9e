"""
Workspace infrastructure for apibundle.

Every export or import stages its files in a fresh, randomly named
directory. Workspaces are never shared between operations and are
left for the caller to delete.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..errors import PackagingError, PackagingKind

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "apibundle-"


def create_workspace(base_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Create a fresh, randomly named workspace directory.

    Args:
        base_path: Directory to create the workspace in
            (default: system temp directory)

    Returns:
        Path to the new workspace

    Raises:
        PackagingError: If the workspace cannot be created
    """
    base = Path(base_path).expanduser() if base_path else Path(tempfile.gettempdir())
    ensure_directory(base)

    try:
        workspace = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=base))
    except OSError as e:
        logger.error(f"Error while creating workspace under {base}: {e}")
        raise PackagingError(
            f"Workspace creation failed under {base}: {e}",
            PackagingKind.DIRECTORY_CREATION,
            str(base),
        ) from e

    logger.debug(f"Created workspace {workspace}")
    return workspace


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Create a directory and any missing parents.

    No-op if the directory already exists.

    Raises:
        PackagingError: If the path exists as a non-directory or
            cannot be created
    """
    path = Path(path)
    if path.is_dir():
        return path

    if path.exists():
        logger.error(f"Error while creating directory : {path} (not a directory)")
        raise PackagingError(
            f"Directory creation failed {path}: path exists and is not a directory",
            PackagingKind.DIRECTORY_CREATION,
            str(path),
        )

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Error while creating directory : {path}: {e}")
        raise PackagingError(
            f"Directory creation failed {path}: {e}",
            PackagingKind.DIRECTORY_CREATION,
            str(path),
        ) from e

    return path


def write_bytes(path: Union[str, Path], content: bytes) -> Path:
    """
    Write bytes to path, creating parent directories.

    Raises:
        PackagingError: If the file cannot be written
    """
    path = Path(path)
    ensure_directory(path.parent)
    try:
        path.write_bytes(content)
    except OSError as e:
        logger.error(f"I/O error while writing {path}: {e}")
        raise PackagingError(
            f"Failed to write {path}: {e}", PackagingKind.FILE_WRITE, str(path)
        ) from e
    return path


def write_text(path: Union[str, Path], content: str) -> Path:
    """Write UTF-8 text to path, creating parent directories."""
    return write_bytes(path, content.encode('utf-8'))
