"""
Archive infrastructure for apibundle.

Compresses a staged API directory into a single ZIP file whose
entries all live under the directory's own name, and extracts such
archives back into a directory tree.

The importer never predicts the root directory name: ``extract``
reports it, since archives may come from exporters that name the
root after the API identity or after a random token.
"""

import logging
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional, Union

from ..errors import ArchiveCorruptError
from ..layout import UPLOAD_FILE_NAME
from .workspace import ensure_directory

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


def compress(source_dir: Union[str, Path], archive_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Compress a directory tree into a ZIP archive.

    Every regular file is stored as ``<leaf>/<relative path>`` where
    ``<leaf>`` is the source directory's name. Directory entries are
    not stored; extraction rebuilds them from file paths.

    Args:
        source_dir: Directory to compress
        archive_path: Output file (default: ``<source_dir>.zip`` beside it)

    Returns:
        Path to the written archive
    """
    source = Path(source_dir)
    if not source.is_dir():
        raise NotADirectoryError(f"Not a directory: {source}")

    target = Path(archive_path) if archive_path else source.with_name(source.name + ARCHIVE_SUFFIX)
    ensure_directory(target.parent)

    count = 0
    with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zf:
        for file_path in sorted(source.rglob("*")):
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(source).as_posix()
            zf.write(file_path, arcname=f"{source.name}/{relative}")
            count += 1

    logger.debug(f"Archived {count} files from {source} into {target}")
    return target


def _checked_member(name: str) -> PurePosixPath:
    """Validate an entry name and return it as a relative path."""
    member = PurePosixPath(name)
    if member.is_absolute() or '..' in member.parts or not member.parts:
        raise ArchiveCorruptError(f"Archive entry escapes the destination: {name!r}")
    return member


def _open_validated(archive_path: Path) -> zipfile.ZipFile:
    """Open an archive and verify every entry before anything is written."""
    try:
        zf = zipfile.ZipFile(archive_path, "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        logger.error(f"Failed to open archive {archive_path}: {e}")
        raise ArchiveCorruptError(f"Failed to extract archive file. {e}") from e

    try:
        bad_entry = zf.testzip()
    except (zipfile.BadZipFile, ValueError, EOFError, NotImplementedError) as e:
        zf.close()
        raise ArchiveCorruptError(f"Failed to extract archive file. {e}") from e
    except Exception:
        zf.close()
        raise

    if bad_entry is not None:
        zf.close()
        raise ArchiveCorruptError(f"Archive entry is corrupt: {bad_entry}")
    return zf


def extract(archive_path: Union[str, Path], dest_dir: Union[str, Path]) -> str:
    """
    Extract an archive into dest_dir.

    The container is fully validated first, so a corrupt archive leaves
    nothing behind. Entries overwrite existing files, which makes a
    retry over a partially extracted directory safe.

    Args:
        archive_path: ZIP file to extract
        dest_dir: Destination directory (created if absent)

    Returns:
        Name of the archive's top-level directory

    Raises:
        ArchiveCorruptError: If the container is unreadable, empty, has
            no root directory, or holds unsafe entry names
        PackagingError: If destination directories cannot be created
        OSError: If files cannot be written
    """
    archive_path = Path(archive_path)
    dest = Path(dest_dir)

    if not archive_path.is_file():
        raise FileNotFoundError(f"Archive not found: {archive_path}")

    with _open_validated(archive_path) as zf:
        infos = zf.infolist()
        if not infos:
            raise ArchiveCorruptError(f"Archive is empty: {archive_path}")

        members = [(info, _checked_member(info.filename)) for info in infos]

        first = members[0][1]
        if len(first.parts) < 2 and not members[0][0].is_dir():
            raise ArchiveCorruptError(
                f"Archive has no root directory: first entry is {members[0][0].filename!r}"
            )
        root_name = first.parts[0]

        ensure_directory(dest)
        for info, member in members:
            target = dest.joinpath(*member.parts)
            if info.is_dir():
                ensure_directory(target)
                continue
            ensure_directory(target.parent)
            with zf.open(info) as source, open(target, "wb") as out:
                shutil.copyfileobj(source, out)

    logger.debug(f"Extracted {len(infos)} entries from {archive_path} (root: {root_name})")
    return root_name


def save_upload(stream: BinaryIO, directory: Union[str, Path],
                file_name: str = UPLOAD_FILE_NAME) -> Path:
    """
    Copy an uploaded archive stream into a directory.

    Returns:
        Path of the stored archive
    """
    target = ensure_directory(directory) / file_name
    with open(target, "wb") as out:
        shutil.copyfileobj(stream, out)
    logger.debug(f"Stored uploaded archive at {target}")
    return target
