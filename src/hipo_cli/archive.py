"""Secure extraction of ZIP and gzip-compressed TAR archives.

Both formats go through ``extract_archive`` and share a single
containment check: every output path must normalise to a location
strictly inside the destination directory, both as written and once
symlinks created by earlier entries are followed. An entry that escapes
(``../`` segments, absolute paths, drive letters) aborts the whole
extraction with ``IllegalArchiveEntryError``; entries already written
are left in place.

Permission policy is identical for both formats: declared file mode
bits are honoured (``0o644`` when none are declared) and directories
always keep owner ``rwx`` so re-extraction can write into them.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import stat
import tarfile
import zipfile
from enum import Enum
from pathlib import Path
from typing import IO, BinaryIO

from hipo_cli.errors import IllegalArchiveEntryError, LocalIOError

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIR_MODE = 0o755
_COPY_CHUNK = 64 * 1024


class ArchiveFormat(str, Enum):
    """Supported archive formats."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"


def _is_within(path: str, root: str, *, allow_root: bool) -> bool:
    if allow_root and path == root:
        return True
    return path.startswith(root.rstrip(os.sep) + os.sep)


def _check_resolved(path: str | Path, destination: Path, entry_name: str, *, allow_root: bool = False) -> None:
    """Reject *entry_name* when *path*, with symlinks followed, leaves *destination*.

    Links written by earlier entries of the same archive can redirect a
    path that looks contained on paper.
    """
    real_root = os.path.realpath(destination)
    if not _is_within(os.path.realpath(path), real_root, allow_root=allow_root):
        raise IllegalArchiveEntryError(entry_name, real_root)


def safe_target(destination: Path, entry_name: str, *, allow_root: bool = False) -> Path:
    """Return the output path for *entry_name* under *destination*.

    ``allow_root`` accepts entries that name the destination itself,
    such as the ``./`` directory member many tarballs start with.

    Raises:
        IllegalArchiveEntryError: If the normalised path, or the path it
            resolves to through existing symlinks, is not strictly inside
            *destination*.
    """
    root = os.path.normpath(os.path.abspath(destination))
    target = os.path.normpath(os.path.join(root, entry_name))
    if not _is_within(target, root, allow_root=allow_root):
        raise IllegalArchiveEntryError(entry_name, root)
    _check_resolved(target, Path(root), entry_name, allow_root=allow_root)
    return Path(target)


def _file_mode(mode: int) -> int:
    mode &= 0o777
    return mode or DEFAULT_FILE_MODE


def _dir_mode(mode: int) -> int:
    mode &= 0o777
    return (mode or DEFAULT_DIR_MODE) | stat.S_IRWXU


def _make_dir(path: Path, mode: int) -> None:
    path.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(path, _dir_mode(mode))
    except OSError as exc:
        logger.debug("Could not set mode on %s: %s", path, exc)


def _clear_existing(path: Path) -> None:
    """Remove a file or symlink at *path* so it can be recreated."""
    if path.is_symlink() or path.is_file():
        path.unlink()


def _write_file(path: Path, source: IO[bytes], mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    _clear_existing(path)
    with open(path, "wb") as out:
        shutil.copyfileobj(source, out, _COPY_CHUNK)
    os.chmod(path, _file_mode(mode))


def _extract_zip(source: BinaryIO, destination: Path) -> int:
    if not source.seekable():
        # ZIP needs random access to the central directory
        source = io.BytesIO(source.read())

    count = 0
    with zipfile.ZipFile(source) as archive:
        for info in archive.infolist():
            target = safe_target(destination, info.filename, allow_root=info.is_dir())
            mode = (info.external_attr >> 16) & 0o777
            if info.is_dir():
                _make_dir(target, mode)
            else:
                with archive.open(info) as entry:
                    _write_file(target, entry, mode)
            count += 1
    return count


def _extract_tar_gz(source: BinaryIO, destination: Path) -> int:
    count = 0
    with tarfile.open(fileobj=source, mode="r|gz") as archive:
        for member in archive:
            target = safe_target(destination, member.name, allow_root=member.isdir())
            if member.isdir():
                _make_dir(target, member.mode)
            elif member.isfile():
                entry = archive.extractfile(member)
                if entry is None:
                    continue
                with entry:
                    _write_file(target, entry, member.mode)
            elif member.issym():
                # Link targets are relative to the link's own directory
                link_target = os.path.join(os.path.dirname(member.name), member.linkname)
                safe_target(destination, link_target, allow_root=True)
                _check_resolved(os.path.join(target.parent, member.linkname), destination, member.name, allow_root=True)
                target.parent.mkdir(parents=True, exist_ok=True)
                _clear_existing(target)
                os.symlink(member.linkname, target)
            elif member.islnk():
                # Hard link names are relative to the archive root
                linked = safe_target(destination, member.linkname)
                target.parent.mkdir(parents=True, exist_ok=True)
                _clear_existing(target)
                shutil.copy2(linked, target)
            else:
                logger.debug("Skipping special tar entry %s", member.name)
                continue
            count += 1
    return count


def extract_archive(source: BinaryIO | Path, destination: Path, archive_format: ArchiveFormat) -> int:
    """Extract *source* into *destination*.

    Args:
        source: A binary file object or a path to the archive.
        destination: Directory to extract into; created if missing.
        archive_format: Which reader to use.

    Returns:
        int: Number of entries written.

    Raises:
        IllegalArchiveEntryError: If any entry escapes *destination*.
        LocalIOError: If the archive is corrupt or cannot be written out.
    """
    destination = Path(destination)
    if isinstance(source, Path):
        with open(source, "rb") as handle:
            return extract_archive(handle, destination, archive_format)

    try:
        destination.mkdir(parents=True, exist_ok=True)
        if archive_format is ArchiveFormat.ZIP:
            count = _extract_zip(source, destination)
        else:
            count = _extract_tar_gz(source, destination)
    except (zipfile.BadZipFile, tarfile.TarError, EOFError) as exc:
        raise LocalIOError(f"Corrupt {archive_format.value} archive: {exc}") from exc
    except OSError as exc:
        raise LocalIOError(f"Failed to extract into {destination}: {exc}") from exc

    logger.debug("Extracted %d %s entries into %s", count, archive_format.value, destination)
    return count
