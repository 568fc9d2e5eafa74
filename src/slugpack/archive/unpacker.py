"""Extraction of packed module archives."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..core.exceptions import ArchiveIOError, UnsupportedEntryTypeError
from .packer import CancelToken, _check_cancelled

log = logging.getLogger(__name__)

_REGULAR_TYPES = (tarfile.REGTYPE, tarfile.AREGTYPE)


def _open_for_write(path: str) -> BinaryIO:
    try:
        return open(path, "wb")
    except PermissionError:
        # Mimic tar letting later duplicate entries clobber earlier ones,
        # even when the earlier file's mode forbids writing
        os.chmod(path, 0o600)
        return open(path, "wb")


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, dest: str) -> None:
    # Get rid of absolute paths
    name = member.name
    if name.startswith("/"):
        name = name[1:]
    path = os.path.join(dest, name)

    parent = os.path.dirname(path)
    try:
        os.makedirs(parent, mode=0o755, exist_ok=True)
    except OSError as e:
        raise ArchiveIOError(parent, "Failed to create directory") from e

    if member.issym():
        try:
            os.symlink(member.linkname, path)
        except OSError as e:
            raise ArchiveIOError(path, f"Failed creating symlink to {member.linkname!r} at") from e
        return

    if member.isdir():
        return

    if member.type not in _REGULAR_TYPES:
        raise UnsupportedEntryTypeError(path, repr(member.type.decode("ascii", "replace")))

    try:
        fh = _open_for_write(path)
    except OSError as e:
        raise ArchiveIOError(path, "Failed creating file") from e

    with fh:
        body = tar.extractfile(member)
        try:
            shutil.copyfileobj(body, fh)
        except OSError as e:
            raise ArchiveIOError(path, "Failed to copy slug file") from e

    # Restore the file mode after writing, since it may be read-only
    try:
        os.chmod(path, stat.S_IMODE(member.mode))
    except OSError as e:
        raise ArchiveIOError(path, "Failed setting permissions on") from e


def extract(
    source: Union[BinaryIO, str, Path],
    dest: Union[str, Path],
    cancel: Optional[CancelToken] = None,
) -> int:
    """
    Read and extract a slug into the dest directory.

    Entries are streamed: gunzip and untar happen as the source is read. No
    size limit is applied, and symlink targets are recreated verbatim without
    checking that they stay inside dest, so only extract trusted archives.
    A failure leaves whatever was already extracted in place.

    Args:
        source: Binary reader or path of a gzipped tarball
        dest: Destination directory
        cancel: Optional token checked before each entry

    Returns:
        Number of archive entries processed

    Raises:
        ArchiveIOError: If the archive is corrupt or an entry cannot be written
        UnsupportedEntryTypeError: On entries other than files, dirs and symlinks
        ArchiveCancelledError: If cancel is set
    """
    if isinstance(source, (str, Path)):
        try:
            with open(source, "rb") as f:
                return extract(f, dest, cancel)
        except OSError as e:
            raise ArchiveIOError(str(source), "Failed to open slug") from e

    dest = os.fspath(dest)
    entries = 0

    try:
        with tarfile.open(fileobj=source, mode="r|gz") as tar:
            for member in tar:
                _check_cancelled(cancel)
                _extract_member(tar, member, dest)
                entries += 1
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ArchiveIOError(dest, f"Failed to untar slug ({e}) into") from e

    log.debug(f"extracted {entries} entries to: {dest}")
    return entries
