"""
Archive creation for Terraform module trees.

Packs a root module, together with every local module it calls, into a
gzipped tarball (a "slug") that can be shipped to a remote runner.
"""

import gzip
import logging
import os
import stat
import tarfile
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Protocol, Set

from ..config import DEFAULT_IGNORE_FILE, MAX_CONFIG_SIZE
from ..core.exceptions import (
    ArchiveCancelledError,
    ArchiveIOError,
    PathResolutionError,
    UnsupportedEntryTypeError,
)
from .ignore import RuleMatcher
from .modules import ModuleParser, ModuleResolver
from .paths import common_parent, dedupe, ensure_abs, is_within
from .sink import MaxSizeWriter

log = logging.getLogger(__name__)


class CancelToken(Protocol):
    """Anything with an is_set() method, e.g. threading.Event."""

    def is_set(self) -> bool: ...


@dataclass
class ArchiveMeta:
    """Information about a packed slug."""

    files: List[str] = field(default_factory=list)  # Archived entry names, in order
    size: int = 0  # Uncompressed bytes of file bodies
    compressed_size: int = 0  # Bytes written to the output


def _check_cancelled(cancel: Optional[CancelToken]) -> None:
    if cancel is not None and cancel.is_set():
        raise ArchiveCancelledError("archive operation cancelled")


def _describe_mode(mode: int) -> str:
    if stat.S_ISFIFO(mode):
        return "fifo"
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISCHR(mode):
        return "character device"
    if stat.S_ISBLK(mode):
        return "block device"
    return oct(stat.S_IFMT(mode))


class Archive:
    """
    A root module and the local modules it depends on, ready for packing.

    Example:
        arc = Archive("envs/prod", base=repo_root)
        arc.walk()
        meta = arc.pack(buf)
    """

    def __init__(
        self,
        path: str,
        base: Optional[str] = None,
        *,
        max_size: int = MAX_CONFIG_SIZE,
        dereference: bool = True,
        ignore_file: str = DEFAULT_IGNORE_FILE,
        parser: Optional[ModuleParser] = None,
    ):
        """
        Args:
            path: Root module directory
            base: Directory archive entries are relative to; defaults to the
                deepest directory shared by all modules
            max_size: Max compressed size in bytes, 0 for unlimited
            dereference: Materialize symlinks that point outside a module
            ignore_file: Name of the ignore file to search for
            parser: Module call parser used by walk()

        Raises:
            PathResolutionError: If a path cannot be made absolute
        """
        if max_size < 0:
            raise ValueError(f"max_size must not be negative: {max_size}")

        self.root = ensure_abs(path)
        self._base = ensure_abs(base) if base is not None else None
        self.max_size = max_size
        self.dereference = dereference
        self.ignore_file = ignore_file
        self.parser = parser
        self.mods: List[str] = [self.root]

    @property
    def base(self) -> str:
        if self._base is not None:
            return self._base
        return common_parent(dedupe(self.mods))

    def walk(self) -> None:
        """
        Add the local modules called by the root module, transitively.

        Raises:
            ModuleParseError: If any module cannot be parsed
        """
        mods = ModuleResolver(self.parser).resolve(self.root)
        self.mods.extend(mods)
        log.debug(f"found {len(mods)} local module references from {self.root}")

    def root_path(self) -> str:
        """Relative path to the root module within the archive."""
        return os.path.relpath(self.root, self.base).replace(os.sep, "/")

    def pack(self, w: BinaryIO, cancel: Optional[CancelToken] = None) -> ArchiveMeta:
        """
        Write a gzipped tarball of all modules to w.

        Output is only usable if this returns; on any error the caller
        must discard whatever was written to w.

        Args:
            w: Binary writer receiving the compressed archive
            cancel: Optional token checked before each filesystem entry

        Returns:
            ArchiveMeta describing the packed archive

        Raises:
            MaxSizeExceededError: If the compressed output exceeds max_size
            IgnorePatternError: If the ignore file holds an invalid pattern
            PathResolutionError: If a module lies outside the base directory
            ArchiveIOError: If an entry cannot be read or written
            UnsupportedEntryTypeError: On files that are not dirs, files or symlinks
            ArchiveCancelledError: If cancel is set
        """
        # Walking a module nested inside another would add its files twice
        mods = dedupe(self.mods)
        base = self.base
        for mod in mods:
            if not is_within(mod, base):
                raise PathResolutionError(mod, f"module lies outside of base directory {base}")

        matcher = RuleMatcher.from_directory(base, self.ignore_file)
        meta = ArchiveMeta()

        # tar > gzip > max size writer > w
        sink = MaxSizeWriter(w, self.max_size)
        zw = gzip.GzipFile(filename="", mode="wb", fileobj=sink, mtime=0)
        try:
            tw = tarfile.open(fileobj=zw, mode="w", format=tarfile.PAX_FORMAT)
            packer = _TreePacker(base, matcher, tw, meta, self.dereference, cancel)
            for mod in mods:
                packer.pack_module(mod)

            # Flush tar writer, then gzip writer
            tw.close()
            zw.close()
        except Exception:
            # Finish the compressor without sending anything more to w
            sink.discard()
            zw.close()
            raise

        meta.compressed_size = sink.tally
        log.debug(
            f"slug created: {len(meta.files)} files; {meta.size} ({meta.compressed_size}) bytes (compressed)"
        )
        return meta


class _TreePacker:
    """Walks module trees, adding entries to an open tar writer."""

    def __init__(
        self,
        base: str,
        matcher: RuleMatcher,
        tar: tarfile.TarFile,
        meta: ArchiveMeta,
        dereference: bool,
        cancel: Optional[CancelToken],
    ):
        self.base = base
        self.matcher = matcher
        self.tar = tar
        self.meta = meta
        self.dereference = dereference
        self.cancel = cancel
        # Real paths of trees being walked, guarding against symlink cycles
        self._active: Set[str] = set()

    def pack_module(self, mod: str) -> None:
        real = os.path.realpath(mod)
        self._active.add(real)
        try:
            self._walk(mod, mod, mod)
        finally:
            self._active.discard(real)

    def _walk(self, path: str, src: str, dst: str) -> None:
        """Visit path, which lies within src, archiving it at the matching place under dst."""
        _check_cancelled(self.cancel)

        try:
            # The top of a tree is followed, so a module may itself be a symlink
            info = os.stat(path) if path == src else os.lstat(path)
        except OSError as e:
            raise ArchiveIOError(path, "Failed to get file info for") from e

        logical = dst if path == src else os.path.join(dst, os.path.relpath(path, src))
        is_dir = stat.S_ISDIR(info.st_mode)

        # Children of an excluded directory are still visited, since a later
        # rule may re-include them
        if self.matcher.includes(logical, is_dir):
            name = self._entry_name(logical)
            if name != ".":
                self._add(path, logical, name, info, src)
        elif stat.S_ISLNK(info.st_mode):
            # Same goes for an excluded link to an outside directory
            self._follow_excluded_link(path, logical, src)

        if is_dir:
            for child in self._list_dir(path):
                self._walk(os.path.join(path, child), src, dst)

    def _entry_name(self, logical: str) -> str:
        rel = os.path.relpath(logical, self.base)
        if rel == ".." or rel.startswith(".." + os.sep):
            raise PathResolutionError(logical, f"path lies outside of base directory {self.base}")
        return rel.replace(os.sep, "/")

    def _list_dir(self, path: str) -> List[str]:
        try:
            return sorted(os.listdir(path))
        except OSError as e:
            raise ArchiveIOError(path, "Failed to list directory") from e

    def _add(self, path: str, logical: str, name: str, info: os.stat_result, src: str) -> None:
        mode = info.st_mode
        header = self._header(name, info)

        if stat.S_ISDIR(mode):
            header.type = tarfile.DIRTYPE
            header.name += "/"
            self._write(path, header)
        elif stat.S_ISREG(mode):
            header.type = tarfile.REGTYPE
            header.size = info.st_size
            self._write(path, header, body=path)
        elif stat.S_ISLNK(mode):
            self._add_symlink(path, logical, header, src)
        else:
            raise UnsupportedEntryTypeError(path, _describe_mode(mode))

    def _add_symlink(self, path: str, logical: str, header: tarfile.TarInfo, src: str) -> None:
        try:
            target = os.path.realpath(path, strict=True)
        except OSError as e:
            raise PathResolutionError(path, f"failed to get symbolic link destination: {e}") from e

        # If the target is within the current source, keep it as a symlink
        # using a relative path
        if is_within(target, os.path.realpath(src)):
            link = os.path.relpath(target, os.path.realpath(os.path.dirname(path)))
            header.type = tarfile.SYMTYPE
            header.linkname = link.replace(os.sep, "/")
            self._write(path, header)
            return

        if not self.dereference:
            log.debug(f"skipping symlink to outside of module: {path} -> {target}")
            return

        try:
            target_info = os.stat(target)
        except OSError as e:
            raise ArchiveIOError(target, "Failed to get file info for") from e

        if stat.S_ISDIR(target_info.st_mode):
            self._walk_link_target(path, target, logical)
            return

        if stat.S_ISREG(target_info.st_mode):
            deref = self._header(header.name, target_info)
            deref.type = tarfile.REGTYPE
            deref.size = target_info.st_size
            self._write(target, deref, body=target)
            return

        raise UnsupportedEntryTypeError(target, _describe_mode(target_info.st_mode))

    def _follow_excluded_link(self, path: str, logical: str, src: str) -> None:
        """Walk the outside directory behind an excluded link, without adding the link itself."""
        if not self.dereference:
            return

        try:
            target = os.path.realpath(path, strict=True)
        except OSError as e:
            log.debug(f"skipping excluded broken symlink {path}: {e}")
            return

        # Links within the module are archived as links, so nothing lies behind them
        if is_within(target, os.path.realpath(src)) or not os.path.isdir(target):
            return

        self._walk_link_target(path, target, logical)

    def _walk_link_target(self, path: str, target: str, logical: str) -> None:
        if target in self._active:
            log.warning(f"symlink cycle detected, skipping {path} -> {target}")
            return
        # Present the target's contents at the symlink's location
        self._active.add(target)
        try:
            self._walk(target, target, logical)
        finally:
            self._active.discard(target)

    @staticmethod
    def _header(name: str, info: os.stat_result) -> tarfile.TarInfo:
        # Owner fields stay zeroed so archives of the same tree are identical
        header = tarfile.TarInfo(name)
        header.mtime = int(info.st_mtime)
        header.mode = stat.S_IMODE(info.st_mode)
        return header

    def _write(self, path: str, header: tarfile.TarInfo, body: Optional[str] = None) -> None:
        try:
            if body is None:
                self.tar.addfile(header)
            else:
                with open(body, "rb") as f:
                    self.tar.addfile(header, f)
        except OSError as e:
            raise ArchiveIOError(path, "Failed writing archive entry for") from e

        self.meta.files.append(header.name)
        if body is not None:
            self.meta.size += header.size
