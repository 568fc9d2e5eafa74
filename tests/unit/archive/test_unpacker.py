"""Unit tests for slug extraction."""

import io
import os
import stat
import tarfile
import threading
from pathlib import Path

import pytest

from slugpack.archive import extract
from slugpack.core.exceptions import (
    ArchiveCancelledError,
    ArchiveIOError,
    UnsupportedEntryTypeError,
)


def _file(name: str, mode: int = 0o644) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = tarfile.REGTYPE
    info.mode = mode
    return info


def _entry(name: str, kind: bytes, linkname: str = "") -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = kind
    info.linkname = linkname
    return info


class TestExtract:
    """Tests for extract function."""

    def test_files_and_parents_created(self, tmp_path: Path, build_tarball):
        data = build_tarball(
            [_file("main.tf"), _file("a/b/c/vars.tf")],
            {"main.tf": b"root", "a/b/c/vars.tf": b"nested"},
        )

        count = extract(io.BytesIO(data), tmp_path / "dest")

        assert count == 2
        assert (tmp_path / "dest" / "main.tf").read_bytes() == b"root"
        assert (tmp_path / "dest" / "a" / "b" / "c" / "vars.tf").read_bytes() == b"nested"

    def test_extract_from_path(self, tmp_path: Path, build_tarball):
        slug = tmp_path / "slug.tar.gz"
        slug.write_bytes(build_tarball([_file("main.tf")], {"main.tf": b"x"}))

        extract(str(slug), tmp_path / "dest")

        assert (tmp_path / "dest" / "main.tf").read_bytes() == b"x"

    def test_missing_source_path(self, tmp_path: Path):
        with pytest.raises(ArchiveIOError):
            extract(str(tmp_path / "missing.tar.gz"), tmp_path / "dest")

    def test_leading_separator_stripped(self, tmp_path: Path, build_tarball):
        data = build_tarball([_file("/etc/app.conf")], {"/etc/app.conf": b"conf"})

        extract(io.BytesIO(data), tmp_path / "dest")

        assert (tmp_path / "dest" / "etc" / "app.conf").read_bytes() == b"conf"

    def test_mode_applied(self, tmp_path: Path, build_tarball):
        data = build_tarball(
            [_file("run.sh", 0o750), _file("readonly.tf", 0o444)],
            {"run.sh": b"#!/bin/sh\n", "readonly.tf": b"ro"},
        )

        extract(io.BytesIO(data), tmp_path)

        assert stat.S_IMODE(os.stat(tmp_path / "run.sh").st_mode) == 0o750
        assert stat.S_IMODE(os.stat(tmp_path / "readonly.tf").st_mode) == 0o444

    def test_duplicate_entry_overwrites_read_only_file(self, tmp_path: Path):
        raw = io.BytesIO()
        with tarfile.open(fileobj=raw, mode="w:gz") as tar:
            first = _file("dup.tf", 0o444)
            first.size = 5
            tar.addfile(first, io.BytesIO(b"first"))
            second = _file("dup.tf", 0o644)
            second.size = 6
            tar.addfile(second, io.BytesIO(b"second"))

        extract(io.BytesIO(raw.getvalue()), tmp_path)

        assert (tmp_path / "dup.tf").read_bytes() == b"second"
        assert stat.S_IMODE(os.stat(tmp_path / "dup.tf").st_mode) == 0o644

    def test_symlink_recreated(self, tmp_path: Path, build_tarball):
        data = build_tarball(
            [_file("main.tf"), _entry("sub/link", tarfile.SYMTYPE, "../main.tf")],
            {"main.tf": b"root"},
        )

        extract(io.BytesIO(data), tmp_path)

        link = tmp_path / "sub" / "link"
        assert link.is_symlink()
        assert os.readlink(link) == "../main.tf"
        assert link.read_bytes() == b"root"

    def test_directory_entries_skipped(self, tmp_path: Path, build_tarball):
        data = build_tarball(
            [_entry("empty/", tarfile.DIRTYPE), _entry("full/", tarfile.DIRTYPE), _file("full/a")],
            {"full/a": b"a"},
        )

        count = extract(io.BytesIO(data), tmp_path)

        assert count == 3
        assert (tmp_path / "full" / "a").read_bytes() == b"a"
        assert not (tmp_path / "empty").exists()

    def test_hard_link_unsupported(self, tmp_path: Path, build_tarball):
        data = build_tarball(
            [_file("main.tf"), _entry("copy.tf", tarfile.LNKTYPE, "main.tf")],
            {"main.tf": b"root"},
        )

        with pytest.raises(UnsupportedEntryTypeError) as exc_info:
            extract(io.BytesIO(data), tmp_path)

        assert exc_info.value.path == os.path.join(str(tmp_path), "copy.tf")
        # Entries before the failure are left in place
        assert (tmp_path / "main.tf").exists()

    def test_corrupt_archive(self, tmp_path: Path):
        with pytest.raises(ArchiveIOError, match="Failed to untar slug"):
            extract(io.BytesIO(b"this is not a slug"), tmp_path)

    def test_cancelled(self, tmp_path: Path, build_tarball):
        data = build_tarball([_file("main.tf")], {"main.tf": b"x"})
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ArchiveCancelledError):
            extract(io.BytesIO(data), tmp_path / "dest", cancel=cancel)
        assert not (tmp_path / "dest").exists()
