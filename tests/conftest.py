"""
Test configuration and fixtures for slugpack tests.

Provides shared fixtures for:
- Module tree construction on disk
- Archive inspection
"""

import gzip
import io
import tarfile
from pathlib import Path
from typing import Callable, Dict, List, Union

import pytest


def write_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """Create files (and their parent directories) below root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


def tar_members(data: bytes) -> List[tarfile.TarInfo]:
    """Return the members of a gzipped tarball held in memory."""
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        return tar.getmembers()


def make_tarball(entries: List[tarfile.TarInfo], bodies: Dict[str, bytes]) -> bytes:
    """Build a gzipped tarball from explicit headers, for extraction tests."""
    raw = io.BytesIO()
    with gzip.GzipFile(fileobj=raw, mode="wb") as zw:
        with tarfile.open(fileobj=zw, mode="w") as tar:
            for info in entries:
                body = bodies.get(info.name)
                if body is not None:
                    info.size = len(body)
                    tar.addfile(info, io.BytesIO(body))
                else:
                    tar.addfile(info)
    return raw.getvalue()


@pytest.fixture
def module_tree(tmp_path: Path) -> Callable[[Dict[str, Union[str, bytes]]], Path]:
    """Provide a builder writing a module tree into a fresh directory.

    Returns:
        Function taking {relative path: content} and returning the tree root.
    """
    root = tmp_path / "repo"
    root.mkdir()

    def build(files: Dict[str, Union[str, bytes]]) -> Path:
        return write_tree(root, files)

    return build


@pytest.fixture
def read_members() -> Callable[[bytes], List[tarfile.TarInfo]]:
    """Provide tar_members as a fixture."""
    return tar_members


@pytest.fixture
def build_tarball() -> Callable[..., bytes]:
    """Provide make_tarball as a fixture."""
    return make_tarball
