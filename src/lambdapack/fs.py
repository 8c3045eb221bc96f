"""Filesystem access used by resolution.

The resolver never touches :mod:`os` directly; it goes through a
:class:`FileSystem` so directory walking can run against
:class:`MemoryFileSystem` in tests.
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Protocol


class FileSystem(Protocol):
    def is_file(self, path: Path) -> bool:
        """Return whether *path* names an existing regular file."""

    def is_dir(self, path: Path) -> bool:
        """Return whether *path* names an existing directory."""

    def read_text(self, path: Path) -> str:
        """Return the decoded contents of *path*."""

    def realpath(self, path: Path) -> Path:
        """Return the canonical absolute form of *path*."""


@dataclass(frozen=True, slots=True)
class LocalFileSystem:
    name: str = "local"

    def is_file(self, path: Path) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")

    def realpath(self, path: Path) -> Path:
        return Path(os.path.realpath(path))


@dataclass(slots=True)
class MemoryFileSystem:
    """In-memory double keyed by absolute POSIX paths."""

    name: str = "memory"
    files: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, files: Mapping[str, str]) -> MemoryFileSystem:
        fs = cls()
        for path, contents in files.items():
            fs.write(path, contents)
        return fs

    def write(self, path: str | Path, contents: str) -> None:
        self.files[_normalize(path)] = contents

    def is_file(self, path: Path) -> bool:
        return _normalize(path) in self.files

    def is_dir(self, path: Path) -> bool:
        prefix = _normalize(path).rstrip("/") + "/"
        return any(name.startswith(prefix) for name in self.files)

    def read_text(self, path: Path) -> str:
        try:
            return self.files[_normalize(path)]
        except KeyError as exc:
            raise FileNotFoundError(str(path)) from exc

    def realpath(self, path: Path) -> Path:
        return Path(_normalize(path))


def _normalize(path: str | Path) -> str:
    text = PurePosixPath(path).as_posix()
    if not text.startswith("/"):
        raise ValueError(f"MemoryFileSystem paths must be absolute: {text}")
    return posixpath.normpath(text)


def join_normalized(base: Path, relative: str) -> Path:
    """Join *relative* onto *base* and collapse ``.``/``..`` segments lexically."""
    return Path(os.path.normpath(os.path.join(base, relative)))


__all__ = ["FileSystem", "LocalFileSystem", "MemoryFileSystem", "join_normalized"]
