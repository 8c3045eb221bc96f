"""Package manifest parsing and package-root lookup."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lambdapack.errors import ManifestParseError
from lambdapack.fs import FileSystem
from lambdapack.models import MANIFEST_NAME, PACKAGE_CONTAINER


@dataclass(frozen=True, slots=True)
class PackageManifest:
    path: Path
    name: str | None = None
    main: str | None = None
    types: str | None = None

    @property
    def root(self) -> Path:
        return self.path.parent

    def entry_fields(self, *, typescript: bool) -> tuple[str, ...]:
        """Declared entry points in lookup order, empty ones dropped."""
        fields = [self.main]
        if typescript:
            fields.append(self.types)
        return tuple(value for value in fields if value)


def parse_manifest(raw: str, path: Path) -> PackageManifest:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path, reason=str(exc)) from exc
    if not isinstance(payload, dict):
        raise ManifestParseError(path, reason="Top-level value is not a JSON object.")
    return PackageManifest(
        path=path,
        name=_optional_str(payload, "name"),
        main=_optional_str(payload, "main"),
        types=_optional_str(payload, "types") or _optional_str(payload, "typings"),
    )


def read_manifest(directory: Path, *, fs: FileSystem) -> PackageManifest | None:
    """Return the manifest of *directory*, or None when it has none.

    Raises ManifestParseError when the file exists but is not a JSON object.
    """
    path = directory / MANIFEST_NAME
    if not fs.is_file(path):
        return None
    return parse_manifest(fs.read_text(path), path)


def locate_package_root(
    file: Path,
    *,
    fs: FileSystem,
    boundary: Path | None = None,
) -> Path | None:
    """Walk up from the directory containing *file* to the nearest manifest.

    The walk stops before *boundary*; a manifest in *boundary* itself or above
    it is never reported.
    """
    for directory in file.parents:
        if boundary is not None and directory == boundary:
            return None
        if fs.is_file(directory / MANIFEST_NAME):
            return directory
    return None


def container_boundary(file: Path) -> Path | None:
    """Nearest ancestor directory named ``node_modules``, if any."""
    for directory in file.parents:
        if directory.name == PACKAGE_CONTAINER:
            return directory
    return None


def dependency_package_root(file: Path, *, fs: FileSystem) -> Path | None:
    """Package root of *file* when it lives inside a package container.

    First-party files (no ``node_modules`` ancestor) have no creditable root.
    """
    boundary = container_boundary(file)
    if boundary is None:
        return None
    return locate_package_root(file, fs=fs, boundary=boundary)


def owning_package_root(file: Path, *, fs: FileSystem, ceiling: Path | None = None) -> Path | None:
    """Creditable package root of *file*.

    Files under a package container belong to their dependency package. Other
    files belong to the nearest manifest strictly below *ceiling*, so the
    project manifest at the ceiling is never reported; without a ceiling, or
    outside it, they belong to none.
    """
    if container_boundary(file) is not None:
        return dependency_package_root(file, fs=fs)
    if ceiling is None or not file.is_relative_to(ceiling):
        return None
    return locate_package_root(file, fs=fs, boundary=ceiling)


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None
