"""Core typed dataclasses for resolution options, requests, and archive plans."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cbor2

from lambdapack.errors import ValidationError

MANIFEST_NAME = "package.json"
PACKAGE_CONTAINER = "node_modules"

DEFAULT_FILE_MODE = 0o644

_OPTION_ALIASES = {
    "ignoreMissing": "ignore_missing",
    "ignore_missing": "ignore_missing",
    "paths": "paths",
    "tsconfig": "tsconfig",
}


@dataclass(frozen=True, slots=True)
class ResolveOptions:
    ignore_missing: bool = False
    paths: tuple[Path, ...] = ()
    tsconfig: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> ResolveOptions:
        """Build options from the caller-facing keys (``ignoreMissing``, ``paths``, ``tsconfig``)."""
        if raw is None:
            return cls()
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _OPTION_ALIASES.get(key)
            if name is None:
                raise ValidationError(
                    f"Unknown resolve option `{key}`.",
                    hint="Supported options: ignoreMissing, paths, tsconfig.",
                )
            values[name] = value

        ignore_missing = values.get("ignore_missing", False)
        if not isinstance(ignore_missing, bool):
            raise ValidationError("Option `ignoreMissing` must be a boolean.")

        raw_paths = values.get("paths") or ()
        if not isinstance(raw_paths, (list, tuple)) or not all(
            isinstance(item, (str, Path)) for item in raw_paths
        ):
            raise ValidationError("Option `paths` must be a list of directory paths.")

        tsconfig = values.get("tsconfig")
        if tsconfig is not None and not isinstance(tsconfig, (str, Path)):
            raise ValidationError("Option `tsconfig` must be a path.")

        return cls(
            ignore_missing=ignore_missing,
            paths=tuple(Path(item) for item in raw_paths),
            tsconfig=Path(tsconfig) if tsconfig is not None else None,
        )

    def absolute(self, cwd: Path) -> ResolveOptions:
        """Return a copy with relative paths anchored at *cwd*."""
        return ResolveOptions(
            ignore_missing=self.ignore_missing,
            paths=tuple(cwd / item for item in self.paths),
            tsconfig=cwd / self.tsconfig if self.tsconfig is not None else None,
        )


def coerce_options(options: ResolveOptions | Mapping[str, Any] | None) -> ResolveOptions:
    if isinstance(options, ResolveOptions):
        return options
    return ResolveOptions.from_mapping(options)


@dataclass(frozen=True, slots=True)
class ResolutionRequest:
    specifier: str
    from_file: Path
    search_roots: tuple[Path, ...] = ()
    ignore_missing: bool = False
    typescript: bool = False


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    archive_path: str
    source_file: Path | None
    mode: int = DEFAULT_FILE_MODE
    contents: str | None = None

    @property
    def synthesized(self) -> bool:
        return self.source_file is None

    def sha256(self) -> str:
        if self.source_file is None:
            return hashlib.sha256((self.contents or "").encode("utf-8")).hexdigest()
        digest = hashlib.sha256()
        with self.source_file.open("rb") as handle:
            for chunk in iter(lambda: handle.read(1 << 16), b""):
                digest.update(chunk)
        return digest.hexdigest()


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    """Ordered archive listing: dependencies first, then the optional shim."""

    root: Path
    entry_file: Path
    entries: tuple[ArchiveEntry, ...] = field(default_factory=tuple)

    @property
    def archive_paths(self) -> tuple[str, ...]:
        return tuple(entry.archive_path for entry in self.entries)

    @property
    def shim(self) -> ArchiveEntry | None:
        for entry in self.entries:
            if entry.synthesized:
                return entry
        return None

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        payload = [
            {"archive_path": entry.archive_path, "mode": entry.mode, "sha256": entry.sha256()}
            for entry in self.entries
        ]
        encoded = cbor2.dumps(payload, canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def fingerprint(self) -> str:
        return hashlib.sha256(self.to_cbor()).hexdigest()


__all__ = [
    "ArchiveEntry",
    "ArchivePlan",
    "DEFAULT_FILE_MODE",
    "MANIFEST_NAME",
    "PACKAGE_CONTAINER",
    "ResolutionRequest",
    "ResolveOptions",
    "coerce_options",
]
